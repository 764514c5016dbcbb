import argparse
import asyncio
import sys
from collections.abc import Sequence
from uuid import UUID

import orjson
from pydantic import BaseModel

from garage.stock.adapters import dao
from garage.stock.adapters.db import DB, default_db


async def query(args: argparse.Namespace, db: DB) -> BaseModel | list[BaseModel] | None:
    async with db.session() as session:
        if args.report == "status":
            return await dao.stock_status(args.item_id, session)
        if args.report == "low-stock":
            return await dao.low_stock_items(session)
        if args.report == "movements":
            return await dao.movements_for_reference(args.reference, session)
        if args.report == "batch-usage":
            return await dao.batch_usage(args.batch_id, session)
    raise ValueError(f"Unknown report {args.report}")


def render(result: BaseModel | list[BaseModel] | None) -> bytes:
    if isinstance(result, list):
        payload = [r.model_dump(mode="json") for r in result]
    elif result is not None:
        payload = result.model_dump(mode="json")
    else:
        payload = None
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="garage-stock-report", description="Read-only stock reports as JSON.")
    reports = parser.add_subparsers(dest="report", required=True)
    reports.add_parser("status", help="batches with stock left for an item, oldest first").add_argument("item_id")
    reports.add_parser("low-stock", help="items at or below their restock level")
    reports.add_parser("movements", help="stock drawn for a service record or release").add_argument("reference")
    reports.add_parser("batch-usage", help="movements drawn from one batch").add_argument("batch_id", type=UUID)
    return parser


async def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    db = default_db()
    try:
        result = await query(args, db)
    finally:
        await db.dispose()
    sys.stdout.buffer.write(render(result) + b"\n")
    return 0 if result is not None else 1


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
