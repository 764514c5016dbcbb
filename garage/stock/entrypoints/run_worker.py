import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

import orjson

from garage.config import configure_logging, get_config
from garage.stock.adapters.db import default_db
from garage.stock.adapters.orm import start_mappers
from garage.stock.adapters.redis import redis
from garage.stock.constants import (
    ADJUST_BATCH_CHANNEL,
    RECEIVE_PURCHASE_CHANNEL,
    REGISTER_ITEM_CHANNEL,
    RELEASE_STOCK_CHANNEL,
    RETURN_PARTS_CHANNEL,
    USE_PARTS_CHANNEL,
)
from garage.stock.domain import commands
from garage.stock.domain.allocator import StockError
from garage.stock.service_layer import messagebus, unit_of_work

logger = logging.getLogger(__name__)

# what a malformed payload raises while being parsed into a command
PARSE_ERRORS = (StockError, KeyError, TypeError, ValueError, AttributeError, InvalidOperation)


def _optional_decimal(value: Any) -> Decimal | None:
    return None if value is None else Decimal(str(value))


def _optional_uuid(value: Any) -> UUID | None:
    return None if value is None else UUID(value)


def _register_item(data: dict[str, Any]) -> commands.Command:
    return commands.RegisterItem(
        item_id=data["item_id"], name=data.get("name", ""), restock_level=data.get("restock_level", 0)
    )


def _receive_purchase(data: dict[str, Any]) -> commands.Command:
    return commands.ReceivePurchase(
        batch_id=UUID(data["batch_id"]),
        item_id=data["item_id"],
        qty=data["qty"],
        unit_price=Decimal(str(data["unit_price"])),
        purchase_date=datetime.fromisoformat(data["purchase_date"]),
        buying_price=_optional_decimal(data.get("buying_price")),
        supplier=data.get("supplier"),
    )


def _use_parts(data: dict[str, Any]) -> commands.Command:
    return commands.UseParts(
        service_id=str(data["service_id"]),
        parts=[
            commands.PartRequest(item_id=p["item_id"], qty=p["qty"], batch_id=_optional_uuid(p.get("batch_id")))
            for p in data["parts"]
        ],
    )


def _release_stock(data: dict[str, Any]) -> commands.Command:
    return commands.ReleaseStock(item_id=data["item_id"], qty=data["qty"], reference=str(data["reference"]))


def _adjust_batch(data: dict[str, Any]) -> commands.Command:
    return commands.AdjustBatch(
        batch_id=UUID(data["batch_id"]), qty=data["qty"], unit_price=_optional_decimal(data.get("unit_price"))
    )


def _return_parts(data: dict[str, Any]) -> commands.Command:
    return commands.ReturnParts(
        reference=str(data["reference"]), item_id=data["item_id"], batch_id=_optional_uuid(data.get("batch_id"))
    )


COMMAND_PARSERS: dict[str, Callable[[dict[str, Any]], commands.Command]] = {
    REGISTER_ITEM_CHANNEL: _register_item,
    RECEIVE_PURCHASE_CHANNEL: _receive_purchase,
    USE_PARTS_CHANNEL: _use_parts,
    RELEASE_STOCK_CHANNEL: _release_stock,
    ADJUST_BATCH_CHANNEL: _adjust_batch,
    RETURN_PARTS_CHANNEL: _return_parts,
}


async def handle_message(channel: str, data: bytes, uow: unit_of_work.AbstractUnitOfWork) -> Any:
    try:
        cmd = COMMAND_PARSERS[channel](orjson.loads(data))
    except PARSE_ERRORS:
        logger.exception("Malformed message on %s: %r", channel, data)
        return None
    try:
        return await messagebus.handle(cmd, uow)
    except StockError:
        logger.exception("Rejected message on %s", channel)
        return None


async def main() -> None:
    configure_logging(get_config().LOG_LEVEL)
    start_mappers()
    pubsub = redis.pubsub(ignore_subscribe_messages=True)
    await pubsub.subscribe(*COMMAND_PARSERS)
    logger.info("Listening on %s", ", ".join(COMMAND_PARSERS))

    try:
        async for m in pubsub.listen():
            channel = m["channel"].decode("utf-8")
            await handle_message(channel, m["data"], unit_of_work.SqlAlchemyUnitOfWork())
    finally:
        await pubsub.aclose()
        await default_db().dispose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
