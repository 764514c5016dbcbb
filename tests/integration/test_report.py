from collections.abc import AsyncGenerator
from datetime import datetime
from decimal import Decimal
from uuid import UUID

import orjson
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from garage.stock.adapters.db import DB
from garage.stock.domain import models
from garage.stock.entrypoints import report

BATCH_ID = UUID("3c3b1e7e-6a2e-4d53-8a0f-22a9d6f2c1aa")


@pytest.fixture
async def db(engine: AsyncEngine, session: AsyncSession) -> AsyncGenerator[DB, None]:
    session.add(
        models.Item(
            item_id="WIPER",
            name="Wiper blade",
            restock_level=4,
            batches=[
                models.Batch(
                    id=BATCH_ID,
                    item_id="WIPER",
                    purchased_quantity=6,
                    available_quantity=3,
                    unit_price=Decimal("12.50"),
                    purchase_date=datetime(2024, 1, 5),
                )
            ],
        )
    )
    await session.commit()
    db = DB(engine.url.render_as_string(hide_password=False))
    yield db
    await db.dispose()


async def test_status_report(db: DB) -> None:
    args = report.build_parser().parse_args(["status", "WIPER"])

    result = await report.query(args, db)

    assert orjson.loads(report.render(result)) == {
        "item_id": "WIPER",
        "name": "Wiper blade",
        "restock_level": 4,
        "total_available": 3,
        "stock_entries": [
            {
                "batch_id": str(BATCH_ID),
                "available_quantity": 3,
                "unit_price": "12.50",
                "buying_price": None,
                "purchase_date": "2024-01-05T00:00:00",
                "supplier": None,
            }
        ],
    }


async def test_low_stock_report(db: DB) -> None:
    args = report.build_parser().parse_args(["low-stock"])

    result = await report.query(args, db)

    assert [i.item_id for i in result] == ["WIPER"]


async def test_status_of_unknown_item_renders_null(db: DB) -> None:
    args = report.build_parser().parse_args(["status", "NOPE"])

    result = await report.query(args, db)

    assert report.render(result) == b"null"


def test_batch_usage_requires_uuid() -> None:
    with pytest.raises(SystemExit):
        report.build_parser().parse_args(["batch-usage", "not-a-uuid"])
