from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from garage.stock.adapters.dto import LowStockItem, Movement, StockEntry, StockStatus
from garage.stock.adapters.orm import batch_table, item_table, movement_table


async def stock_status(item_id: str, session: AsyncSession) -> StockStatus | None:
    item = (await session.execute(sa.select(item_table).where(item_table.c.item_id == item_id))).first()
    if item is None:
        return None
    result = await session.execute(
        sa.select(
            batch_table.c.id.label("batch_id"),
            batch_table.c.available_quantity,
            batch_table.c.unit_price,
            batch_table.c.buying_price,
            batch_table.c.purchase_date,
            batch_table.c.supplier,
        )
        .where(batch_table.c.item_id == item_id, batch_table.c.available_quantity > 0)
        .order_by(batch_table.c.purchase_date, batch_table.c.id)
    )
    entries = [StockEntry(**r._mapping) for r in result.fetchall()]
    return StockStatus(
        item_id=item.item_id,
        name=item.name,
        restock_level=item.restock_level,
        total_available=sum(e.available_quantity for e in entries),
        stock_entries=entries,
    )


async def low_stock_items(session: AsyncSession) -> list[LowStockItem]:
    total = sa.func.coalesce(sa.func.sum(batch_table.c.available_quantity), 0)
    result = await session.execute(
        sa.select(
            item_table.c.item_id,
            item_table.c.name,
            item_table.c.restock_level,
            total.label("total_available"),
        )
        .select_from(item_table.outerjoin(batch_table, batch_table.c.item_id == item_table.c.item_id))
        .group_by(item_table.c.item_id, item_table.c.name, item_table.c.restock_level)
        .having(total <= item_table.c.restock_level)
        .order_by(item_table.c.item_id)
    )
    return [LowStockItem(**r._mapping) for r in result.fetchall()]


async def movements_for_reference(reference: str, session: AsyncSession) -> list[Movement]:
    result = await session.execute(
        sa.select(movement_table).where(movement_table.c.reference == reference).order_by(movement_table.c.id)
    )
    return [Movement(**r._mapping) for r in result.fetchall()]


async def batch_usage(batch_id: UUID, session: AsyncSession) -> list[Movement]:
    result = await session.execute(
        sa.select(movement_table)
        .where(movement_table.c.batch_id == batch_id)
        .order_by(movement_table.c.moved_at.desc(), movement_table.c.id.desc())
    )
    return [Movement(**r._mapping) for r in result.fetchall()]
