from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import registry, relationship

from garage.stock.domain import models

mapper_registry = registry()
metadata = mapper_registry.metadata

item_table = sa.Table(
    "item",
    metadata,
    sa.Column("item_id", sa.String(64), primary_key=True),
    sa.Column("name", sa.String(255), nullable=False, server_default=""),
    sa.Column("restock_level", sa.Integer, nullable=False, server_default="0"),
    sa.Column("version_number", sa.Integer, nullable=False, server_default="0"),
)

batch_table = sa.Table(
    "stock_batch",
    metadata,
    sa.Column("id", sa.Uuid, primary_key=True),
    sa.Column("item_id", sa.ForeignKey("item.item_id"), nullable=False, index=True),
    sa.Column("purchased_quantity", sa.Integer, nullable=False),
    sa.Column("available_quantity", sa.Integer, nullable=False),
    sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
    sa.Column("purchase_date", sa.DateTime, nullable=False),
    sa.Column("buying_price", sa.Numeric(12, 2), nullable=True),
    sa.Column("supplier", sa.String(255), nullable=True),
    sa.CheckConstraint("available_quantity >= 0", name="ck_stock_batch_available_quantity"),
)

movement_table = sa.Table(
    "stock_movement",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("item_id", sa.ForeignKey("item.item_id"), nullable=False),
    sa.Column("batch_id", sa.ForeignKey("stock_batch.id"), nullable=False),
    sa.Column("quantity", sa.Integer, nullable=False),
    sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
    sa.Column("reference", sa.String(64), nullable=False, index=True),
    sa.Column("kind", sa.String(16), nullable=False),
    sa.Column("moved_at", sa.DateTime(timezone=True), nullable=False),
)


def start_mappers() -> None:
    batch_mapper = mapper_registry.map_imperatively(models.Batch, batch_table)
    mapper_registry.map_imperatively(models.StockMovement, movement_table)
    mapper_registry.map_imperatively(
        models.Item,
        item_table,
        properties={"batches": relationship(batch_mapper, order_by=[batch_table.c.purchase_date, batch_table.c.id])},
        version_id_col=item_table.c.version_number,
    )
    # __init__ is skipped when the ORM loads an instance
    sa.event.listen(models.Item, "load", _init_events)


def _init_events(item: models.Item, _: Any) -> None:
    item.events = []
