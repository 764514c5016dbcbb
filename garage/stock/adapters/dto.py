from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class StockEntry(BaseModel):
    batch_id: UUID
    available_quantity: int
    unit_price: Decimal
    buying_price: Decimal | None = None
    purchase_date: datetime
    supplier: str | None = None


class StockStatus(BaseModel):
    item_id: str
    name: str
    restock_level: int
    total_available: int
    stock_entries: list[StockEntry]


class LowStockItem(BaseModel):
    item_id: str
    name: str
    restock_level: int
    total_available: int


class Movement(BaseModel):
    item_id: str
    batch_id: UUID
    quantity: int
    unit_price: Decimal
    reference: str
    kind: str
    moved_at: datetime
