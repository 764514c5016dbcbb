from dataclasses import dataclass
from uuid import UUID

from garage.stock.domain.allocator import AllocationLine


class Event:
    pass


@dataclass
class StockConsumed(Event):
    item_id: str
    reference: str
    kind: str
    lines: tuple[AllocationLine, ...]


@dataclass
class OutOfStock(Event):
    item_id: str
    requested: int
    shortfall: int


@dataclass
class LowStock(Event):
    item_id: str
    available: int
    restock_level: int


@dataclass
class BatchAdjusted(Event):
    item_id: str
    batch_id: UUID
    quantity: int


@dataclass
class StockReturned(Event):
    item_id: str
    reference: str
    quantity: int
