from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from garage.stock.domain.allocator import InvalidQuantity


class Command:
    pass


class ValidQtyMixin:
    min_qty = 1

    def __post_init__(self) -> None:
        if isinstance(self.qty, bool) or not isinstance(self.qty, int):
            raise InvalidQuantity(f"Quantity must be an integer, got {self.qty!r}")
        if self.qty < self.min_qty:
            raise InvalidQuantity(f"Quantity must be >= {self.min_qty}, got {self.qty}")


@dataclass
class RegisterItem(Command):
    item_id: str
    name: str
    restock_level: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.restock_level, bool) or not isinstance(self.restock_level, int):
            raise InvalidQuantity(f"Restock level must be an integer, got {self.restock_level!r}")
        if self.restock_level < 0:
            raise InvalidQuantity(f"Restock level must be >= 0, got {self.restock_level}")


@dataclass
class ReceivePurchase(ValidQtyMixin, Command):
    batch_id: UUID
    item_id: str
    qty: int
    unit_price: Decimal
    purchase_date: datetime
    buying_price: Decimal | None = None
    supplier: str | None = None


@dataclass
class PartRequest(ValidQtyMixin):
    item_id: str
    qty: int
    batch_id: UUID | None = None


@dataclass
class UseParts(Command):
    service_id: str
    parts: list[PartRequest] = field(default_factory=list)


@dataclass
class ReleaseStock(ValidQtyMixin, Command):
    item_id: str
    qty: int
    reference: str


@dataclass
class AdjustBatch(ValidQtyMixin, Command):
    min_qty = 0

    batch_id: UUID
    qty: int
    unit_price: Decimal | None = None


@dataclass
class ReturnParts(Command):
    reference: str
    item_id: str
    batch_id: UUID | None = None
