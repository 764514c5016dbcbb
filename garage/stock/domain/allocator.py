from __future__ import annotations

from collections.abc import Hashable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


class StockError(Exception):
    pass


class InvalidQuantity(StockError):
    pass


class DuplicateBatch(StockError):
    pass


class InsufficientStock(StockError):
    def __init__(self, shortfall: int, item_id: str | None = None) -> None:
        self.shortfall = shortfall
        self.item_id = item_id
        target = f" for item {item_id}" if item_id else ""
        super().__init__(f"Insufficient stock{target}, short by {shortfall}")


@dataclass(frozen=True, kw_only=True)
class StockBatch:
    batch_id: Hashable
    available_quantity: int
    purchase_date: datetime
    unit_price: Decimal

    def __post_init__(self) -> None:
        if self.available_quantity < 0:
            raise InvalidQuantity(f"Batch {self.batch_id} has negative quantity {self.available_quantity}")


@dataclass(frozen=True)
class AllocationLine:
    batch_id: Hashable
    quantity: int
    unit_price: Decimal

    @property
    def price(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class AllocationPlan:
    lines: tuple[AllocationLine, ...]

    @property
    def quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def total_price(self) -> Decimal:
        return sum((line.price for line in self.lines), Decimal("0"))


def allocate(requested_quantity: int, batches: Sequence[StockBatch]) -> AllocationPlan:
    if requested_quantity <= 0:
        raise InvalidQuantity(f"Requested quantity must be positive, got {requested_quantity}")
    if len({b.batch_id for b in batches}) != len(batches):
        raise DuplicateBatch("Batch ids must be unique")

    remaining = requested_quantity
    lines: list[AllocationLine] = []
    for batch in batches:
        if remaining == 0:
            break
        taken = min(remaining, batch.available_quantity)
        if taken == 0:
            continue
        lines.append(AllocationLine(batch.batch_id, taken, batch.unit_price))
        remaining -= taken

    if remaining > 0:
        raise InsufficientStock(remaining)
    return AllocationPlan(tuple(lines))
