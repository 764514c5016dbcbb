from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from garage.stock.domain import events
from garage.stock.domain.allocator import AllocationPlan, InsufficientStock, StockBatch, StockError, allocate

SERVICE = "service"
RELEASE = "release"


class UnknownBatch(StockError):
    pass


@dataclass(kw_only=True)
class Batch:
    id: UUID = field(default_factory=uuid4)
    item_id: str
    purchased_quantity: int
    available_quantity: int
    unit_price: Decimal
    purchase_date: datetime
    buying_price: Decimal | None = None
    supplier: str | None = None

    def __repr__(self) -> str:
        return f"<Batch {self.id}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Batch):
            return False
        return other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def snapshot(self) -> StockBatch:
        return StockBatch(
            batch_id=self.id,
            available_quantity=self.available_quantity,
            purchase_date=self.purchase_date,
            unit_price=self.unit_price,
        )

    def draw(self, qty: int) -> None:
        if qty > self.available_quantity:
            raise InsufficientStock(qty - self.available_quantity, self.item_id)
        self.available_quantity -= qty


@dataclass(kw_only=True)
class StockMovement:
    id: int | None = None
    item_id: str
    batch_id: UUID
    quantity: int
    unit_price: Decimal
    reference: str
    kind: str
    moved_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(kw_only=True)
class Item:
    item_id: str
    name: str = ""
    restock_level: int = 0
    batches: list[Batch] = field(default_factory=list)
    version_number: int = 0
    events: list[events.Event] = field(default_factory=list)

    def __hash__(self) -> int:
        return hash(self.item_id)

    @property
    def available_quantity(self) -> int:
        return sum(b.available_quantity for b in self.batches)

    def fifo_batches(self) -> list[Batch]:
        return sorted(self.batches, key=lambda b: (b.purchase_date, b.id))

    def receive(self, batch: Batch) -> None:
        self.batches.append(batch)
        self.version_number += 1

    def preview(self, qty: int, batch_id: UUID | None = None) -> AllocationPlan:
        batches = self.fifo_batches() if batch_id is None else [self._batch(batch_id)]
        try:
            return allocate(qty, [b.snapshot() for b in batches])
        except InsufficientStock as e:
            raise InsufficientStock(e.shortfall, self.item_id) from None

    def consume(
        self, qty: int, reference: str, kind: str = SERVICE, batch_id: UUID | None = None
    ) -> tuple[AllocationPlan, list[StockMovement]]:
        try:
            plan = self.preview(qty, batch_id)
        except InsufficientStock as e:
            self.events.append(events.OutOfStock(self.item_id, qty, e.shortfall))
            raise

        by_id = {b.id: b for b in self.batches}
        movements = []
        for line in plan.lines:
            by_id[line.batch_id].draw(line.quantity)
            movements.append(
                StockMovement(
                    item_id=self.item_id,
                    batch_id=line.batch_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    reference=reference,
                    kind=kind,
                )
            )
        self.version_number += 1
        self.events.append(events.StockConsumed(self.item_id, reference, kind, plan.lines))
        if self.available_quantity <= self.restock_level:
            self.events.append(events.LowStock(self.item_id, self.available_quantity, self.restock_level))
        return plan, movements

    def adjust_batch(self, batch_id: UUID, qty: int, unit_price: Decimal | None = None) -> Batch:
        batch = self._batch(batch_id)
        batch.available_quantity = qty
        if unit_price is not None:
            batch.unit_price = unit_price
        self.version_number += 1
        self.events.append(events.BatchAdjusted(self.item_id, batch.id, qty))
        return batch

    def restore(self, reference: str, movements: list[StockMovement]) -> int:
        # each movement goes back to the batch it was drawn from
        drawn = [(self._batch(m.batch_id), m.quantity) for m in movements]
        for batch, quantity in drawn:
            batch.available_quantity += quantity
        returned = sum(m.quantity for m in movements)
        self.version_number += 1
        self.events.append(events.StockReturned(self.item_id, reference, returned))
        return returned

    def _batch(self, batch_id: UUID) -> Batch:
        batch = next((b for b in self.batches if b.id == batch_id), None)
        if batch is None:
            raise UnknownBatch(f"Unknown batch {batch_id} for item {self.item_id}")
        return batch
