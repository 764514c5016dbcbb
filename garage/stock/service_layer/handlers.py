import logging
from collections.abc import Iterable
from decimal import Decimal
from typing import Any, Protocol, TypeVar
from uuid import UUID

import orjson

from garage.stock.adapters.redis import redis
from garage.stock.constants import (
    BATCH_ADJUSTED_CHANNEL,
    LOW_STOCK_CHANNEL,
    OUT_OF_STOCK_CHANNEL,
    STOCK_CONSUMED_CHANNEL,
    STOCK_RETURNED_CHANNEL,
)
from garage.stock.domain import commands, events, models
from garage.stock.domain.allocator import AllocationPlan, InsufficientStock, StockError
from garage.stock.service_layer import unit_of_work

logger = logging.getLogger(__name__)

EVENT_CHANNELS: dict[type[events.Event], str] = {
    events.StockConsumed: STOCK_CONSUMED_CHANNEL,
    events.OutOfStock: OUT_OF_STOCK_CHANNEL,
    events.LowStock: LOW_STOCK_CHANNEL,
    events.BatchAdjusted: BATCH_ADJUSTED_CHANNEL,
    events.StockReturned: STOCK_RETURNED_CHANNEL,
}


class UnknownItem(StockError):
    pass


class UnknownUsage(StockError):
    pass


P = TypeVar("P", contravariant=True)
R = TypeVar("R", covariant=True)


class Handler(Protocol[P, R]):
    async def handle(self, cmd: P) -> R:
        ...


class RegisterItemCmdHandler(Handler[commands.RegisterItem, models.Item]):
    def __init__(self, uow: unit_of_work.AbstractUnitOfWork) -> None:
        self._uow = uow

    async def handle(self, cmd: commands.RegisterItem) -> models.Item:
        async with self._uow:
            item = await self._uow.items.get(cmd.item_id)
            if item is None:
                item = models.Item(item_id=cmd.item_id, name=cmd.name, restock_level=cmd.restock_level)
                await self._uow.items.add(item)
            else:
                item.name = cmd.name
                item.restock_level = cmd.restock_level
            await self._uow.commit()
            return item


class ReceivePurchaseCmdHandler(Handler[commands.ReceivePurchase, UUID]):
    def __init__(self, uow: unit_of_work.AbstractUnitOfWork) -> None:
        self._uow = uow

    async def handle(self, cmd: commands.ReceivePurchase) -> UUID:
        async with self._uow:
            item = await self._uow.items.get(cmd.item_id)
            if item is None:
                raise UnknownItem(f"Unknown item {cmd.item_id}")
            item.receive(
                models.Batch(
                    id=cmd.batch_id,
                    item_id=cmd.item_id,
                    purchased_quantity=cmd.qty,
                    available_quantity=cmd.qty,
                    unit_price=cmd.unit_price,
                    purchase_date=cmd.purchase_date,
                    buying_price=cmd.buying_price,
                    supplier=cmd.supplier,
                )
            )
            await self._uow.commit()
            logger.info("Received %s of %s into batch %s", cmd.qty, cmd.item_id, cmd.batch_id)
            return cmd.batch_id


class UsePartsCmdHandler(Handler[commands.UseParts, list[tuple[str, AllocationPlan]]]):
    def __init__(self, uow: unit_of_work.AbstractUnitOfWork) -> None:
        self._uow = uow

    async def handle(self, cmd: commands.UseParts) -> list[tuple[str, AllocationPlan]]:
        usage = []
        async with self._uow:
            try:
                for part in cmd.parts:
                    plan = await _consume(
                        self._uow, part.item_id, part.qty, cmd.service_id, models.SERVICE, part.batch_id
                    )
                    usage.append((part.item_id, plan))
            except InsufficientStock as e:
                logger.warning("Service %s rejected: %s", cmd.service_id, e)
                await _publish(_only_out_of_stock(self._uow.collect_new_events()))
                raise
            await self._uow.commit()
            new_events = list(self._uow.collect_new_events())
        await _publish(new_events)
        return usage


class ReleaseStockCmdHandler(Handler[commands.ReleaseStock, AllocationPlan]):
    def __init__(self, uow: unit_of_work.AbstractUnitOfWork) -> None:
        self._uow = uow

    async def handle(self, cmd: commands.ReleaseStock) -> AllocationPlan:
        async with self._uow:
            try:
                plan = await _consume(self._uow, cmd.item_id, cmd.qty, cmd.reference, models.RELEASE)
            except InsufficientStock as e:
                logger.warning("Release %s rejected: %s", cmd.reference, e)
                await _publish(_only_out_of_stock(self._uow.collect_new_events()))
                raise
            await self._uow.commit()
            new_events = list(self._uow.collect_new_events())
        await _publish(new_events)
        return plan


class AdjustBatchCmdHandler(Handler[commands.AdjustBatch, None]):
    def __init__(self, uow: unit_of_work.AbstractUnitOfWork) -> None:
        self._uow = uow

    async def handle(self, cmd: commands.AdjustBatch) -> None:
        async with self._uow:
            item = await self._uow.items.get_by_batch_id(cmd.batch_id)
            if item is None:
                raise models.UnknownBatch(f"Unknown batch {cmd.batch_id}")
            item.adjust_batch(cmd.batch_id, cmd.qty, cmd.unit_price)
            await self._uow.commit()
            new_events = list(self._uow.collect_new_events())
        await _publish(new_events)


class ReturnPartsCmdHandler(Handler[commands.ReturnParts, int]):
    def __init__(self, uow: unit_of_work.AbstractUnitOfWork) -> None:
        self._uow = uow

    async def handle(self, cmd: commands.ReturnParts) -> int:
        async with self._uow:
            item = await self._uow.items.get(cmd.item_id)
            if item is None:
                raise UnknownItem(f"Unknown item {cmd.item_id}")
            movements = [
                m
                for m in await self._uow.movements.list_for_reference(cmd.reference)
                if m.item_id == cmd.item_id and (cmd.batch_id is None or m.batch_id == cmd.batch_id)
            ]
            if not movements:
                raise UnknownUsage(f"No {cmd.item_id} was drawn for {cmd.reference}")
            returned = item.restore(cmd.reference, movements)
            for movement in movements:
                await self._uow.movements.delete(movement)
            await self._uow.commit()
            logger.info("Returned %s of %s from %s", returned, cmd.item_id, cmd.reference)
            new_events = list(self._uow.collect_new_events())
        await _publish(new_events)
        return returned


async def _consume(
    uow: unit_of_work.AbstractUnitOfWork,
    item_id: str,
    qty: int,
    reference: str,
    kind: str,
    batch_id: UUID | None = None,
) -> AllocationPlan:
    item = await uow.items.get(item_id)
    if item is None:
        raise UnknownItem(f"Unknown item {item_id}")
    plan, movements = item.consume(qty, reference, kind, batch_id)
    for movement in movements:
        await uow.movements.add(movement)
    logger.info("Consumed %s of %s for %s from %d batch(es)", qty, item_id, reference, len(plan.lines))
    return plan


def _only_out_of_stock(new_events: Iterable[events.Event]) -> list[events.Event]:
    # consumption events of the rolled back transaction never happened
    return [e for e in new_events if isinstance(e, events.OutOfStock)]


def _default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return str(obj)
    raise TypeError


async def _publish(new_events: list[events.Event]) -> None:
    if not new_events:
        return
    pipe = redis.pipeline()
    for e in new_events:
        pipe.publish(EVENT_CHANNELS[type(e)], orjson.dumps(e, default=_default))
    await pipe.execute()
