import abc
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from garage.stock.domain import models


class AbstractItemRepository(abc.ABC):
    def __init__(self) -> None:
        self._seen: set[models.Item] = set()

    @property
    def seen(self) -> set[models.Item]:
        return self._seen

    async def add(self, item: models.Item) -> None:
        await self._add(item)
        self._seen.add(item)

    async def get(self, item_id: str, lock: bool = True) -> models.Item | None:
        # reuse the instance already loaded in this unit of work
        item = next((i for i in self._seen if i.item_id == item_id), None)
        if item is None:
            item = await self._get(item_id, lock)
        if item:
            self._seen.add(item)
        return item

    async def get_by_batch_id(self, batch_id: UUID) -> models.Item | None:
        item = next((i for i in self._seen for b in i.batches if b.id == batch_id), None)
        if item is None:
            item = await self._get_by_batch_id(batch_id)
        if item:
            self._seen.add(item)
        return item

    @abc.abstractmethod
    async def _add(self, item: models.Item) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def _get(self, item_id: str, lock: bool) -> models.Item | None:
        raise NotImplementedError

    @abc.abstractmethod
    async def _get_by_batch_id(self, batch_id: UUID) -> models.Item | None:
        raise NotImplementedError


class SqlAlchemyItemRepository(AbstractItemRepository):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__()
        self._session = session

    async def _add(self, item: models.Item) -> None:
        self._session.add(item)
        await self._session.flush()

    async def _get(self, item_id: str, lock: bool) -> models.Item | None:
        stmt = (
            sa.select(models.Item)
            .where(models.Item.item_id == item_id)  # type: ignore[arg-type]
            .options(selectinload(models.Item.batches))  # type: ignore[arg-type]
        )
        if lock:
            # FOR UPDATE serializes concurrent consumers of the same item (no-op on sqlite)
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _get_by_batch_id(self, batch_id: UUID) -> models.Item | None:
        result = await self._session.execute(
            sa.select(models.Item)
            .where(models.Item.batches.any(models.Batch.id == batch_id))  # type: ignore[attr-defined]
            .options(selectinload(models.Item.batches))  # type: ignore[arg-type]
            .with_for_update()
        )
        return result.scalar_one_or_none()


class AbstractMovementRepository(abc.ABC):
    @abc.abstractmethod
    async def add(self, movement: models.StockMovement) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def list_for_reference(self, reference: str) -> list[models.StockMovement]:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete(self, movement: models.StockMovement) -> None:
        raise NotImplementedError


class SqlAlchemyMovementRepository(AbstractMovementRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, movement: models.StockMovement) -> None:
        self._session.add(movement)

    async def list_for_reference(self, reference: str) -> list[models.StockMovement]:
        result = await self._session.execute(
            sa.select(models.StockMovement)
            .where(models.StockMovement.reference == reference)  # type: ignore[arg-type]
            .order_by(models.StockMovement.id)  # type: ignore[arg-type]
        )
        return list(result.scalars())

    async def delete(self, movement: models.StockMovement) -> None:
        await self._session.delete(movement)
