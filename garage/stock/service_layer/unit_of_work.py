from __future__ import annotations

import abc
from collections.abc import Iterator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from garage.stock.adapters.db import default_db
from garage.stock.adapters.repository import (
    AbstractItemRepository,
    AbstractMovementRepository,
    SqlAlchemyItemRepository,
    SqlAlchemyMovementRepository,
)
from garage.stock.domain import events


class AbstractUnitOfWork(abc.ABC):
    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.rollback()

    @property
    @abc.abstractmethod
    def items(self) -> AbstractItemRepository:
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def movements(self) -> AbstractMovementRepository:
        raise NotImplementedError

    def collect_new_events(self) -> Iterator[events.Event]:
        for item in self.items.seen:
            while item.events:
                yield item.events.pop(0)

    @abc.abstractmethod
    async def commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory
        self._session: AsyncSession = None
        self._items: SqlAlchemyItemRepository = None
        self._movements: SqlAlchemyMovementRepository = None

    @property
    def items(self) -> AbstractItemRepository:
        return self._items

    @property
    def movements(self) -> AbstractMovementRepository:
        return self._movements

    async def __aenter__(self) -> AbstractUnitOfWork:
        # the engine must be created inside the running event loop
        if self._session_factory is None:
            self._session_factory = default_db().session_factory
        self._session = self._session_factory()
        self._items = SqlAlchemyItemRepository(self._session)
        self._movements = SqlAlchemyMovementRepository(self._session)
        return await super().__aenter__()

    async def __aexit__(self, *args: Any) -> None:
        await super().__aexit__(*args)
        await self._session.close()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
