from datetime import datetime
from decimal import Decimal
from uuid import UUID

import sqlalchemy as sa
from pytest_mock import MockerFixture
from sqlalchemy.ext.asyncio import AsyncSession

from garage.stock.adapters import repository
from garage.stock.domain import models


def make_batch(batch_id: str, qty: int, purchased: datetime) -> models.Batch:
    return models.Batch(
        id=UUID(batch_id),
        item_id="RETRO-LAMP",
        purchased_quantity=qty,
        available_quantity=qty,
        unit_price=Decimal("12.50"),
        purchase_date=purchased,
    )


async def test_repository_can_save_an_item_with_batches(session: AsyncSession) -> None:
    # Given
    item = models.Item(
        item_id="RETRO-LAMP",
        name="Retro lamp",
        batches=[make_batch("b463867c-e573-4a71-bd51-282f32763ee9", 10, datetime(2024, 1, 5))],
    )
    repo = repository.SqlAlchemyItemRepository(session)

    # When
    await repo.add(item)
    await session.commit()

    # Then
    rows = await session.execute(sa.text("SELECT item_id, name FROM item"))
    assert list(rows) == [("RETRO-LAMP", "Retro lamp")]
    rows = await session.execute(sa.text("SELECT item_id, available_quantity FROM stock_batch"))
    assert list(rows) == [("RETRO-LAMP", 10)]
    assert repo.seen == {item}


async def test_repository_retrieves_item_with_batches(session: AsyncSession) -> None:
    # Given
    session.add(
        models.Item(
            item_id="RETRO-LAMP",
            batches=[
                make_batch("0194c5bc-20af-4fd1-82bf-324e5f26fce7", 4, datetime(2024, 2, 1)),
                make_batch("5ed8a924-d4d7-41c4-af06-0bb85248ed6b", 6, datetime(2024, 1, 1)),
            ],
        )
    )
    session.add(models.Item(item_id="OTHER"))
    await session.commit()
    session.expunge_all()

    # When
    repo = repository.SqlAlchemyItemRepository(session)
    item = await repo.get("RETRO-LAMP")

    # Then
    assert item.available_quantity == 10
    assert [b.id for b in item.batches] == [
        UUID("5ed8a924-d4d7-41c4-af06-0bb85248ed6b"),
        UUID("0194c5bc-20af-4fd1-82bf-324e5f26fce7"),
    ]
    assert item.batches[0].unit_price == Decimal("12.50")
    assert item.events == []


async def test_repository_finds_item_by_batch_id(session: AsyncSession) -> None:
    session.add(
        models.Item(
            item_id="RETRO-LAMP",
            batches=[make_batch("450fac40-d02c-43a4-b9cb-f63d75c0a2e6", 4, datetime(2024, 2, 1))],
        )
    )
    await session.commit()
    session.expunge_all()

    item = await repository.SqlAlchemyItemRepository(session).get_by_batch_id(
        UUID("450fac40-d02c-43a4-b9cb-f63d75c0a2e6")
    )

    assert item.item_id == "RETRO-LAMP"


async def test_repository_returns_none_for_missing_item(session: AsyncSession) -> None:
    repo = repository.SqlAlchemyItemRepository(session)

    assert await repo.get("MISSING") is None
    assert repo.seen == set()


async def test_movement_repository_lists_by_reference(session: AsyncSession) -> None:
    session.add(
        models.Item(
            item_id="RETRO-LAMP",
            batches=[make_batch("450fac40-d02c-43a4-b9cb-f63d75c0a2e6", 4, datetime(2024, 2, 1))],
        )
    )
    await session.flush()
    repo = repository.SqlAlchemyMovementRepository(session)
    for reference in ("SR-1", "SR-2", "SR-1"):
        await repo.add(
            models.StockMovement(
                item_id="RETRO-LAMP",
                batch_id=UUID("450fac40-d02c-43a4-b9cb-f63d75c0a2e6"),
                quantity=1,
                unit_price=Decimal("12.50"),
                reference=reference,
                kind=models.SERVICE,
            )
        )
    await session.commit()

    movements = await repo.list_for_reference("SR-1")

    assert [m.reference for m in movements] == ["SR-1", "SR-1"]


async def test_repository_locks_item_row_unless_told_not_to(session: AsyncSession, mocker: MockerFixture) -> None:
    session.add(models.Item(item_id="RETRO-LAMP"))
    await session.commit()
    execute = mocker.spy(session, "execute")

    await repository.SqlAlchemyItemRepository(session).get("RETRO-LAMP")
    await repository.SqlAlchemyItemRepository(session).get("RETRO-LAMP", lock=False)

    locked, unlocked = (c.args[0] for c in execute.call_args_list)
    assert "FOR UPDATE" in str(locked)
    assert "FOR UPDATE" not in str(unlocked)
