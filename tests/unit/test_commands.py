from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from garage.stock.domain import commands
from garage.stock.domain.allocator import InvalidQuantity


@pytest.mark.parametrize("qty", [0, -1])
def test_release_requires_positive_quantity(qty: int) -> None:
    with pytest.raises(InvalidQuantity):
        commands.ReleaseStock("RADIATOR-CAP", qty, "REL-1")


@pytest.mark.parametrize("qty", [1.5, "3", True])
def test_quantity_must_be_an_integer(qty: object) -> None:
    with pytest.raises(InvalidQuantity):
        commands.PartRequest("RADIATOR-CAP", qty)  # type: ignore[arg-type]


def test_part_request_rejects_zero_quantity() -> None:
    with pytest.raises(InvalidQuantity):
        commands.UseParts("SR-1", [commands.PartRequest("RADIATOR-CAP", 0)])


def test_purchase_requires_positive_quantity() -> None:
    with pytest.raises(InvalidQuantity):
        commands.ReceivePurchase(uuid4(), "RADIATOR-CAP", 0, Decimal("5"), datetime(2024, 1, 1))


def test_adjust_batch_allows_zero_quantity() -> None:
    cmd = commands.AdjustBatch(uuid4(), 0)

    assert cmd.qty == 0


def test_adjust_batch_rejects_negative_quantity() -> None:
    with pytest.raises(InvalidQuantity):
        commands.AdjustBatch(uuid4(), -1)


def test_register_item_rejects_negative_restock_level() -> None:
    with pytest.raises(InvalidQuantity):
        commands.RegisterItem("RADIATOR-CAP", "Radiator cap", -1)


@pytest.mark.parametrize("restock_level", ["3", 2.5, None])
def test_register_item_requires_integer_restock_level(restock_level: object) -> None:
    with pytest.raises(InvalidQuantity):
        commands.RegisterItem("RADIATOR-CAP", "Radiator cap", restock_level)  # type: ignore[arg-type]


def test_part_request_draws_fifo_unless_a_batch_is_named() -> None:
    batch_id = uuid4()

    assert commands.PartRequest("RADIATOR-CAP", 1).batch_id is None
    assert commands.PartRequest("RADIATOR-CAP", 1, batch_id).batch_id == batch_id
