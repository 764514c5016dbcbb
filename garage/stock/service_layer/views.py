from garage.stock.domain.allocator import AllocationPlan
from garage.stock.service_layer import unit_of_work
from garage.stock.service_layer.handlers import UnknownItem


async def preview_allocation(item_id: str, qty: int, uow: unit_of_work.AbstractUnitOfWork) -> AllocationPlan:
    async with uow:
        item = await uow.items.get(item_id, lock=False)
        if item is None:
            raise UnknownItem(f"Unknown item {item_id}")
        return item.preview(qty)
