from typing import Any

from garage.stock.domain import commands
from garage.stock.service_layer import handlers, unit_of_work

HANDLERS: dict[type[commands.Command], Any] = {
    commands.RegisterItem: handlers.RegisterItemCmdHandler,
    commands.ReceivePurchase: handlers.ReceivePurchaseCmdHandler,
    commands.UseParts: handlers.UsePartsCmdHandler,
    commands.ReleaseStock: handlers.ReleaseStockCmdHandler,
    commands.AdjustBatch: handlers.AdjustBatchCmdHandler,
    commands.ReturnParts: handlers.ReturnPartsCmdHandler,
}


async def handle(message: commands.Command, uow: unit_of_work.AbstractUnitOfWork) -> Any:
    handler = HANDLERS.get(type(message))
    if handler is None:
        raise Exception(f"Unknown message {message}")
    return await handler(uow).handle(message)
