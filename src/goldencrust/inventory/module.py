"""One object = full bounded context «inventory»."""
import logging

from goldencrust.core.access import roles
from goldencrust.ddd import DomainModule

from .application import (
    ListMovements,
    ListMovementsHandler,
    LowStock,
    LowStockHandler,
    RecordMovement,
    RecordMovementHandler,
)
from .domain import InventoryMovement, IStockLedger, StockLow
from .infrastructure import IMovementRepository, MovementRepositoryImpl, StockLedgerImpl

logger = logging.getLogger(__name__)

STOCK_KEEPERS = roles("admin", "inventory")


def warn_stock_low(event: StockLow) -> None:
    logger.warning("product %s is low on stock: %d left (minimum %d)", event.product_id, event.stock, event.min_stock)


inventory_module = (
    DomainModule("inventory")
    .aggregate(InventoryMovement)
    .repository(IMovementRepository, MovementRepositoryImpl)
    .bind(IStockLedger, StockLedgerImpl)
    .query(ListMovements, ListMovementsHandler, path="/api/inventory/movements", roles=STOCK_KEEPERS)
    .command(RecordMovement, RecordMovementHandler, path="/api/inventory/movements", roles=STOCK_KEEPERS, status_code=201)
    .query(LowStock, LowStockHandler, path="/api/inventory/low-stock", roles=STOCK_KEEPERS)
    .on_event(StockLow, warn_stock_low)
)
