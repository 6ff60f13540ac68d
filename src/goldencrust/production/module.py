"""One object = full bounded context «production»."""
import logging

from goldencrust.core.access import roles
from goldencrust.ddd import DomainModule

from .application import (
    CreateBatch,
    CreateBatchHandler,
    ListBatches,
    ListBatchesHandler,
    UpdateBatchStatus,
    UpdateBatchStatusHandler,
)
from .domain import BatchCompleted, ProductionBatch
from .infrastructure import BatchRepositoryImpl, IBatchRepository

logger = logging.getLogger(__name__)

BAKERS = roles("admin", "production")


def log_batch_completed(event: BatchCompleted) -> None:
    logger.info("batch %s completed: %d x %s", event.batch_number, event.quantity, event.product_id)


production_module = (
    DomainModule("production")
    .aggregate(ProductionBatch)
    .repository(IBatchRepository, BatchRepositoryImpl)
    .query(ListBatches, ListBatchesHandler, path="/api/production/batches", roles=BAKERS)
    .command(CreateBatch, CreateBatchHandler, path="/api/production/batches", roles=BAKERS, status_code=201)
    .command(UpdateBatchStatus, UpdateBatchStatusHandler, path="/api/production/batches/{batch_id}/status", method="PUT", roles=BAKERS)
    .on_event(BatchCompleted, log_batch_completed)
)
