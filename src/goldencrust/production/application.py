"""Production application layer."""
from __future__ import annotations

import logging
from typing import Annotated, Any, Optional

from pydantic import Field
from pydantic.dataclasses import dataclass

from goldencrust.catalog.infrastructure import IProductRepository
from goldencrust.core.clock import Clock
from goldencrust.core.errors import Conflict
from goldencrust.ddd import Command, Query
from goldencrust.domain import EventBus
from goldencrust.inventory.domain import IStockLedger, MovementType
from goldencrust.store import new_id

from .domain import BatchCompleted, BatchStatus, ProductionBatch, batch_number
from .infrastructure import IBatchRepository

logger = logging.getLogger(__name__)


def batch_to_dict(b: ProductionBatch) -> dict[str, Any]:
    return {
        "id": b.id,
        "batch_number": b.batch_number,
        "product_id": b.product_id,
        "quantity": b.quantity,
        "status": b.status,
        "supervisor_id": b.supervisor_id,
        "notes": b.notes,
        "started_at": b.started_at,
        "completed_at": b.completed_at,
        "created_at": b.created_at,
    }


@dataclass
class CreateBatch(Command):
    product_id: str
    quantity: Annotated[int, Field(ge=1)]
    notes: str = ""
    supervisor_id: Optional[str] = None
    actor_id: Optional[str] = None


@dataclass
class ListBatches(Query):
    status: Optional[BatchStatus] = None


@dataclass
class UpdateBatchStatus(Command):
    batch_id: str
    status: BatchStatus
    actor_id: Optional[str] = None


class CreateBatchHandler:
    def __init__(self, batches: IBatchRepository, products: IProductRepository, clock: Clock):
        self._batches = batches
        self._products = products
        self._clock = clock

    async def __call__(self, cmd: CreateBatch) -> dict:
        await self._products.require(cmd.product_id)
        now = self._clock.now()
        batch = ProductionBatch(
            id=new_id(),
            batch_number=batch_number(now),
            product_id=cmd.product_id,
            quantity=cmd.quantity,
            supervisor_id=cmd.supervisor_id or cmd.actor_id,
            notes=cmd.notes,
            created_at=now,
        )
        await self._batches.add(batch)
        return batch_to_dict(batch)


class ListBatchesHandler:
    def __init__(self, batches: IBatchRepository):
        self._batches = batches

    async def __call__(self, query: ListBatches) -> list[dict]:
        return [batch_to_dict(b) for b in await self._batches.list_all(status=query.status)]


class UpdateBatchStatusHandler:
    """Completing a batch books its quantity into stock as a production movement."""

    def __init__(self, batches: IBatchRepository, ledger: IStockLedger, event_bus: EventBus, clock: Clock):
        self._batches = batches
        self._ledger = ledger
        self._event_bus = event_bus
        self._clock = clock

    async def __call__(self, cmd: UpdateBatchStatus) -> dict:
        batch = await self._batches.require(cmd.batch_id)
        previous = batch.transition_to(cmd.status, self._clock.now())
        if not await self._batches.change_status(batch, previous):
            raise Conflict("batch status was changed by another request")
        if batch.status is BatchStatus.COMPLETED:
            try:
                await self._ledger.record(
                    batch.product_id,
                    MovementType.PRODUCTION,
                    batch.quantity,
                    reason=f"batch {batch.batch_number} completed",
                    reference_id=batch.id,
                    user_id=cmd.actor_id,
                )
            except Exception:
                logger.warning("stock booking failed for batch %s, reverting to %s", batch.id, previous.value)
                batch.status, batch.completed_at = previous, None
                await self._batches.change_status(batch, BatchStatus.COMPLETED)
                raise
            await self._event_bus.publish(
                BatchCompleted(
                    batch_id=batch.id,
                    batch_number=batch.batch_number,
                    product_id=batch.product_id,
                    quantity=batch.quantity,
                )
            )
        return batch_to_dict(batch)
