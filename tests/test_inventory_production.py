"""Stock movements and production batches."""
import pytest

from goldencrust.catalog.infrastructure import IProductRepository
from goldencrust.core.errors import InvalidTransition, NotFound, ValidationError
from goldencrust.domain import EventBus
from goldencrust.inventory.domain import IStockLedger, MovementType, StockLow
from goldencrust.inventory.infrastructure import IMovementRepository, StockLedgerImpl
from goldencrust.production.application import (
    CreateBatch,
    CreateBatchHandler,
    UpdateBatchStatus,
    UpdateBatchStatusHandler,
)
from goldencrust.production.domain import BatchStatus
from goldencrust.production.infrastructure import IBatchRepository


class TestStockLedger:
    async def test_in_and_out(self, container, factory):
        product = await factory.product(stock=10)
        ledger = container.resolve(IStockLedger)

        received = await ledger.record(product.id, MovementType.IN, 5)
        sold = await ledger.record(product.id, MovementType.OUT, 12)

        assert (received.stock_after, sold.stock_after) == (15, 3)
        assert (await container.resolve(IProductRepository).get(product.id)).stock == 3

    async def test_out_never_drives_stock_negative(self, container, factory):
        product = await factory.product(stock=2)
        with pytest.raises(ValidationError):
            await container.resolve(IStockLedger).record(product.id, MovementType.OUT, 3)
        assert (await container.resolve(IProductRepository).get(product.id)).stock == 2
        assert await container.resolve(IMovementRepository).list_all() == []

    async def test_adjustment_sets_counted_stock(self, container, factory):
        product = await factory.product(stock=40)
        movement = await container.resolve(IStockLedger).record(product.id, MovementType.ADJUSTMENT, 0, reason="stocktake")
        assert movement.stock_after == 0

    async def test_low_stock_is_signalled(self, container, factory, recorded):
        low = recorded(StockLow)
        product = await factory.product(stock=25, min_stock=20)
        await container.resolve(IStockLedger).record(product.id, MovementType.OUT, 10)
        assert [(e.product_id, e.stock) for e in low] == [(product.id, 15)]

    async def test_unknown_product(self, container):
        with pytest.raises(NotFound):
            await container.resolve(IStockLedger).record("missing", MovementType.IN, 1)


class TestProductionBatches:
    async def test_completion_books_stock(self, container, factory):
        product = await factory.product(stock=5)
        batch = await container.resolve(CreateBatchHandler)(CreateBatch(product_id=product.id, quantity=40, actor_id="u-baker"))
        update = container.resolve(UpdateBatchStatusHandler)

        await update(UpdateBatchStatus(batch_id=batch["id"], status="in_progress"))
        done = await update(UpdateBatchStatus(batch_id=batch["id"], status="completed"))

        assert batch["batch_number"].startswith("PB-20250615-")
        assert batch["supervisor_id"] == "u-baker"
        assert done["status"] is BatchStatus.COMPLETED
        assert done["completed_at"] is not None
        assert (await container.resolve(IProductRepository).get(product.id)).stock == 45
        movements = await container.resolve(IMovementRepository).list_all(product_id=product.id)
        assert [(m.type, m.quantity, m.reference_id) for m in movements] == [(MovementType.PRODUCTION, 40, batch["id"])]

    async def test_planned_batch_cannot_complete(self, container, factory):
        product = await factory.product()
        batch = await container.resolve(CreateBatchHandler)(CreateBatch(product_id=product.id, quantity=10))
        with pytest.raises(InvalidTransition):
            await container.resolve(UpdateBatchStatusHandler)(UpdateBatchStatus(batch_id=batch["id"], status="completed"))


class BrokenMovements:
    async def add(self, movement):
        raise RuntimeError("movement store unavailable")


class BrokenLedger:
    async def record(self, product_id, type, quantity, **kwargs):
        raise RuntimeError("ledger unavailable")


class TestFailedWritesAreUndone:
    @pytest.mark.parametrize(
        "type, quantity",
        [(MovementType.IN, 5), (MovementType.OUT, 4), (MovementType.PRODUCTION, 30), (MovementType.ADJUSTMENT, 0)],
    )
    async def test_stock_restored_when_movement_insert_fails(self, container, factory, clock, type, quantity):
        product = await factory.product(stock=10)
        products = container.resolve(IProductRepository)
        ledger = StockLedgerImpl(products, BrokenMovements(), container.resolve(EventBus), clock)

        with pytest.raises(RuntimeError):
            await ledger.record(product.id, type, quantity)

        assert (await products.get(product.id)).stock == 10

    async def test_batch_stays_in_progress_when_booking_fails(self, container, factory, clock):
        product = await factory.product(stock=5)
        batch = await container.resolve(CreateBatchHandler)(CreateBatch(product_id=product.id, quantity=40))
        await container.resolve(UpdateBatchStatusHandler)(UpdateBatchStatus(batch_id=batch["id"], status="in_progress"))
        batches = container.resolve(IBatchRepository)
        update = UpdateBatchStatusHandler(batches, BrokenLedger(), container.resolve(EventBus), clock)

        with pytest.raises(RuntimeError):
            await update(UpdateBatchStatus(batch_id=batch["id"], status="completed"))

        stored = await batches.get(batch["id"])
        assert stored.status is BatchStatus.IN_PROGRESS
        assert stored.completed_at is None
        assert (await container.resolve(IProductRepository).get(product.id)).stock == 5
