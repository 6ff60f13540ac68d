"""In-process event dispatch."""
import pytest

from goldencrust.domain import DomainEvent
from goldencrust.domain.events import InProcessEventDispatcher
from goldencrust.inventory.domain import StockLow
from goldencrust.production.domain import BatchCompleted


class TestInProcessEventDispatcher:
    async def test_base_class_subscribers_see_every_event(self):
        bus = InProcessEventDispatcher()
        everything, low = [], []
        bus.subscribe(DomainEvent, everything.append)
        bus.subscribe(StockLow, low.append)

        await bus.publish(StockLow(product_id="p1", stock=3, min_stock=10))
        await bus.publish(BatchCompleted(batch_id="b1", batch_number="PB-1", product_id="p1", quantity=40))

        assert [type(e).__name__ for e in everything] == ["StockLow", "BatchCompleted"]
        assert [e.product_id for e in low] == ["p1"]

    async def test_async_handlers_are_awaited_in_order(self):
        bus = InProcessEventDispatcher()
        calls = []

        async def first(event):
            calls.append("first")

        bus.subscribe(StockLow, first)
        bus.subscribe(StockLow, lambda event: calls.append("second"))
        await bus.publish(StockLow(product_id="p1", stock=0, min_stock=5))

        assert calls == ["first", "second"]

    async def test_handler_errors_reach_the_publisher(self):
        bus = InProcessEventDispatcher()

        def broken(event):
            raise RuntimeError("handler failed")

        bus.subscribe(StockLow, broken)
        with pytest.raises(RuntimeError):
            await bus.publish(StockLow(product_id="p1", stock=0, min_stock=5))
