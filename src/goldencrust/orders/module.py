"""One object = full bounded context «orders»."""
import logging

from goldencrust.core.access import roles
from goldencrust.ddd import DomainModule

from .application import (
    CreateOrder,
    CreateOrderHandler,
    GetOrder,
    GetOrderHandler,
    ListOrders,
    ListOrdersHandler,
    QuoteOrder,
    QuoteOrderHandler,
    UpdateOrderStatus,
    UpdateOrderStatusHandler,
)
from .domain import IOrderTotalCalculator, Order, OrderCreated, OrderStatusChanged
from .infrastructure import IOrderRepository, OrderRepositoryImpl, OrderTotalCalculatorImpl

logger = logging.getLogger(__name__)

ORDER_DESK = roles("admin", "sales")
QUOTING = roles("admin", "sales", "distributor")


def log_order_created(event: OrderCreated) -> None:
    logger.info("order %s (%s) placed, total %s", event.order_number, event.order_id, event.total_amount)


def log_status_changed(event: OrderStatusChanged) -> None:
    logger.info("order %s: %s -> %s", event.order_id, event.previous.value, event.current.value)


orders_module = (
    DomainModule("orders")
    .aggregate(Order)
    .repository(IOrderRepository, OrderRepositoryImpl)
    .bind(IOrderTotalCalculator, OrderTotalCalculatorImpl)
    .query(QuoteOrder, QuoteOrderHandler, path="/api/orders/quote", method="POST", roles=QUOTING)
    .query(ListOrders, ListOrdersHandler, path="/api/orders", roles=ORDER_DESK)
    .command(CreateOrder, CreateOrderHandler, path="/api/orders", roles=ORDER_DESK, status_code=201)
    .query(GetOrder, GetOrderHandler, path="/api/orders/{order_id}", roles=ORDER_DESK)
    .command(UpdateOrderStatus, UpdateOrderStatusHandler, path="/api/orders/{order_id}/status", method="PUT", roles=ORDER_DESK)
    .on_event(OrderCreated, log_order_created)
    .on_event(OrderStatusChanged, log_status_changed)
)
