"""Orders application layer: quoting, placing orders with discount redemption, status changes."""
from __future__ import annotations

import logging
from typing import Annotated, Any, Optional

from pydantic import Field
from pydantic.dataclasses import dataclass

from goldencrust.core.clock import Clock
from goldencrust.core.errors import Conflict, DiscountExhausted
from goldencrust.ddd import Command, Query
from goldencrust.domain import EventBus
from goldencrust.pricing.domain import Discount, DiscountExhaustedEvent, DiscountRedeemed
from goldencrust.pricing.infrastructure import IDiscountRepository
from goldencrust.store import new_id

from .domain import (
    IOrderTotalCalculator,
    LineRequest,
    Order,
    OrderCreated,
    OrderStatus,
    OrderStatusChanged,
)
from .infrastructure import IOrderRepository

logger = logging.getLogger(__name__)


def order_to_dict(o: Order) -> dict[str, Any]:
    return {
        "id": o.id,
        "order_number": o.order_number,
        "customer_id": o.customer_id,
        "customer_group": o.customer_group,
        "items": [item.to_dict() for item in o.items],
        "subtotal": o.subtotal,
        "order_discount_id": o.order_discount_id,
        "order_discount_amount": o.order_discount_amount,
        "total_amount": o.total_amount,
        "status": o.status,
        "order_date": o.order_date,
        "created_by": o.created_by,
        "notes": o.notes,
        "updated_at": o.updated_at,
    }


@dataclass
class LineItem:
    product_id: Annotated[str, Field(min_length=1)]
    quantity: Annotated[int, Field(ge=1)]


def _lines(items: list[LineItem]) -> list[LineRequest]:
    return [LineRequest(product_id=i.product_id, quantity=i.quantity) for i in items]


@dataclass
class QuoteOrder(Query):
    items: list[LineItem]
    customer_group: Optional[str] = None


@dataclass
class CreateOrder(Command):
    items: list[LineItem]
    customer_group: Optional[str] = None
    customer_id: Optional[str] = None
    notes: str = ""
    actor_id: Optional[str] = None


@dataclass
class GetOrder(Query):
    order_id: str


@dataclass
class ListOrders(Query):
    status: Optional[OrderStatus] = None
    customer_id: Optional[str] = None


@dataclass
class UpdateOrderStatus(Command):
    order_id: str
    status: OrderStatus


class QuoteOrderHandler:
    def __init__(self, calculator: IOrderTotalCalculator):
        self._calculator = calculator

    async def __call__(self, query: QuoteOrder) -> dict:
        quote = await self._calculator.compute_order(_lines(query.items), query.customer_group)
        return quote.to_dict()


class CreateOrderHandler:
    """
    Price the basket, take one use of every discount the price relies on,
    then store the order.

    Uses are taken with an atomic conditional increment. When a discount runs
    out between pricing and redemption, the uses already taken for this order
    are given back and the basket is priced again without that discount.
    Each round excludes one more discount, so the loop ends.
    """

    def __init__(
        self,
        calculator: IOrderTotalCalculator,
        orders: IOrderRepository,
        discounts: IDiscountRepository,
        event_bus: EventBus,
        clock: Clock,
    ):
        self._calculator = calculator
        self._orders = orders
        self._discounts = discounts
        self._event_bus = event_bus
        self._clock = clock

    async def __call__(self, cmd: CreateOrder) -> dict:
        lines = _lines(cmd.items)
        order_id = new_id()
        excluded: list[str] = []
        while True:
            quote = await self._calculator.compute_order(lines, cmd.customer_group, excluded)
            try:
                redeemed = await self._redeem(quote.discount_ids())
            except DiscountExhausted as exc:
                logger.info("discount %s exhausted while placing order %s; repricing", exc.discount_id, order_id)
                excluded.append(exc.discount_id)
                await self._event_bus.publish(DiscountExhaustedEvent(discount_id=exc.discount_id, order_id=order_id))
                continue
            break

        order = Order.from_quote(
            order_id,
            quote,
            at=self._clock.now(),
            customer_id=cmd.customer_id,
            created_by=cmd.actor_id,
            notes=cmd.notes,
        )
        try:
            await self._orders.add(order)
        except Exception:
            await self._release(redeemed)
            raise

        await self._event_bus.publish(
            OrderCreated(order_id=order.id, order_number=order.order_number, total_amount=order.total_amount)
        )
        for discount in redeemed:
            await self._event_bus.publish(
                DiscountRedeemed(discount_id=discount.id, order_id=order.id, used_count=discount.used_count)
            )
        return order_to_dict(order)

    async def _redeem(self, discount_ids: list[str]) -> list[Discount]:
        taken: list[Discount] = []
        try:
            for discount_id in discount_ids:
                discount = await self._discounts.get(discount_id)
                updated = await self._discounts.redeem(discount) if discount is not None else None
                if updated is None:
                    raise DiscountExhausted(discount_id)
                taken.append(updated)
        except Exception:
            await self._release(taken)
            raise
        return taken

    async def _release(self, discounts: list[Discount]) -> None:
        for discount in discounts:
            await self._discounts.release(discount.id)


class GetOrderHandler:
    def __init__(self, orders: IOrderRepository):
        self._orders = orders

    async def __call__(self, query: GetOrder) -> dict:
        order = await self._orders.require(query.order_id)
        return order_to_dict(order)


class ListOrdersHandler:
    def __init__(self, orders: IOrderRepository):
        self._orders = orders

    async def __call__(self, query: ListOrders) -> list[dict]:
        orders = await self._orders.list_all(status=query.status, customer_id=query.customer_id)
        return [order_to_dict(o) for o in orders]


class UpdateOrderStatusHandler:
    def __init__(self, orders: IOrderRepository, event_bus: EventBus, clock: Clock):
        self._orders = orders
        self._event_bus = event_bus
        self._clock = clock

    async def __call__(self, cmd: UpdateOrderStatus) -> dict:
        order = await self._orders.require(cmd.order_id)
        previous = order.transition_to(cmd.status, self._clock.now())
        if not await self._orders.change_status(order, previous):
            raise Conflict("order status was changed by another request")
        await self._event_bus.publish(OrderStatusChanged(order_id=order.id, previous=previous, current=order.status))
        return order_to_dict(order)
