"""Orders domain: order aggregate, its line items, status lifecycle and the priced quote."""
from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Protocol, Sequence

from goldencrust.core.errors import InvalidTransition
from goldencrust.domain import DomainEvent
from goldencrust.domain.money import ZERO, money
from goldencrust.pricing.domain import AppliedDiscount


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def order_number(at: datetime) -> str:
    return f"ORD-{at:%Y%m%d}-{secrets.token_hex(3).upper()}"


@dataclass(frozen=True)
class LineRequest:
    product_id: str
    quantity: int


@dataclass
class OrderItem:
    """A priced line. unit_price and amounts are the snapshot taken when the order was placed."""
    product_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    price_list_id: Optional[str] = None
    discount_id: Optional[str] = None
    discount_amount: Decimal = ZERO

    @property
    def gross(self) -> Decimal:
        return money(self.unit_price * self.quantity)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "price_list_id": self.price_list_id,
            "discount_id": self.discount_id,
            "discount_amount": self.discount_amount,
            "total_price": self.total_price,
        }


@dataclass
class OrderQuote:
    items: list[OrderItem]
    subtotal: Decimal
    total_amount: Decimal
    order_discount: Optional[AppliedDiscount] = None
    customer_group: Optional[str] = None

    @property
    def order_discount_amount(self) -> Decimal:
        return self.order_discount.amount if self.order_discount is not None else ZERO

    def discount_ids(self) -> list[str]:
        """Distinct discounts used by this quote, in first-use order (lines, then order level)."""
        ids: list[str] = []
        for item in self.items:
            if item.discount_id is not None and item.discount_id not in ids:
                ids.append(item.discount_id)
        if self.order_discount is not None and self.order_discount.discount_id not in ids:
            ids.append(self.order_discount.discount_id)
        return ids

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal,
            "order_discount": self.order_discount.to_dict() if self.order_discount is not None else None,
            "total_amount": self.total_amount,
            "customer_group": self.customer_group,
        }


@dataclass
class Order:
    id: str
    order_number: str
    items: list[OrderItem]
    subtotal: Decimal
    total_amount: Decimal
    status: OrderStatus = OrderStatus.PENDING
    customer_id: Optional[str] = None
    customer_group: Optional[str] = None
    order_discount_id: Optional[str] = None
    order_discount_amount: Decimal = ZERO
    created_by: Optional[str] = None
    notes: str = ""
    order_date: datetime = field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None

    @classmethod
    def from_quote(
        cls,
        id: str,
        quote: OrderQuote,
        *,
        at: datetime,
        customer_id: Optional[str] = None,
        created_by: Optional[str] = None,
        notes: str = "",
    ) -> Order:
        return cls(
            id=id,
            order_number=order_number(at),
            items=list(quote.items),
            subtotal=quote.subtotal,
            total_amount=quote.total_amount,
            customer_id=customer_id,
            customer_group=quote.customer_group,
            order_discount_id=quote.order_discount.discount_id if quote.order_discount is not None else None,
            order_discount_amount=quote.order_discount_amount,
            created_by=created_by,
            notes=notes,
            order_date=at,
        )

    def transition_to(self, status: OrderStatus, at: datetime) -> OrderStatus:
        """Move along the lifecycle; returns the previous status."""
        if status not in TRANSITIONS[self.status]:
            raise InvalidTransition(f"order cannot go from {self.status.value} to {status.value}")
        previous, self.status = self.status, status
        self.updated_at = at
        return previous


@dataclass
class OrderCreated(DomainEvent):
    order_id: str
    order_number: str
    total_amount: Decimal


@dataclass
class OrderStatusChanged(DomainEvent):
    order_id: str
    previous: OrderStatus
    current: OrderStatus


class IOrderTotalCalculator(Protocol):
    async def compute_order(
        self,
        items: Sequence[LineRequest],
        customer_group: Optional[str] = None,
        exclude: Sequence[str] = (),
    ) -> OrderQuote:
        ...
