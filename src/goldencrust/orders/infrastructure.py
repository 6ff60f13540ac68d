"""Orders persistence and the order total calculator."""
from __future__ import annotations

import logging
from abc import abstractmethod
from decimal import Decimal
from typing import Optional, Sequence

from goldencrust.core.clock import Clock
from goldencrust.core.errors import ValidationError
from goldencrust.domain import Repository
from goldencrust.domain.money import ZERO, money
from goldencrust.pricing.domain import DiscountTarget, IDiscountEvaluator, IPriceListResolver
from goldencrust.store import Document, DocumentRepository

from .domain import LineRequest, Order, OrderItem, OrderQuote, OrderStatus

logger = logging.getLogger(__name__)


class IOrderRepository(Repository[Order]):
    entity_name = "order"

    @abstractmethod
    async def list_all(self, *, status: Optional[OrderStatus] = None, customer_id: Optional[str] = None) -> list[Order]:
        ...

    @abstractmethod
    async def change_status(self, order: Order, previous: OrderStatus) -> bool:
        """Write order.status only if the stored status is still previous."""
        ...


def _item_to_document(item: OrderItem) -> Document:
    return {
        "product_id": item.product_id,
        "product_name": item.product_name,
        "quantity": item.quantity,
        "unit_price": str(item.unit_price),
        "price_list_id": item.price_list_id,
        "discount_id": item.discount_id,
        "discount_amount": str(item.discount_amount),
        "total_price": str(item.total_price),
    }


def _item_from_document(d: Document) -> OrderItem:
    return OrderItem(
        product_id=d["product_id"],
        product_name=d.get("product_name", ""),
        quantity=int(d["quantity"]),
        unit_price=Decimal(d["unit_price"]),
        total_price=Decimal(d["total_price"]),
        price_list_id=d.get("price_list_id"),
        discount_id=d.get("discount_id"),
        discount_amount=Decimal(d.get("discount_amount", "0.00")),
    )


class OrderRepositoryImpl(DocumentRepository[Order], IOrderRepository):
    collection = "orders"

    def to_document(self, entity: Order) -> Document:
        return {
            "_id": entity.id,
            "order_number": entity.order_number,
            "items": [_item_to_document(i) for i in entity.items],
            "subtotal": str(entity.subtotal),
            "order_discount_id": entity.order_discount_id,
            "order_discount_amount": str(entity.order_discount_amount),
            "total_amount": str(entity.total_amount),
            "status": entity.status.value,
            "customer_id": entity.customer_id,
            "customer_group": entity.customer_group,
            "created_by": entity.created_by,
            "notes": entity.notes,
            "order_date": entity.order_date,
            "updated_at": entity.updated_at,
        }

    def from_document(self, document: Document) -> Order:
        return Order(
            id=document["_id"],
            order_number=document["order_number"],
            items=[_item_from_document(i) for i in document.get("items", [])],
            subtotal=Decimal(document["subtotal"]),
            total_amount=Decimal(document["total_amount"]),
            status=OrderStatus(document.get("status", OrderStatus.PENDING.value)),
            customer_id=document.get("customer_id"),
            customer_group=document.get("customer_group"),
            order_discount_id=document.get("order_discount_id"),
            order_discount_amount=Decimal(document.get("order_discount_amount", "0.00")),
            created_by=document.get("created_by"),
            notes=document.get("notes", ""),
            order_date=document["order_date"],
            updated_at=document.get("updated_at"),
        )

    async def list_all(self, *, status: Optional[OrderStatus] = None, customer_id: Optional[str] = None) -> list[Order]:
        filter: Document = {}
        if status is not None:
            filter["status"] = status.value
        if customer_id is not None:
            filter["customer_id"] = customer_id
        return sorted(await self.find(filter), key=lambda o: o.order_date, reverse=True)

    async def change_status(self, order: Order, previous: OrderStatus) -> bool:
        updated = await self.update(
            order.id,
            {"$set": {"status": order.status.value, "updated_at": order.updated_at}},
            {"status": previous.value},
        )
        return updated is not None


class OrderTotalCalculatorImpl:
    """
    Prices a basket without writing anything.

    Every line's unit price is resolved first; the gross basket value
    (sum of quantity x unit price) then feeds minimum_order_value on the
    line discounts. After the best line discount per line, the best single
    order/customer discount is taken off the subtotal.
    """

    def __init__(self, resolver: IPriceListResolver, evaluator: IDiscountEvaluator, clock: Clock):
        self._resolver = resolver
        self._evaluator = evaluator
        self._clock = clock

    async def compute_order(
        self,
        items: Sequence[LineRequest],
        customer_group: Optional[str] = None,
        exclude: Sequence[str] = (),
    ) -> OrderQuote:
        if not items:
            raise ValidationError("an order needs at least one item", field="items")
        for index, line in enumerate(items):
            if line.quantity < 1:
                raise ValidationError(
                    "quantity must be at least 1",
                    details=[{"loc": ["items", index, "quantity"], "msg": "quantity must be at least 1"}],
                )

        at = self._clock.now()
        priced = []
        for line in items:
            product = await self._resolver.load_product(line.product_id)
            quote = await self._resolver.quote_product(product, line.quantity, customer_group, at)
            priced.append((product, line.quantity, quote))
        order_value = money(sum((q.unit_price * qty for _, qty, q in priced), ZERO))

        order_items: list[OrderItem] = []
        for product, quantity, quote in priced:
            gross = money(quote.unit_price * quantity)
            target = DiscountTarget(product_id=product.id, category_id=product.category_id, customer_group=customer_group)
            applied = await self._evaluator.best_for(
                target, quantity, order_value, gross, quote.unit_price, at=at, exclude=exclude
            )
            deduction = applied.amount if applied is not None else ZERO
            order_items.append(
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=quantity,
                    unit_price=quote.unit_price,
                    price_list_id=quote.price_list_id,
                    discount_id=applied.discount_id if applied is not None else None,
                    discount_amount=deduction,
                    total_price=money(gross - deduction),
                )
            )

        subtotal = money(sum((i.total_price for i in order_items), ZERO))
        total_quantity = sum(i.quantity for i in order_items)
        order_discount = await self._evaluator.best_for(
            DiscountTarget(customer_group=customer_group),
            total_quantity,
            subtotal,
            subtotal,
            at=at,
            exclude=exclude,
        )
        total = subtotal - order_discount.amount if order_discount is not None else subtotal
        logger.debug("priced %d line(s): subtotal %s, total %s", len(order_items), subtotal, total)
        return OrderQuote(
            items=order_items,
            subtotal=subtotal,
            total_amount=money(total),
            order_discount=order_discount,
            customer_group=customer_group,
        )
