"""Pricing: repositories and the implementations of the resolver and evaluator services."""
from __future__ import annotations

import logging
from abc import abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from goldencrust.catalog.domain import Product
from goldencrust.catalog.infrastructure import IProductRepository
from goldencrust.core.clock import Clock
from goldencrust.core.errors import NotFound, ValidationError
from goldencrust.domain import Repository
from goldencrust.domain.money import ZERO
from goldencrust.store import Document, DocumentRepository

from .domain import (
    AppliedDiscount,
    ApplicationType,
    Discount,
    DiscountConditions,
    DiscountTarget,
    DiscountType,
    PriceList,
    PriceListType,
    PriceQuote,
    best_discount,
    select_price_list,
)

logger = logging.getLogger(__name__)


class IPriceListRepository(Repository[PriceList]):
    entity_name = "price list"

    @abstractmethod
    async def list_all(self) -> list[PriceList]:
        ...

    @abstractmethod
    async def find_candidates(self, quantity: int) -> list[PriceList]:
        """Active lists whose min_quantity does not exceed quantity."""
        ...


class IDiscountRepository(Repository[Discount]):
    entity_name = "discount"

    @abstractmethod
    async def list_all(self) -> list[Discount]:
        ...

    @abstractmethod
    async def find_enabled(self) -> list[Discount]:
        ...

    @abstractmethod
    async def redeem(self, discount: Discount) -> Optional[Discount]:
        """Atomically take one use; None when the limit was reached (or the discount was disabled) meanwhile."""
        ...

    @abstractmethod
    async def release(self, discount_id: str) -> None:
        """Give back one use taken by redeem()."""
        ...

    @abstractmethod
    async def set_used_count(self, discount_id: str, used_count: int) -> Optional[Discount]:
        ...


class PriceListRepositoryImpl(DocumentRepository[PriceList], IPriceListRepository):
    collection = "price_lists"

    def to_document(self, entity: PriceList) -> Document:
        return {
            "_id": entity.id,
            "name": entity.name,
            "description": entity.description,
            "type": entity.type.value,
            "min_quantity": entity.min_quantity,
            "is_active": entity.is_active,
            "valid_from": entity.valid_from,
            "valid_to": entity.valid_to,
            "customer_group": entity.customer_group,
            "prices": {pid: str(price) for pid, price in entity.prices.items()},
            "discount_percentage": str(entity.discount_percentage) if entity.discount_percentage is not None else None,
            "created_at": entity.created_at,
        }

    def from_document(self, document: Document) -> PriceList:
        pct = document.get("discount_percentage")
        return PriceList(
            id=document["_id"],
            name=document["name"],
            description=document.get("description", ""),
            type=PriceListType(document.get("type", PriceListType.STANDARD.value)),
            min_quantity=int(document.get("min_quantity", 1)),
            is_active=bool(document.get("is_active", True)),
            valid_from=document.get("valid_from"),
            valid_to=document.get("valid_to"),
            customer_group=document.get("customer_group"),
            prices={pid: Decimal(price) for pid, price in (document.get("prices") or {}).items()},
            discount_percentage=Decimal(pct) if pct is not None else None,
            created_at=document["created_at"],
        )

    async def list_all(self) -> list[PriceList]:
        return sorted(await self.find(), key=lambda p: (p.min_quantity, p.name.lower()))

    async def find_candidates(self, quantity: int) -> list[PriceList]:
        return await self.find({"is_active": True, "min_quantity": {"$lte": quantity}})


def _conditions_to_document(c: DiscountConditions) -> Document:
    return {
        "minimum_quantity": c.minimum_quantity,
        "minimum_order_value": str(c.minimum_order_value) if c.minimum_order_value is not None else None,
        "customer_groups": sorted(c.customer_groups) if c.customer_groups is not None else None,
        "buy_quantity": c.buy_quantity,
        "get_quantity": c.get_quantity,
    }


def _conditions_from_document(d: Optional[Document]) -> DiscountConditions:
    d = d or {}
    mov = d.get("minimum_order_value")
    groups = d.get("customer_groups")
    return DiscountConditions(
        minimum_quantity=d.get("minimum_quantity"),
        minimum_order_value=Decimal(mov) if mov is not None else None,
        customer_groups=frozenset(groups) if groups is not None else None,
        buy_quantity=d.get("buy_quantity"),
        get_quantity=d.get("get_quantity"),
    )


class DiscountRepositoryImpl(DocumentRepository[Discount], IDiscountRepository):
    collection = "discounts"

    def to_document(self, entity: Discount) -> Document:
        return {
            "_id": entity.id,
            "name": entity.name,
            "description": entity.description,
            "type": entity.type.value,
            "value": str(entity.value),
            "application_type": entity.application_type.value,
            "target_ids": sorted(entity.target_ids),
            "conditions": _conditions_to_document(entity.conditions),
            "valid_from": entity.valid_from,
            "valid_to": entity.valid_to,
            "is_active": entity.is_active,
            "usage_limit": entity.usage_limit,
            "used_count": entity.used_count,
            "created_at": entity.created_at,
        }

    def from_document(self, document: Document) -> Discount:
        return Discount(
            id=document["_id"],
            name=document["name"],
            description=document.get("description", ""),
            type=DiscountType(document["type"]),
            value=Decimal(document["value"]),
            application_type=ApplicationType(document["application_type"]),
            target_ids=frozenset(document.get("target_ids") or ()),
            conditions=_conditions_from_document(document.get("conditions")),
            valid_from=document["valid_from"],
            valid_to=document["valid_to"],
            is_active=bool(document.get("is_active", True)),
            usage_limit=document.get("usage_limit"),
            used_count=int(document.get("used_count", 0)),
            created_at=document["created_at"],
        )

    async def save(self, aggregate: Discount) -> None:
        # used_count only moves through redeem/release
        fields = {k: v for k, v in self.to_document(aggregate).items() if k not in ("_id", "used_count")}
        await self.update(aggregate.id, {"$set": fields})

    async def set_used_count(self, discount_id: str, used_count: int) -> Optional[Discount]:
        return await self.update(discount_id, {"$set": {"used_count": used_count}})

    async def list_all(self) -> list[Discount]:
        return sorted(await self.find(), key=lambda d: (d.valid_from, d.name.lower()))

    async def find_enabled(self) -> list[Discount]:
        return await self.find({"is_active": True})

    async def redeem(self, discount: Discount) -> Optional[Discount]:
        if discount.usage_limit is None:
            predicate: Document = {"is_active": True, "usage_limit": None}
        else:
            predicate = {
                "is_active": True,
                "usage_limit": discount.usage_limit,
                "used_count": {"$lt": discount.usage_limit},
            }
        return await self.update(discount.id, {"$inc": {"used_count": 1}}, predicate)

    async def release(self, discount_id: str) -> None:
        await self.update(discount_id, {"$inc": {"used_count": -1}}, {"used_count": {"$gt": 0}})


class PriceListResolverImpl:
    def __init__(self, products: IProductRepository, price_lists: IPriceListRepository, clock: Clock):
        self._products = products
        self._price_lists = price_lists
        self._clock = clock

    async def load_product(self, product_id: str) -> Product:
        product = await self._products.get(product_id)
        if product is None or not product.is_active:
            raise NotFound("product", product_id)
        return product

    async def quote(
        self, product_id: str, quantity: int, customer_group: Optional[str] = None, at: Optional[datetime] = None
    ) -> PriceQuote:
        if quantity < 1:
            raise ValidationError("quantity must be at least 1", field="quantity")
        product = await self.load_product(product_id)
        return await self.quote_product(product, quantity, customer_group, at)

    async def quote_product(
        self, product: Product, quantity: int, customer_group: Optional[str] = None, at: Optional[datetime] = None
    ) -> PriceQuote:
        at = at or self._clock.now()
        candidates = await self._price_lists.find_candidates(quantity)
        chosen = select_price_list(candidates, product, quantity, customer_group, at)
        if chosen is None:
            logger.debug("no applicable price list for %s x%d (group=%s); using base price", product.id, quantity, customer_group)
            return PriceQuote(product.id, quantity, product.base_price, product.base_price)
        price_list, unit_price = chosen
        return PriceQuote(product.id, quantity, product.base_price, unit_price, price_list.id)

    async def resolve_price(
        self, product_id: str, quantity: int, customer_group: Optional[str] = None, at: Optional[datetime] = None
    ) -> Decimal:
        return (await self.quote(product_id, quantity, customer_group, at)).unit_price


class DiscountEvaluatorImpl:
    def __init__(self, discounts: IDiscountRepository, clock: Clock):
        self._discounts = discounts
        self._clock = clock

    async def active_discounts_for(
        self,
        target: DiscountTarget,
        quantity: int,
        order_value: Decimal,
        at: Optional[datetime] = None,
        exclude: Iterable[str] = (),
    ) -> list[Discount]:
        at = at or self._clock.now()
        excluded = set(exclude)
        found = [
            d for d in await self._discounts.find_enabled()
            if d.id not in excluded and d.applies_to(target, quantity, order_value, at)
        ]
        return sorted(found, key=lambda d: d.id)

    async def best_for(
        self,
        target: DiscountTarget,
        quantity: int,
        order_value: Decimal,
        base_amount: Decimal,
        unit_price: Decimal = ZERO,
        at: Optional[datetime] = None,
        exclude: Iterable[str] = (),
    ) -> Optional[AppliedDiscount]:
        candidates = await self.active_discounts_for(target, quantity, order_value, at, exclude)
        if target.is_order_scope:
            # buy-x-get-y needs a unit price; it has no meaning against an order subtotal
            candidates = [d for d in candidates if d.type is not DiscountType.BUY_X_GET_Y]
        return best_discount(candidates, base_amount, quantity, unit_price)


__all__ = [
    "IPriceListRepository",
    "IDiscountRepository",
    "PriceListRepositoryImpl",
    "DiscountRepositoryImpl",
    "PriceListResolverImpl",
    "DiscountEvaluatorImpl",
]
