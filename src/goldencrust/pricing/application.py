"""Pricing application layer: price list and discount maintenance, price and discount lookups."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import Field
from pydantic.dataclasses import dataclass

from goldencrust.core.clock import Clock, as_utc
from goldencrust.core.errors import ValidationError
from goldencrust.ddd import Command, PatchCommand, Query
from goldencrust.domain.money import ZERO, money
from goldencrust.store import new_id

from .domain import (
    ApplicationType,
    Discount,
    DiscountConditions,
    DiscountTarget,
    DiscountType,
    IDiscountEvaluator,
    IPriceListResolver,
    PriceList,
    PriceListType,
)
from .infrastructure import IDiscountRepository, IPriceListRepository

Price = Annotated[Decimal, Field(gt=0)]
Percent = Annotated[Decimal, Field(ge=0, le=100)]
Quantity = Annotated[int, Field(ge=1)]
Name = Annotated[str, Field(min_length=1, max_length=200)]

PRICE_LIST_NULLABLE = ("valid_from", "valid_to", "customer_group", "discount_percentage")


def price_list_to_dict(p: PriceList) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "type": p.type,
        "min_quantity": p.min_quantity,
        "is_active": p.is_active,
        "valid_from": p.valid_from,
        "valid_to": p.valid_to,
        "customer_group": p.customer_group,
        "prices": dict(p.prices),
        "discount_percentage": p.discount_percentage,
        "created_at": p.created_at,
    }


def discount_to_dict(d: Discount) -> dict[str, Any]:
    c = d.conditions
    return {
        "id": d.id,
        "name": d.name,
        "description": d.description,
        "type": d.type,
        "value": d.value,
        "application_type": d.application_type,
        "target_ids": sorted(d.target_ids),
        "conditions": {
            "minimum_quantity": c.minimum_quantity,
            "minimum_order_value": c.minimum_order_value,
            "customer_groups": sorted(c.customer_groups) if c.customer_groups is not None else None,
            "buy_quantity": c.buy_quantity,
            "get_quantity": c.get_quantity,
        },
        "valid_from": d.valid_from,
        "valid_to": d.valid_to,
        "is_active": d.is_active,
        "usage_limit": d.usage_limit,
        "used_count": d.used_count,
        "created_at": d.created_at,
    }


def _check_window(valid_from: Optional[datetime], valid_to: Optional[datetime]) -> None:
    if valid_from is not None and valid_to is not None and valid_to < valid_from:
        raise ValidationError("valid_to must not be earlier than valid_from", field="valid_to")


def _optional_utc(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


@dataclass
class Conditions:
    minimum_quantity: Optional[Quantity] = None
    minimum_order_value: Optional[Annotated[Decimal, Field(ge=0)]] = None
    customer_groups: Optional[list[str]] = None
    buy_quantity: Optional[Quantity] = None
    get_quantity: Optional[Quantity] = None

    def to_domain(self) -> DiscountConditions:
        return DiscountConditions(
            minimum_quantity=self.minimum_quantity,
            minimum_order_value=money(self.minimum_order_value) if self.minimum_order_value is not None else None,
            customer_groups=frozenset(self.customer_groups) if self.customer_groups is not None else None,
            buy_quantity=self.buy_quantity,
            get_quantity=self.get_quantity,
        )


@dataclass
class CreatePriceList(Command):
    name: Name
    type: PriceListType = PriceListType.STANDARD
    description: str = ""
    min_quantity: Quantity = 1
    is_active: bool = True
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    customer_group: Optional[str] = None
    prices: dict[str, Price] = Field(default_factory=dict)
    discount_percentage: Optional[Percent] = None


@dataclass
class UpdatePriceList(PatchCommand):
    """`prices` replaces the whole mapping when given; null clears the window, group or percentage."""
    price_list_id: str
    name: Optional[Name] = None
    type: Optional[PriceListType] = None
    description: Optional[str] = None
    min_quantity: Optional[Quantity] = None
    is_active: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    customer_group: Optional[str] = None
    prices: Optional[dict[str, Price]] = None
    discount_percentage: Optional[Percent] = None


@dataclass
class DeactivatePriceList(Command):
    price_list_id: str


@dataclass
class ListPriceLists(Query):
    include_inactive: bool = True


@dataclass
class ActivePriceLists(Query):
    customer_group: Optional[str] = None


@dataclass
class ResolvePrice(Query):
    product_id: str
    quantity: Quantity = 1
    customer_group: Optional[str] = None


@dataclass
class CreateDiscount(Command):
    name: Name
    type: DiscountType
    value: Price
    application_type: ApplicationType
    valid_from: datetime
    valid_to: datetime
    description: str = ""
    target_ids: list[str] = Field(default_factory=list)
    conditions: Conditions = Field(default_factory=Conditions)
    is_active: bool = True
    usage_limit: Optional[Quantity] = None


@dataclass
class UpdateDiscount(PatchCommand):
    """null on usage_limit makes the discount unlimited again."""
    discount_id: str
    name: Optional[Name] = None
    type: Optional[DiscountType] = None
    value: Optional[Price] = None
    application_type: Optional[ApplicationType] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    description: Optional[str] = None
    target_ids: Optional[list[str]] = None
    conditions: Optional[Conditions] = None
    is_active: Optional[bool] = None
    usage_limit: Optional[Quantity] = None
    used_count: Optional[Annotated[int, Field(ge=0)]] = None


@dataclass
class DeactivateDiscount(Command):
    discount_id: str


@dataclass
class ListDiscounts(Query):
    include_inactive: bool = True


@dataclass
class ActiveDiscounts(Query):
    pass


@dataclass
class ApplicableDiscounts(Query):
    """Discounts a line (product_id given) or a whole order (no product_id) would qualify for."""
    product_id: Optional[str] = None
    category_id: Optional[str] = None
    customer_group: Optional[str] = None
    quantity: Quantity = 1
    order_value: Annotated[Decimal, Field(ge=0)] = ZERO


def _check_discount(d: Discount) -> None:
    if d.type is DiscountType.PERCENTAGE and d.value > Decimal(100):
        raise ValidationError("percentage discount cannot exceed 100", field="value")
    if d.type is DiscountType.BUY_X_GET_Y and not (d.conditions.buy_quantity and d.conditions.get_quantity):
        raise ValidationError(
            "buy_x_get_y requires conditions.buy_quantity and conditions.get_quantity",
            field="conditions",
        )
    if d.application_type in (ApplicationType.PRODUCT, ApplicationType.CATEGORY) and not d.target_ids:
        raise ValidationError(f"{d.application_type.value} discounts need target_ids", field="target_ids")
    _check_window(d.valid_from, d.valid_to)


class CreatePriceListHandler:
    def __init__(self, price_lists: IPriceListRepository):
        self._price_lists = price_lists

    async def __call__(self, cmd: CreatePriceList) -> dict:
        valid_from, valid_to = _optional_utc(cmd.valid_from), _optional_utc(cmd.valid_to)
        _check_window(valid_from, valid_to)
        price_list = PriceList(
            id=new_id(),
            name=cmd.name,
            type=cmd.type,
            description=cmd.description,
            min_quantity=cmd.min_quantity,
            is_active=cmd.is_active,
            valid_from=valid_from,
            valid_to=valid_to,
            customer_group=cmd.customer_group,
            prices={pid: money(price) for pid, price in cmd.prices.items()},
            discount_percentage=cmd.discount_percentage,
        )
        await self._price_lists.add(price_list)
        return price_list_to_dict(price_list)


class UpdatePriceListHandler:
    def __init__(self, price_lists: IPriceListRepository):
        self._price_lists = price_lists

    async def __call__(self, cmd: UpdatePriceList) -> dict:
        price_list = await self._price_lists.require(cmd.price_list_id)
        changes = cmd.changes(
            "name",
            "type",
            "description",
            "min_quantity",
            "is_active",
            "valid_from",
            "valid_to",
            "customer_group",
            "prices",
            "discount_percentage",
            nullable=PRICE_LIST_NULLABLE,
        )
        for name in ("valid_from", "valid_to"):
            if name in changes:
                changes[name] = _optional_utc(changes[name])
        if "prices" in changes:
            changes["prices"] = {pid: money(price) for pid, price in changes["prices"].items()}
        _check_window(changes.get("valid_from", price_list.valid_from), changes.get("valid_to", price_list.valid_to))
        for name, value in changes.items():
            setattr(price_list, name, value)
        await self._price_lists.save(price_list)
        return price_list_to_dict(price_list)


class DeactivatePriceListHandler:
    def __init__(self, price_lists: IPriceListRepository):
        self._price_lists = price_lists

    async def __call__(self, cmd: DeactivatePriceList) -> dict:
        price_list = await self._price_lists.require(cmd.price_list_id)
        price_list.is_active = False
        await self._price_lists.save(price_list)
        return {"id": price_list.id, "is_active": False}


class ListPriceListsHandler:
    def __init__(self, price_lists: IPriceListRepository):
        self._price_lists = price_lists

    async def __call__(self, query: ListPriceLists) -> list[dict]:
        return [
            price_list_to_dict(p)
            for p in await self._price_lists.list_all()
            if query.include_inactive or p.is_active
        ]


class ActivePriceListsHandler:
    """Lists live right now; with a customer_group, only those open to that group."""

    def __init__(self, price_lists: IPriceListRepository, clock: Clock):
        self._price_lists = price_lists
        self._clock = clock

    async def __call__(self, query: ActivePriceLists) -> list[dict]:
        now = self._clock.now()
        live = [p for p in await self._price_lists.list_all() if p.is_live(now)]
        if query.customer_group is not None:
            live = [p for p in live if p.customer_group in (None, query.customer_group)]
        return [price_list_to_dict(p) for p in live]


class ResolvePriceHandler:
    def __init__(self, resolver: IPriceListResolver):
        self._resolver = resolver

    async def __call__(self, query: ResolvePrice) -> dict:
        quote = await self._resolver.quote(query.product_id, query.quantity, query.customer_group)
        return quote.to_dict()


class CreateDiscountHandler:
    def __init__(self, discounts: IDiscountRepository):
        self._discounts = discounts

    async def __call__(self, cmd: CreateDiscount) -> dict:
        discount = Discount(
            id=new_id(),
            name=cmd.name,
            description=cmd.description,
            type=cmd.type,
            value=cmd.value,
            application_type=cmd.application_type,
            target_ids=frozenset(cmd.target_ids),
            conditions=cmd.conditions.to_domain(),
            valid_from=as_utc(cmd.valid_from),
            valid_to=as_utc(cmd.valid_to),
            is_active=cmd.is_active,
            usage_limit=cmd.usage_limit,
        )
        _check_discount(discount)
        await self._discounts.add(discount)
        return discount_to_dict(discount)


class UpdateDiscountHandler:
    """
    Partial update. `used_count` is an admin correction and is written on its
    own; the regular save never touches the counter that redemptions move.
    """

    def __init__(self, discounts: IDiscountRepository):
        self._discounts = discounts

    async def __call__(self, cmd: UpdateDiscount) -> dict:
        discount = await self._discounts.require(cmd.discount_id)
        changes = cmd.changes(
            "name",
            "type",
            "value",
            "application_type",
            "valid_from",
            "valid_to",
            "description",
            "target_ids",
            "conditions",
            "is_active",
            "usage_limit",
            nullable=("usage_limit",),
        )
        for name in ("valid_from", "valid_to"):
            if name in changes:
                changes[name] = as_utc(changes[name])
        if "target_ids" in changes:
            changes["target_ids"] = frozenset(changes["target_ids"])
        if "conditions" in changes:
            changes["conditions"] = changes["conditions"].to_domain()
        for name, value in changes.items():
            setattr(discount, name, value)
        _check_discount(discount)
        await self._discounts.save(discount)
        if cmd.given("used_count"):
            used_count = cmd.changes("used_count")["used_count"]
            updated = await self._discounts.set_used_count(discount.id, used_count)
            if updated is not None:
                discount = updated
        return discount_to_dict(discount)


class DeactivateDiscountHandler:
    def __init__(self, discounts: IDiscountRepository):
        self._discounts = discounts

    async def __call__(self, cmd: DeactivateDiscount) -> dict:
        discount = await self._discounts.require(cmd.discount_id)
        discount.is_active = False
        await self._discounts.save(discount)
        return {"id": discount.id, "is_active": False}


class ListDiscountsHandler:
    def __init__(self, discounts: IDiscountRepository):
        self._discounts = discounts

    async def __call__(self, query: ListDiscounts) -> list[dict]:
        return [
            discount_to_dict(d)
            for d in await self._discounts.list_all()
            if query.include_inactive or d.is_active
        ]


class ActiveDiscountsHandler:
    def __init__(self, discounts: IDiscountRepository, clock: Clock):
        self._discounts = discounts
        self._clock = clock

    async def __call__(self, query: ActiveDiscounts) -> list[dict]:
        now = self._clock.now()
        return [
            discount_to_dict(d)
            for d in await self._discounts.list_all()
            if d.is_live(now) and d.has_capacity
        ]


class ApplicableDiscountsHandler:
    def __init__(self, evaluator: IDiscountEvaluator, resolver: IPriceListResolver):
        self._evaluator = evaluator
        self._resolver = resolver

    async def __call__(self, query: ApplicableDiscounts) -> list[dict]:
        category_id = query.category_id
        if query.product_id is not None and category_id is None:
            category_id = (await self._resolver.load_product(query.product_id)).category_id
        target = DiscountTarget(
            product_id=query.product_id,
            category_id=category_id,
            customer_group=query.customer_group,
        )
        found = await self._evaluator.active_discounts_for(target, query.quantity, money(query.order_value))
        return [discount_to_dict(d) for d in found]
