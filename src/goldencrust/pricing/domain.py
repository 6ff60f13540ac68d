"""
Pricing domain: price lists, discounts and the rules that decide when they apply.

Everything here is pure: time is passed in, nothing touches the store.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Protocol, Sequence

from goldencrust.catalog.domain import Product
from goldencrust.domain import DomainEvent, ValueObject
from goldencrust.domain.money import ZERO, money


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PriceListType(str, Enum):
    STANDARD = "standard"
    BULK = "bulk"
    B2B = "b2b"
    PROMOTIONAL = "promotional"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    BUY_X_GET_Y = "buy_x_get_y"


class ApplicationType(str, Enum):
    PRODUCT = "product"
    CATEGORY = "category"
    ORDER = "order"
    CUSTOMER = "customer"


LINE_SCOPE = frozenset({ApplicationType.PRODUCT, ApplicationType.CATEGORY})
ORDER_SCOPE = frozenset({ApplicationType.ORDER, ApplicationType.CUSTOMER})


@dataclass
class PriceList:
    """
    A time-boxed pricing tier. A list prices a product when it names the
    product in `prices` (flat unit price) or carries a `discount_percentage`
    taken off the base price of anything it does not name.
    """
    id: str
    name: str
    type: PriceListType = PriceListType.STANDARD
    min_quantity: int = 1
    is_active: bool = True
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    customer_group: Optional[str] = None
    description: str = ""
    prices: dict[str, Decimal] = field(default_factory=dict)
    discount_percentage: Optional[Decimal] = None
    created_at: datetime = field(default_factory=_utcnow)

    def is_live(self, at: datetime) -> bool:
        if not self.is_active:
            return False
        if self.valid_from is not None and self.valid_from > at:
            return False
        return self.valid_to is None or self.valid_to >= at

    def qualifies(self, quantity: int, customer_group: Optional[str], at: datetime) -> bool:
        if not self.is_live(at) or self.min_quantity > quantity:
            return False
        return self.customer_group is None or self.customer_group == customer_group

    def unit_price_for(self, product: Product) -> Optional[Decimal]:
        """Unit price this list sets for product, or None when it does not price it."""
        if product.id in self.prices:
            return money(self.prices[product.id])
        if self.discount_percentage is not None:
            pct = min(max(self.discount_percentage, ZERO), Decimal(100))
            return money(product.base_price * (Decimal(100) - pct) / Decimal(100))
        return None


@dataclass(frozen=True)
class PriceQuote(ValueObject):
    product_id: str
    quantity: int
    base_price: Decimal
    unit_price: Decimal
    price_list_id: Optional[str] = None


def select_price_list(
    lists: Iterable[PriceList],
    product: Product,
    quantity: int,
    customer_group: Optional[str],
    at: datetime,
) -> Optional[tuple[PriceList, Decimal]]:
    """
    Tightest fit wins: highest min_quantity; then a list scoped to the caller's
    group over a group-agnostic one; then lowest unit price; then lowest id.
    """
    best: Optional[tuple[tuple, PriceList, Decimal]] = None
    for price_list in lists:
        if not price_list.qualifies(quantity, customer_group, at):
            continue
        unit_price = price_list.unit_price_for(product)
        if unit_price is None:
            continue
        group_match = 1 if price_list.customer_group is not None else 0
        key = (-price_list.min_quantity, -group_match, unit_price, price_list.id)
        if best is None or key < best[0]:
            best = (key, price_list, unit_price)
    if best is None:
        return None
    return best[1], best[2]


@dataclass
class DiscountConditions:
    minimum_quantity: Optional[int] = None
    minimum_order_value: Optional[Decimal] = None
    customer_groups: Optional[frozenset[str]] = None
    buy_quantity: Optional[int] = None
    get_quantity: Optional[int] = None


@dataclass(frozen=True)
class DiscountTarget(ValueObject):
    """What a discount is evaluated against. No product_id means the whole order."""
    product_id: Optional[str] = None
    category_id: Optional[str] = None
    customer_group: Optional[str] = None

    @property
    def is_order_scope(self) -> bool:
        return self.product_id is None


@dataclass
class Discount:
    id: str
    name: str
    type: DiscountType
    value: Decimal
    application_type: ApplicationType
    valid_from: datetime
    valid_to: datetime
    target_ids: frozenset[str] = frozenset()
    conditions: DiscountConditions = field(default_factory=DiscountConditions)
    is_active: bool = True
    usage_limit: Optional[int] = None
    used_count: int = 0
    description: str = ""
    created_at: datetime = field(default_factory=_utcnow)

    def is_live(self, at: datetime) -> bool:
        return self.is_active and self.valid_from <= at <= self.valid_to

    @property
    def has_capacity(self) -> bool:
        return self.usage_limit is None or self.used_count < self.usage_limit

    def conditions_met(self, quantity: int, order_value: Decimal, customer_group: Optional[str]) -> bool:
        c = self.conditions
        if c.minimum_quantity is not None and quantity < c.minimum_quantity:
            return False
        if c.minimum_order_value is not None and order_value < c.minimum_order_value:
            return False
        if c.customer_groups is not None and customer_group not in c.customer_groups:
            return False
        return True

    def targets(self, target: DiscountTarget) -> bool:
        if target.is_order_scope:
            if self.application_type is ApplicationType.ORDER:
                return True
            if self.application_type is ApplicationType.CUSTOMER:
                if target.customer_group is None:
                    return False
                return not self.target_ids or target.customer_group in self.target_ids
            return False
        if self.application_type is ApplicationType.PRODUCT:
            return target.product_id in self.target_ids
        if self.application_type is ApplicationType.CATEGORY:
            return target.category_id is not None and target.category_id in self.target_ids
        return False

    def applies_to(
        self, target: DiscountTarget, quantity: int, order_value: Decimal, at: datetime
    ) -> bool:
        return (
            self.is_live(at)
            and self.has_capacity
            and self.conditions_met(quantity, order_value, target.customer_group)
            and self.targets(target)
        )

    def deduction(self, base_amount: Decimal, quantity: int = 0, unit_price: Decimal = ZERO) -> Decimal:
        """Amount taken off base_amount; never more than base_amount, never negative."""
        if base_amount <= ZERO:
            return ZERO
        if self.type is DiscountType.PERCENTAGE:
            amount = base_amount * self.value / Decimal(100)
        elif self.type is DiscountType.FIXED_AMOUNT:
            amount = self.value
        else:
            buy, get = self.conditions.buy_quantity, self.conditions.get_quantity
            if not buy or not get or quantity <= 0:
                return ZERO
            amount = (quantity // (buy + get)) * get * unit_price
        return money(min(max(amount, ZERO), base_amount))


@dataclass(frozen=True)
class AppliedDiscount(ValueObject):
    discount_id: str
    name: str
    amount: Decimal


def best_discount(
    discounts: Sequence[Discount],
    base_amount: Decimal,
    quantity: int = 0,
    unit_price: Decimal = ZERO,
) -> Optional[AppliedDiscount]:
    """Single largest deduction (no stacking). Ties keep the first in id order; zero is not applied."""
    best: Optional[AppliedDiscount] = None
    for discount in sorted(discounts, key=lambda d: d.id):
        amount = discount.deduction(base_amount, quantity, unit_price)
        if amount > ZERO and (best is None or amount > best.amount):
            best = AppliedDiscount(discount_id=discount.id, name=discount.name, amount=amount)
    return best


@dataclass
class DiscountRedeemed(DomainEvent):
    discount_id: str
    order_id: str
    used_count: int


@dataclass
class DiscountExhaustedEvent(DomainEvent):
    discount_id: str
    order_id: str


class IPriceListResolver(Protocol):
    async def load_product(self, product_id: str) -> Product:
        ...

    async def quote_product(
        self, product: Product, quantity: int, customer_group: Optional[str] = None, at: Optional[datetime] = None
    ) -> PriceQuote:
        ...

    async def quote(
        self, product_id: str, quantity: int, customer_group: Optional[str] = None, at: Optional[datetime] = None
    ) -> PriceQuote:
        ...

    async def resolve_price(
        self, product_id: str, quantity: int, customer_group: Optional[str] = None, at: Optional[datetime] = None
    ) -> Decimal:
        ...


class IDiscountEvaluator(Protocol):
    async def active_discounts_for(
        self,
        target: DiscountTarget,
        quantity: int,
        order_value: Decimal,
        at: Optional[datetime] = None,
        exclude: Iterable[str] = (),
    ) -> list[Discount]:
        ...

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
        ...
