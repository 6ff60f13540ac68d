import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from starlette.testclient import TestClient

from goldencrust.catalog.domain import Product, ProductCategory
from goldencrust.catalog.infrastructure import ICategoryRepository, IProductRepository
from goldencrust.config import Settings
from goldencrust.core.clock import FixedClock
from goldencrust.domain import EventBus
from goldencrust.main import create_app
from goldencrust.pricing.domain import ApplicationType, Discount, DiscountType, PriceList
from goldencrust.pricing.infrastructure import IDiscountRepository, IPriceListRepository
from goldencrust.store import InMemoryDocumentStore, new_id

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

ADMIN = {"X-User-Role": "admin", "X-User-Id": "u-admin"}
SALES = {"X-User-Role": "sales", "X-User-Id": "u-sales"}
INVENTORY = {"X-User-Role": "inventory", "X-User-Id": "u-inventory"}
ACCOUNTS = {"X-User-Role": "accounts", "X-User-Id": "u-accounts"}
PRODUCTION = {"X-User-Role": "production", "X-User-Id": "u-production"}
DISTRIBUTOR = {"X-User-Role": "distributor", "X-User-Id": "u-distributor"}


class Factory:
    """Writes entities straight through the repositories."""

    def __init__(self, container, now):
        self.container = container
        self.now = now
        self._skus = itertools.count(1)

    async def category(self, name, parent_id=None, **fields):
        category = ProductCategory(id=new_id(), name=name, parent_id=parent_id, created_at=self.now, **fields)
        await self.container.resolve(ICategoryRepository).add(category)
        return category

    async def product(self, name="Classic Sourdough", base_price="85", **fields):
        fields.setdefault("sku", f"SKU-{next(self._skus):03d}")
        product = Product(id=new_id(), name=name, base_price=Decimal(base_price), created_at=self.now, **fields)
        await self.container.resolve(IProductRepository).add(product)
        return product

    async def price_list(self, name="Wholesale", **fields):
        price_list = PriceList(id=fields.pop("id", new_id()), name=name, created_at=self.now, **fields)
        await self.container.resolve(IPriceListRepository).add(price_list)
        return price_list

    async def discount(
        self,
        name="Summer20",
        type=DiscountType.PERCENTAGE,
        value="20",
        application_type=ApplicationType.PRODUCT,
        **fields,
    ):
        fields.setdefault("valid_from", self.now - timedelta(days=1))
        fields.setdefault("valid_to", self.now + timedelta(days=30))
        discount = Discount(
            id=fields.pop("id", new_id()),
            name=name,
            type=type,
            value=Decimal(value),
            application_type=application_type,
            created_at=self.now,
            **fields,
        )
        await self.container.resolve(IDiscountRepository).add(discount)
        return discount


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def app(store, clock):
    return create_app(Settings(log_level="WARNING"), store=store, clock=clock)


@pytest.fixture
def container(app):
    return app.container


@pytest.fixture
def factory(container):
    return Factory(container, NOW)


@pytest.fixture
def recorded(container):
    """recorded(EventType) -> list that fills up as such events are published."""
    bus = container.resolve(EventBus)

    def subscribe(event_type):
        seen = []
        bus.subscribe(event_type, seen.append)
        return seen

    return subscribe


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
