"""Sample bakery data for demos and local runs. Does nothing when products already exist."""
from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from goldencrust.catalog.domain import Product, ProductCategory
from goldencrust.catalog.infrastructure import ICategoryRepository, IProductRepository
from goldencrust.core.clock import Clock
from goldencrust.core.container import Container
from goldencrust.partners.domain import CustomerGroup
from goldencrust.partners.infrastructure import ICustomerGroupRepository
from goldencrust.pricing.domain import (
    ApplicationType,
    Discount,
    DiscountConditions,
    DiscountType,
    PriceList,
    PriceListType,
)
from goldencrust.pricing.infrastructure import IDiscountRepository, IPriceListRepository
from goldencrust.store import new_id

logger = logging.getLogger(__name__)

CATEGORIES = [
    ("breads", "Breads", "Sourdoughs and whole-grain loaves"),
    ("pastries", "Pastries", "Laminated and filled pastries"),
    ("desserts", "Desserts", "Small sweets"),
    ("cakes", "Cakes", "Whole cakes"),
]

# (sku, name, description, category key, base price, stock, min stock, tags)
PRODUCTS = [
    ("BRD-SOUR", "Classic Sourdough", "Traditional sourdough with perfect crust and tangy flavor", "breads", "85.00", 120, 20, ("bread", "vegan")),
    ("BRD-MULTI", "Multigrain Harvest", "Hearty blend of whole grains, seeds, and nuts", "breads", "92.00", 80, 15, ("bread",)),
    ("PST-CROIS", "Butter Croissant", "Flaky, buttery layers of perfection", "pastries", "38.00", 200, 40, ("pastry", "breakfast")),
    ("PST-PAC", "Pain au Chocolat", "Buttery, flaky pastry filled with premium Belgian dark chocolate", "pastries", "48.00", 150, 30, ("pastry", "chocolate")),
    ("DST-MAC", "French Macarons", "Delicate almond cookies with ganache filling in various flavors", "desserts", "32.00", 300, 50, ("gluten-free",)),
    ("DST-ECL", "Chocolate Éclair", "Classic choux pastry filled with vanilla cream and chocolate glaze", "desserts", "42.00", 90, 20, ("chocolate",)),
    ("CAK-CHOC", "Chocolate Layer Cake", "Rich chocolate cake with layers of buttercream frosting", "cakes", "450.00", 12, 3, ("cake", "chocolate")),
    ("CAK-RV", "Red Velvet Cake", "Classic red velvet with cream cheese frosting", "cakes", "480.00", 10, 3, ("cake",)),
]

CUSTOMER_GROUPS = [
    ("retail", "Walk-in and online customers"),
    ("wholesale", "Cafés and restaurants buying in bulk"),
    ("distributor", "Registered distributors"),
]


async def seed_sample_data(container: Container) -> bool:
    """Returns False when the store already holds products."""
    products = container.resolve(IProductRepository)
    if await products.list_all(active_only=False):
        logger.info("store already has products; sample data not loaded")
        return False
    categories = container.resolve(ICategoryRepository)
    groups = container.resolve(ICustomerGroupRepository)
    price_lists = container.resolve(IPriceListRepository)
    discounts = container.resolve(IDiscountRepository)
    now = container.resolve(Clock).now()

    category_ids: dict[str, str] = {}
    for order, (key, name, description) in enumerate(CATEGORIES):
        category = ProductCategory(id=new_id(), name=name, description=description, sort_order=order, created_at=now)
        await categories.add(category)
        category_ids[key] = category.id

    by_sku: dict[str, Product] = {}
    for sku, name, description, key, price, stock, min_stock, tags in PRODUCTS:
        product = Product(
            id=new_id(),
            name=name,
            description=description,
            base_price=Decimal(price),
            sku=sku,
            category_id=category_ids[key],
            stock=stock,
            min_stock=min_stock,
            tags=frozenset(tags),
            created_at=now,
        )
        await products.add(product)
        by_sku[sku] = product

    for name, description in CUSTOMER_GROUPS:
        await groups.add(CustomerGroup(id=new_id(), name=name, description=description, created_at=now))

    await price_lists.add(
        PriceList(
            id=new_id(),
            name="Wholesale",
            description="Flat bread prices from 50 loaves",
            type=PriceListType.BULK,
            min_quantity=50,
            prices={by_sku["BRD-SOUR"].id: Decimal("70.00"), by_sku["BRD-MULTI"].id: Decimal("78.00")},
            created_at=now,
        )
    )
    await price_lists.add(
        PriceList(
            id=new_id(),
            name="Distributor",
            description="15% off list price for distributors",
            type=PriceListType.B2B,
            customer_group="distributor",
            discount_percentage=Decimal("15"),
            created_at=now,
        )
    )
    await discounts.add(
        Discount(
            id=new_id(),
            name="Summer20",
            description="20% off croissants",
            type=DiscountType.PERCENTAGE,
            value=Decimal("20"),
            application_type=ApplicationType.PRODUCT,
            target_ids=frozenset({by_sku["PST-CROIS"].id}),
            valid_from=now - timedelta(days=1),
            valid_to=now + timedelta(days=90),
            created_at=now,
        )
    )
    await discounts.add(
        Discount(
            id=new_id(),
            name="Big Basket",
            description="₹100 off orders of ₹2000 or more",
            type=DiscountType.FIXED_AMOUNT,
            value=Decimal("100"),
            application_type=ApplicationType.ORDER,
            conditions=DiscountConditions(minimum_order_value=Decimal("2000")),
            valid_from=now - timedelta(days=1),
            valid_to=now + timedelta(days=90),
            created_at=now,
        )
    )
    logger.info("sample data loaded: %d categories, %d products", len(CATEGORIES), len(PRODUCTS))
    return True
