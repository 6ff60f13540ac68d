"""Catalog application layer: commands, queries, handlers."""
from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import Field
from pydantic.dataclasses import dataclass

from goldencrust.core.errors import Conflict, ValidationError
from goldencrust.ddd import Command, PatchCommand, Query
from goldencrust.domain import EventBus
from goldencrust.domain.money import money
from goldencrust.store import new_id

from .domain import (
    Product,
    ProductCategory,
    ProductCreated,
    Unit,
    build_category_tree,
    would_create_cycle,
)
from .infrastructure import ICategoryRepository, IProductRepository

Price = Annotated[Decimal, Field(gt=0)]
Count = Annotated[int, Field(ge=0)]
Name = Annotated[str, Field(min_length=1, max_length=200)]


def product_to_dict(p: Product) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "base_price": p.base_price,
        "category_id": p.category_id,
        "sku": p.sku,
        "unit": p.unit,
        "stock": p.stock,
        "min_stock": p.min_stock,
        "tags": sorted(p.tags),
        "is_active": p.is_active,
        "image_url": p.image_url,
        "created_at": p.created_at,
    }


def category_to_dict(c: ProductCategory) -> dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "description": c.description,
        "parent_id": c.parent_id,
        "sort_order": c.sort_order,
        "is_active": c.is_active,
        "created_at": c.created_at,
    }


@dataclass
class CreateProduct(Command):
    name: Name
    sku: Annotated[str, Field(min_length=1, max_length=64)]
    base_price: Price
    category_id: Optional[str] = None
    description: str = ""
    unit: Unit = Unit.PIECE
    stock: Count = 0
    min_stock: Count = 0
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True
    image_url: Optional[str] = None


@dataclass
class UpdateProduct(PatchCommand):
    """Stock is not editable here; it moves through inventory movements."""
    product_id: str
    name: Optional[Name] = None
    sku: Optional[Annotated[str, Field(min_length=1, max_length=64)]] = None
    base_price: Optional[Price] = None
    category_id: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[Unit] = None
    min_stock: Optional[Count] = None
    tags: Optional[list[str]] = None
    is_active: Optional[bool] = None
    image_url: Optional[str] = None


@dataclass
class DeactivateProduct(Command):
    product_id: str


@dataclass
class GetProduct(Query):
    product_id: str


@dataclass
class ListProducts(Query):
    category_id: Optional[str] = None
    include_inactive: bool = False


@dataclass
class SearchProducts(Query):
    q: Annotated[str, Field(min_length=1)]


@dataclass
class CreateCategory(Command):
    name: Name
    parent_id: Optional[str] = None
    description: str = ""
    sort_order: int = 0
    is_active: bool = True


@dataclass
class UpdateCategory(PatchCommand):
    """parent_id null moves the category to the top level."""
    category_id: str
    name: Optional[Name] = None
    parent_id: Optional[str] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


@dataclass
class DeleteCategory(Command):
    category_id: str


@dataclass
class GetCategory(Query):
    category_id: str


@dataclass
class ListCategories(Query):
    include_inactive: bool = True


@dataclass
class GetCategoryTree(Query):
    include_inactive: bool = False


class CreateProductHandler:
    def __init__(self, products: IProductRepository, categories: ICategoryRepository, event_bus: EventBus):
        self._products = products
        self._categories = categories
        self._event_bus = event_bus

    async def __call__(self, cmd: CreateProduct) -> dict:
        if await self._products.find_by_sku(cmd.sku) is not None:
            raise Conflict(f"sku {cmd.sku!r} is already in use")
        if cmd.category_id is not None:
            await self._categories.require(cmd.category_id)
        product = Product(
            id=new_id(),
            name=cmd.name,
            description=cmd.description,
            base_price=money(cmd.base_price),
            category_id=cmd.category_id,
            sku=cmd.sku,
            unit=cmd.unit,
            stock=cmd.stock,
            min_stock=cmd.min_stock,
            tags=frozenset(cmd.tags),
            is_active=cmd.is_active,
            image_url=cmd.image_url,
        )
        await self._products.add(product)
        await self._event_bus.publish(ProductCreated(product_id=product.id, sku=product.sku))
        return product_to_dict(product)


class UpdateProductHandler:
    def __init__(self, products: IProductRepository, categories: ICategoryRepository):
        self._products = products
        self._categories = categories

    async def __call__(self, cmd: UpdateProduct) -> dict:
        product = await self._products.require(cmd.product_id)
        changes = cmd.changes(
            "name",
            "sku",
            "base_price",
            "category_id",
            "description",
            "unit",
            "min_stock",
            "tags",
            "is_active",
            "image_url",
            nullable=("category_id", "image_url"),
        )
        if changes.get("sku", product.sku) != product.sku:
            if await self._products.find_by_sku(changes["sku"]) is not None:
                raise Conflict(f"sku {changes['sku']!r} is already in use")
        if changes.get("category_id") is not None:
            await self._categories.require(changes["category_id"])
        if "base_price" in changes:
            changes["base_price"] = money(changes["base_price"])
        if "tags" in changes:
            changes["tags"] = frozenset(changes["tags"])
        for name, value in changes.items():
            setattr(product, name, value)
        await self._products.save(product)
        return product_to_dict(product)


class DeactivateProductHandler:
    """Products are referenced by orders and movements, so removal only deactivates."""

    def __init__(self, products: IProductRepository):
        self._products = products

    async def __call__(self, cmd: DeactivateProduct) -> dict:
        product = await self._products.require(cmd.product_id)
        product.is_active = False
        await self._products.save(product)
        return {"id": product.id, "is_active": product.is_active}


class GetProductHandler:
    def __init__(self, products: IProductRepository):
        self._products = products

    async def __call__(self, query: GetProduct) -> dict:
        product = await self._products.require(query.product_id)
        return product_to_dict(product)


class ListProductsHandler:
    def __init__(self, products: IProductRepository):
        self._products = products

    async def __call__(self, query: ListProducts) -> list[dict]:
        products = await self._products.list_all(
            active_only=not query.include_inactive, category_id=query.category_id
        )
        return [product_to_dict(p) for p in products]


class SearchProductsHandler:
    def __init__(self, products: IProductRepository):
        self._products = products

    async def __call__(self, query: SearchProducts) -> list[dict]:
        products = await self._products.list_all()
        return [product_to_dict(p) for p in products if p.matches_text(query.q)]


class CreateCategoryHandler:
    def __init__(self, categories: ICategoryRepository):
        self._categories = categories

    async def __call__(self, cmd: CreateCategory) -> dict:
        if cmd.parent_id is not None:
            await self._categories.require(cmd.parent_id)
        category = ProductCategory(
            id=new_id(),
            name=cmd.name,
            parent_id=cmd.parent_id,
            description=cmd.description,
            sort_order=cmd.sort_order,
            is_active=cmd.is_active,
        )
        await self._categories.add(category)
        return category_to_dict(category)


class UpdateCategoryHandler:
    def __init__(self, categories: ICategoryRepository):
        self._categories = categories

    async def __call__(self, cmd: UpdateCategory) -> dict:
        category = await self._categories.require(cmd.category_id)
        changes = cmd.changes("name", "parent_id", "description", "sort_order", "is_active", nullable=("parent_id",))
        parent_id = changes.get("parent_id")
        if parent_id is not None and parent_id != category.parent_id:
            await self._categories.require(parent_id)
            if would_create_cycle(await self._categories.list_all(), category.id, parent_id):
                raise ValidationError("parent would create a category cycle", field="parent_id")
        for name, value in changes.items():
            setattr(category, name, value)
        await self._categories.save(category)
        return category_to_dict(category)


class DeleteCategoryHandler:
    def __init__(self, categories: ICategoryRepository):
        self._categories = categories

    async def __call__(self, cmd: DeleteCategory) -> dict:
        await self._categories.require(cmd.category_id)
        if any(c.parent_id == cmd.category_id for c in await self._categories.list_all()):
            raise Conflict("category has sub-categories")
        await self._categories.delete(cmd.category_id)
        return {"id": cmd.category_id, "deleted": True}


class GetCategoryHandler:
    def __init__(self, categories: ICategoryRepository):
        self._categories = categories

    async def __call__(self, query: GetCategory) -> dict:
        category = await self._categories.require(query.category_id)
        return category_to_dict(category)


class ListCategoriesHandler:
    def __init__(self, categories: ICategoryRepository):
        self._categories = categories

    async def __call__(self, query: ListCategories) -> list[dict]:
        categories = await self._categories.list_all()
        return [category_to_dict(c) for c in categories if query.include_inactive or c.is_active]


class GetCategoryTreeHandler:
    def __init__(self, categories: ICategoryRepository):
        self._categories = categories

    async def __call__(self, query: GetCategoryTree) -> list[dict]:
        tree = build_category_tree(await self._categories.list_all(), include_inactive=query.include_inactive)
        return [node.to_dict() for node in tree]
