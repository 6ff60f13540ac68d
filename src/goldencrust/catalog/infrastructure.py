"""Catalog persistence: repositories over the document store."""
from __future__ import annotations

from abc import abstractmethod
from decimal import Decimal
from typing import Optional

from goldencrust.domain import Repository
from goldencrust.store import Document, DocumentRepository

from .domain import Product, ProductCategory, Unit


class IProductRepository(Repository[Product]):
    entity_name = "product"

    @abstractmethod
    async def list_all(self, *, active_only: bool = True, category_id: Optional[str] = None) -> list[Product]:
        ...

    @abstractmethod
    async def find_by_sku(self, sku: str) -> Optional[Product]:
        ...

    @abstractmethod
    async def change_stock(self, id: str, delta: int) -> Optional[Product]:
        """Atomically add delta to stock; refuses (None) when the result would go negative."""
        ...

    @abstractmethod
    async def set_stock(self, id: str, stock: int) -> Optional[Product]:
        ...


class ICategoryRepository(Repository[ProductCategory]):
    entity_name = "category"

    @abstractmethod
    async def list_all(self) -> list[ProductCategory]:
        ...

    @abstractmethod
    async def delete(self, id: str) -> bool:
        ...


class ProductRepositoryImpl(DocumentRepository[Product], IProductRepository):
    collection = "products"
    unique_fields = ("sku",)

    def to_document(self, entity: Product) -> Document:
        return {
            "_id": entity.id,
            "name": entity.name,
            "description": entity.description,
            "base_price": str(entity.base_price),
            "category_id": entity.category_id,
            "sku": entity.sku,
            "unit": entity.unit.value,
            "stock": entity.stock,
            "min_stock": entity.min_stock,
            "tags": sorted(entity.tags),
            "is_active": entity.is_active,
            "image_url": entity.image_url,
            "created_at": entity.created_at,
        }

    def from_document(self, document: Document) -> Product:
        return Product(
            id=document["_id"],
            name=document["name"],
            description=document.get("description", ""),
            base_price=Decimal(document["base_price"]),
            category_id=document.get("category_id"),
            sku=document["sku"],
            unit=Unit(document.get("unit", Unit.PIECE.value)),
            stock=int(document.get("stock", 0)),
            min_stock=int(document.get("min_stock", 0)),
            tags=frozenset(document.get("tags", ())),
            is_active=bool(document.get("is_active", True)),
            image_url=document.get("image_url"),
            created_at=document["created_at"],
        )

    async def save(self, aggregate: Product) -> None:
        # stock is owned by change_stock/set_stock; a save must not overwrite a concurrent movement
        fields = {k: v for k, v in self.to_document(aggregate).items() if k not in ("_id", "stock")}
        await self.update(aggregate.id, {"$set": fields})

    async def list_all(self, *, active_only: bool = True, category_id: Optional[str] = None) -> list[Product]:
        filter: Document = {}
        if active_only:
            filter["is_active"] = True
        if category_id is not None:
            filter["category_id"] = category_id
        products = await self.find(filter)
        return sorted(products, key=lambda p: p.name.lower())

    async def find_by_sku(self, sku: str) -> Optional[Product]:
        found = await self.find({"sku": sku})
        return found[0] if found else None

    async def change_stock(self, id: str, delta: int) -> Optional[Product]:
        predicate = {"stock": {"$gte": -delta}} if delta < 0 else None
        return await self.update(id, {"$inc": {"stock": delta}}, predicate)

    async def set_stock(self, id: str, stock: int) -> Optional[Product]:
        return await self.update(id, {"$set": {"stock": stock}})


class CategoryRepositoryImpl(DocumentRepository[ProductCategory], ICategoryRepository):
    collection = "categories"

    def to_document(self, entity: ProductCategory) -> Document:
        return {
            "_id": entity.id,
            "name": entity.name,
            "description": entity.description,
            "parent_id": entity.parent_id,
            "sort_order": entity.sort_order,
            "is_active": entity.is_active,
            "created_at": entity.created_at,
        }

    def from_document(self, document: Document) -> ProductCategory:
        return ProductCategory(
            id=document["_id"],
            name=document["name"],
            description=document.get("description", ""),
            parent_id=document.get("parent_id"),
            sort_order=int(document.get("sort_order", 0)),
            is_active=bool(document.get("is_active", True)),
            created_at=document["created_at"],
        )

    async def list_all(self) -> list[ProductCategory]:
        categories = await self.find()
        return sorted(categories, key=lambda c: (c.sort_order, c.name.lower()))
