"""Catalog domain: products, categories and the category tree."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from goldencrust.core.errors import CategoryCycleError
from goldencrust.domain import DomainEvent


class Unit(str, Enum):
    PIECE = "piece"
    KG = "kg"
    LITER = "liter"
    GRAM = "gram"
    PACK = "pack"
    BOX = "box"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Product:
    id: str
    name: str
    base_price: Decimal
    sku: str
    category_id: Optional[str] = None
    description: str = ""
    unit: Unit = Unit.PIECE
    stock: int = 0
    min_stock: int = 0
    tags: frozenset[str] = frozenset()
    is_active: bool = True
    image_url: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_low_on_stock(self) -> bool:
        return self.stock <= self.min_stock

    def matches_text(self, text: str) -> bool:
        needle = text.strip().lower()
        haystack = [self.name, self.description, self.sku, *self.tags]
        return any(needle in value.lower() for value in haystack)


@dataclass
class ProductCategory:
    id: str
    name: str
    parent_id: Optional[str] = None
    description: str = ""
    sort_order: int = 0
    is_active: bool = True
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class CategoryNode:
    category: ProductCategory
    children: list[CategoryNode] = field(default_factory=list)

    def to_dict(self) -> dict:
        c = self.category
        return {
            "id": c.id,
            "name": c.name,
            "sort_order": c.sort_order,
            "is_active": c.is_active,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class ProductCreated(DomainEvent):
    product_id: str
    sku: str


def ensure_acyclic(categories: Iterable[ProductCategory]) -> None:
    """Walk every parent chain with a visited set; raise CategoryCycleError on a loop."""
    by_id = {c.id: c for c in categories}
    cleared: set[str] = set()
    for start in by_id:
        path: list[str] = []
        seen: set[str] = set()
        current: Optional[str] = start
        while current is not None and current in by_id and current not in cleared:
            if current in seen:
                raise CategoryCycleError(current)
            seen.add(current)
            path.append(current)
            current = by_id[current].parent_id
        cleared.update(path)


def would_create_cycle(categories: Iterable[ProductCategory], category_id: str, new_parent_id: Optional[str]) -> bool:
    """True if re-parenting category_id under new_parent_id closes a loop."""
    by_id = {c.id: c for c in categories}
    seen: set[str] = set()
    current = new_parent_id
    while current is not None and current in by_id:
        if current == category_id or current in seen:
            return True
        seen.add(current)
        current = by_id[current].parent_id
    return False


def build_category_tree(categories: Iterable[ProductCategory], include_inactive: bool = False) -> list[CategoryNode]:
    """Roots are categories without a (known) parent. Inactive categories hide their subtree."""
    categories = list(categories)
    ensure_acyclic(categories)
    by_id = {c.id: c for c in categories}
    children: dict[Optional[str], list[ProductCategory]] = {}
    for c in categories:
        parent = c.parent_id if c.parent_id in by_id else None
        children.setdefault(parent, []).append(c)

    def grow(parent_id: Optional[str]) -> list[CategoryNode]:
        nodes = []
        for c in sorted(children.get(parent_id, []), key=lambda c: (c.sort_order, c.name.lower())):
            if not c.is_active and not include_inactive:
                continue
            nodes.append(CategoryNode(category=c, children=grow(c.id)))
        return nodes

    return grow(None)
