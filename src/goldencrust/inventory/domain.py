"""Inventory domain: stock movements and the low-stock signal."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Protocol

from goldencrust.domain import DomainEvent


class MovementType(str, Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"
    PRODUCTION = "production"


@dataclass
class InventoryMovement:
    id: str
    product_id: str
    type: MovementType
    quantity: int
    stock_after: int
    reason: str = ""
    reference_id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class StockLow(DomainEvent):
    product_id: str
    stock: int
    min_stock: int


class IStockLedger(Protocol):
    async def record(
        self,
        product_id: str,
        type: MovementType,
        quantity: int,
        *,
        reason: str = "",
        reference_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> InventoryMovement:
        ...
