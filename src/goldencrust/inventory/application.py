"""Inventory application layer."""
from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import Field
from pydantic.dataclasses import dataclass

from goldencrust.catalog.application import product_to_dict
from goldencrust.catalog.infrastructure import IProductRepository
from goldencrust.ddd import Command, Query

from .domain import InventoryMovement, IStockLedger, MovementType
from .infrastructure import IMovementRepository


def movement_to_dict(m: InventoryMovement) -> dict[str, Any]:
    return {
        "id": m.id,
        "product_id": m.product_id,
        "type": m.type,
        "quantity": m.quantity,
        "stock_after": m.stock_after,
        "reason": m.reason,
        "reference_id": m.reference_id,
        "user_id": m.user_id,
        "created_at": m.created_at,
    }


@dataclass
class RecordMovement(Command):
    """For adjustment, quantity is the counted stock; otherwise the amount moved."""
    product_id: str
    type: MovementType
    quantity: Annotated[int, Field(ge=0)]
    reason: str = ""
    reference_id: Optional[str] = None
    actor_id: Optional[str] = None


@dataclass
class ListMovements(Query):
    product_id: Optional[str] = None
    limit: Annotated[int, Field(ge=1, le=1000)] = 100


@dataclass
class LowStock(Query):
    pass


class RecordMovementHandler:
    def __init__(self, ledger: IStockLedger):
        self._ledger = ledger

    async def __call__(self, cmd: RecordMovement) -> dict:
        movement = await self._ledger.record(
            cmd.product_id,
            cmd.type,
            cmd.quantity,
            reason=cmd.reason,
            reference_id=cmd.reference_id,
            user_id=cmd.actor_id,
        )
        return movement_to_dict(movement)


class ListMovementsHandler:
    def __init__(self, movements: IMovementRepository):
        self._movements = movements

    async def __call__(self, query: ListMovements) -> list[dict]:
        movements = await self._movements.list_all(product_id=query.product_id)
        return [movement_to_dict(m) for m in movements[: query.limit]]


class LowStockHandler:
    def __init__(self, products: IProductRepository):
        self._products = products

    async def __call__(self, query: LowStock) -> list[dict]:
        return [product_to_dict(p) for p in await self._products.list_all() if p.is_low_on_stock]
