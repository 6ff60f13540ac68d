"""Inventory persistence and the stock ledger that applies movements to product stock."""
from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Optional

from goldencrust.catalog.infrastructure import IProductRepository
from goldencrust.core.clock import Clock
from goldencrust.core.errors import NotFound, ValidationError
from goldencrust.domain import EventBus, Repository
from goldencrust.store import Document, DocumentRepository, new_id

from .domain import InventoryMovement, MovementType, StockLow

logger = logging.getLogger(__name__)


class IMovementRepository(Repository[InventoryMovement]):
    entity_name = "movement"

    @abstractmethod
    async def list_all(self, *, product_id: Optional[str] = None) -> list[InventoryMovement]:
        """Newest first."""
        ...


class MovementRepositoryImpl(DocumentRepository[InventoryMovement], IMovementRepository):
    collection = "inventory_movements"

    def to_document(self, entity: InventoryMovement) -> Document:
        return {
            "_id": entity.id,
            "product_id": entity.product_id,
            "type": entity.type.value,
            "quantity": entity.quantity,
            "stock_after": entity.stock_after,
            "reason": entity.reason,
            "reference_id": entity.reference_id,
            "user_id": entity.user_id,
            "created_at": entity.created_at,
        }

    def from_document(self, document: Document) -> InventoryMovement:
        return InventoryMovement(
            id=document["_id"],
            product_id=document["product_id"],
            type=MovementType(document["type"]),
            quantity=int(document["quantity"]),
            stock_after=int(document["stock_after"]),
            reason=document.get("reason", ""),
            reference_id=document.get("reference_id"),
            user_id=document.get("user_id"),
            created_at=document["created_at"],
        )

    async def list_all(self, *, product_id: Optional[str] = None) -> list[InventoryMovement]:
        filter = {"product_id": product_id} if product_id is not None else None
        return sorted(await self.find(filter), key=lambda m: m.created_at, reverse=True)


class StockLedgerImpl:
    """
    Applies a movement to product stock and records it.

    in/production add, out subtracts only while enough stock is left
    (conditional update), adjustment sets the counted stock.
    """

    def __init__(self, products: IProductRepository, movements: IMovementRepository, event_bus: EventBus, clock: Clock):
        self._products = products
        self._movements = movements
        self._event_bus = event_bus
        self._clock = clock

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
        if quantity < 0 or (quantity == 0 and type is not MovementType.ADJUSTMENT):
            raise ValidationError("quantity must be positive", field="quantity")
        before = await self._products.require(product_id)

        if type is MovementType.ADJUSTMENT:
            product = await self._products.set_stock(product_id, quantity)
        elif type is MovementType.OUT:
            product = await self._products.change_stock(product_id, -quantity)
            if product is None:
                raise ValidationError("insufficient stock", field="quantity")
        else:
            product = await self._products.change_stock(product_id, quantity)
        if product is None:
            raise NotFound("product", product_id)

        movement = InventoryMovement(
            id=new_id(),
            product_id=product_id,
            type=type,
            quantity=quantity,
            stock_after=product.stock,
            reason=reason,
            reference_id=reference_id,
            user_id=user_id,
            created_at=self._clock.now(),
        )
        try:
            await self._movements.add(movement)
        except Exception:
            logger.warning("movement insert failed, reverting stock of %s", product_id)
            await self._revert(product_id, type, quantity, before.stock)
            raise
        logger.debug("stock %s %s %d -> %d", product_id, type.value, quantity, product.stock)
        if product.is_low_on_stock:
            await self._event_bus.publish(StockLow(product_id=product.id, stock=product.stock, min_stock=product.min_stock))
        return movement

    async def _revert(self, product_id: str, type: MovementType, quantity: int, stock_before: int) -> None:
        if type is MovementType.ADJUSTMENT:
            await self._products.set_stock(product_id, stock_before)
        elif type is MovementType.OUT:
            await self._products.change_stock(product_id, quantity)
        else:
            await self._products.change_stock(product_id, -quantity)
