"""Production persistence."""
from __future__ import annotations

from abc import abstractmethod
from typing import Optional

from goldencrust.domain import Repository
from goldencrust.store import Document, DocumentRepository

from .domain import BatchStatus, ProductionBatch


class IBatchRepository(Repository[ProductionBatch]):
    entity_name = "production batch"

    @abstractmethod
    async def list_all(self, *, status: Optional[BatchStatus] = None) -> list[ProductionBatch]:
        ...

    @abstractmethod
    async def change_status(self, batch: ProductionBatch, previous: BatchStatus) -> bool:
        ...


class BatchRepositoryImpl(DocumentRepository[ProductionBatch], IBatchRepository):
    collection = "production_batches"

    def to_document(self, entity: ProductionBatch) -> Document:
        return {
            "_id": entity.id,
            "batch_number": entity.batch_number,
            "product_id": entity.product_id,
            "quantity": entity.quantity,
            "status": entity.status.value,
            "supervisor_id": entity.supervisor_id,
            "notes": entity.notes,
            "started_at": entity.started_at,
            "completed_at": entity.completed_at,
            "created_at": entity.created_at,
        }

    def from_document(self, document: Document) -> ProductionBatch:
        return ProductionBatch(
            id=document["_id"],
            batch_number=document["batch_number"],
            product_id=document["product_id"],
            quantity=int(document["quantity"]),
            status=BatchStatus(document["status"]),
            supervisor_id=document.get("supervisor_id"),
            notes=document.get("notes", ""),
            started_at=document.get("started_at"),
            completed_at=document.get("completed_at"),
            created_at=document["created_at"],
        )

    async def list_all(self, *, status: Optional[BatchStatus] = None) -> list[ProductionBatch]:
        filter = {"status": status.value} if status is not None else None
        return sorted(await self.find(filter), key=lambda b: b.created_at, reverse=True)

    async def change_status(self, batch: ProductionBatch, previous: BatchStatus) -> bool:
        fields = {
            "status": batch.status.value,
            "started_at": batch.started_at,
            "completed_at": batch.completed_at,
        }
        return await self.update(batch.id, {"$set": fields}, {"status": previous.value}) is not None
