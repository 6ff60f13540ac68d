"""Finance persistence."""
from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Optional

from goldencrust.domain import Repository
from goldencrust.store import Document, DocumentRepository

from .domain import FinancialRecord, RecordType


class IFinancialRecordRepository(Repository[FinancialRecord]):
    entity_name = "financial record"

    @abstractmethod
    async def list_all(
        self,
        *,
        type: Optional[RecordType] = None,
        category: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[FinancialRecord]:
        """Newest first."""
        ...


class FinancialRecordRepositoryImpl(DocumentRepository[FinancialRecord], IFinancialRecordRepository):
    collection = "financial_records"

    def to_document(self, entity: FinancialRecord) -> Document:
        return {
            "_id": entity.id,
            "type": entity.type.value,
            "category": entity.category,
            "amount": str(entity.amount),
            "description": entity.description,
            "reference_id": entity.reference_id,
            "user_id": entity.user_id,
            "recorded_at": entity.recorded_at,
        }

    def from_document(self, document: Document) -> FinancialRecord:
        return FinancialRecord(
            id=document["_id"],
            type=RecordType(document["type"]),
            category=document["category"],
            amount=Decimal(document["amount"]),
            description=document.get("description", ""),
            reference_id=document.get("reference_id"),
            user_id=document.get("user_id"),
            recorded_at=document["recorded_at"],
        )

    async def list_all(
        self,
        *,
        type: Optional[RecordType] = None,
        category: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[FinancialRecord]:
        filter: Document = {}
        if type is not None:
            filter["type"] = type.value
        if category is not None:
            filter["category"] = category
        window: Document = {}
        if start is not None:
            window["$gte"] = start
        if end is not None:
            window["$lte"] = end
        if window:
            filter["recorded_at"] = window
        return sorted(await self.find(filter), key=lambda r: r.recorded_at, reverse=True)
