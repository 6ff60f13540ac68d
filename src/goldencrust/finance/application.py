"""Finance application layer."""
from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import Field
from pydantic.dataclasses import dataclass

from goldencrust.core.clock import Clock, as_utc
from goldencrust.core.errors import ValidationError
from goldencrust.ddd import Command, Query
from goldencrust.domain.money import money
from goldencrust.store import new_id

from .domain import FinancialRecord, RecordType, summarize
from .infrastructure import IFinancialRecordRepository

SUMMARY_WINDOW = timedelta(days=30)


def record_to_dict(r: FinancialRecord) -> dict[str, Any]:
    return {
        "id": r.id,
        "type": r.type,
        "category": r.category,
        "amount": r.amount,
        "description": r.description,
        "reference_id": r.reference_id,
        "user_id": r.user_id,
        "recorded_at": r.recorded_at,
    }


def _window(start: Optional[datetime], end: Optional[datetime], now: datetime) -> tuple[datetime, datetime]:
    end = as_utc(end) if end is not None else now
    start = as_utc(start) if start is not None else end - SUMMARY_WINDOW
    if start > end:
        raise ValidationError("start must not be after end", field="start")
    return start, end


@dataclass
class CreateRecord(Command):
    type: RecordType
    category: Annotated[str, Field(min_length=1, max_length=100)]
    amount: Annotated[Decimal, Field(gt=0)]
    description: str = ""
    reference_id: Optional[str] = None
    recorded_at: Optional[datetime] = None
    actor_id: Optional[str] = None


@dataclass
class ListRecords(Query):
    type: Optional[RecordType] = None
    category: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None


@dataclass
class GetSummary(Query):
    """Defaults to the 30 days up to now."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class CreateRecordHandler:
    def __init__(self, records: IFinancialRecordRepository, clock: Clock):
        self._records = records
        self._clock = clock

    async def __call__(self, cmd: CreateRecord) -> dict:
        record = FinancialRecord(
            id=new_id(),
            type=cmd.type,
            category=cmd.category.strip(),
            amount=money(cmd.amount),
            description=cmd.description,
            reference_id=cmd.reference_id,
            user_id=cmd.actor_id,
            recorded_at=as_utc(cmd.recorded_at) if cmd.recorded_at is not None else self._clock.now(),
        )
        await self._records.add(record)
        return record_to_dict(record)


class ListRecordsHandler:
    def __init__(self, records: IFinancialRecordRepository):
        self._records = records

    async def __call__(self, query: ListRecords) -> list[dict]:
        records = await self._records.list_all(
            type=query.type,
            category=query.category,
            start=as_utc(query.start) if query.start is not None else None,
            end=as_utc(query.end) if query.end is not None else None,
        )
        return [record_to_dict(r) for r in records]


class GetSummaryHandler:
    def __init__(self, records: IFinancialRecordRepository, clock: Clock):
        self._records = records
        self._clock = clock

    async def __call__(self, query: GetSummary) -> dict:
        start, end = _window(query.start, query.end, self._clock.now())
        records = await self._records.list_all(start=start, end=end)
        return summarize(records, start, end).to_dict()
