"""Production domain: batches and their lifecycle."""
from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from goldencrust.core.errors import InvalidTransition
from goldencrust.domain import DomainEvent


class BatchStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


BATCH_TRANSITIONS: dict[BatchStatus, frozenset[BatchStatus]] = {
    BatchStatus.PLANNED: frozenset({BatchStatus.IN_PROGRESS, BatchStatus.CANCELLED}),
    BatchStatus.IN_PROGRESS: frozenset({BatchStatus.COMPLETED, BatchStatus.CANCELLED}),
    BatchStatus.COMPLETED: frozenset(),
    BatchStatus.CANCELLED: frozenset(),
}


def batch_number(at: datetime) -> str:
    return f"PB-{at:%Y%m%d}-{secrets.token_hex(2).upper()}"


@dataclass
class ProductionBatch:
    id: str
    batch_number: str
    product_id: str
    quantity: int
    status: BatchStatus = BatchStatus.PLANNED
    supervisor_id: Optional[str] = None
    notes: str = ""
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def transition_to(self, status: BatchStatus, at: datetime) -> BatchStatus:
        if status not in BATCH_TRANSITIONS[self.status]:
            raise InvalidTransition(f"batch cannot go from {self.status.value} to {status.value}")
        previous, self.status = self.status, status
        if status is BatchStatus.IN_PROGRESS:
            self.started_at = at
        elif status is BatchStatus.COMPLETED:
            self.completed_at = at
        return previous


@dataclass
class BatchCompleted(DomainEvent):
    batch_id: str
    batch_number: str
    product_id: str
    quantity: int
