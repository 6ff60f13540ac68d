"""Finance domain: income and expense records and their period summary."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from goldencrust.domain.money import ZERO, money


class RecordType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


@dataclass
class FinancialRecord:
    id: str
    type: RecordType
    category: str
    amount: Decimal
    description: str = ""
    reference_id: Optional[str] = None
    user_id: Optional[str] = None
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class CategoryTotal:
    type: RecordType
    category: str
    total: Decimal
    count: int

    def to_dict(self) -> dict:
        return {"type": self.type, "category": self.category, "total": self.total, "count": self.count}


@dataclass
class FinancialSummary:
    start: datetime
    end: datetime
    income: Decimal
    expense: Decimal
    groups: list[CategoryTotal]

    @property
    def net(self) -> Decimal:
        return money(self.income - self.expense)

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "income": self.income,
            "expense": self.expense,
            "net": self.net,
            "groups": [g.to_dict() for g in self.groups],
        }


def summarize(records: Iterable[FinancialRecord], start: datetime, end: datetime) -> FinancialSummary:
    """Sum records with start <= recorded_at <= end, overall and per (type, category)."""
    totals: dict[tuple[RecordType, str], CategoryTotal] = {}
    income = expense = ZERO
    for record in records:
        if not start <= record.recorded_at <= end:
            continue
        key = (record.type, record.category)
        group = totals.get(key)
        if group is None:
            group = totals[key] = CategoryTotal(record.type, record.category, ZERO, 0)
        group.total = money(group.total + record.amount)
        group.count += 1
        if record.type is RecordType.INCOME:
            income += record.amount
        else:
            expense += record.amount
    groups = sorted(totals.values(), key=lambda g: (g.type.value, g.category))
    return FinancialSummary(start=start, end=end, income=money(income), expense=money(expense), groups=groups)
