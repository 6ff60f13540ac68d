"""Financial records and the period summary."""
from datetime import timedelta
from decimal import Decimal

import pytest

from goldencrust.core.errors import ValidationError
from goldencrust.finance.application import CreateRecord, CreateRecordHandler, GetSummary, GetSummaryHandler
from goldencrust.finance.domain import FinancialRecord, RecordType, summarize

from conftest import NOW


def record(type, category, amount, days_ago=0):
    return FinancialRecord(
        id=f"{category}-{amount}-{days_ago}",
        type=type,
        category=category,
        amount=Decimal(amount),
        recorded_at=NOW - timedelta(days=days_ago),
    )


class TestSummarize:
    def test_grouped_sums(self):
        records = [
            record(RecordType.INCOME, "sales", "1200.50"),
            record(RecordType.INCOME, "sales", "300", days_ago=2),
            record(RecordType.EXPENSE, "flour", "450.25", days_ago=1),
            record(RecordType.EXPENSE, "rent", "800", days_ago=3),
        ]
        summary = summarize(records, NOW - timedelta(days=30), NOW)

        assert summary.income == Decimal("1500.50")
        assert summary.expense == Decimal("1250.25")
        assert summary.net == Decimal("250.25")
        assert [(g.type, g.category, g.total, g.count) for g in summary.groups] == [
            (RecordType.EXPENSE, "flour", Decimal("450.25"), 1),
            (RecordType.EXPENSE, "rent", Decimal("800.00"), 1),
            (RecordType.INCOME, "sales", Decimal("1500.50"), 2),
        ]

    def test_records_outside_the_window_are_ignored(self):
        summary = summarize([record(RecordType.INCOME, "sales", "99", days_ago=31)], NOW - timedelta(days=30), NOW)
        assert summary.income == Decimal("0.00")
        assert summary.groups == []


class TestSummaryHandler:
    async def test_default_window_is_last_30_days(self, container):
        create = container.resolve(CreateRecordHandler)
        await create(CreateRecord(type="income", category="sales", amount=Decimal("500")))
        await create(CreateRecord(type="income", category="sales", amount=Decimal("70"), recorded_at=NOW - timedelta(days=45)))

        summary = await container.resolve(GetSummaryHandler)(GetSummary())

        assert summary["income"] == Decimal("500.00")
        assert summary["start"] == NOW - timedelta(days=30)

    async def test_start_after_end(self, container):
        with pytest.raises(ValidationError):
            await container.resolve(GetSummaryHandler)(GetSummary(start=NOW, end=NOW - timedelta(days=1)))
