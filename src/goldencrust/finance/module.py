"""One object = full bounded context «finance»."""
from goldencrust.core.access import roles
from goldencrust.ddd import DomainModule

from .application import (
    CreateRecord,
    CreateRecordHandler,
    GetSummary,
    GetSummaryHandler,
    ListRecords,
    ListRecordsHandler,
)
from .domain import FinancialRecord
from .infrastructure import FinancialRecordRepositoryImpl, IFinancialRecordRepository

BOOKKEEPERS = roles("admin", "accounts")

finance_module = (
    DomainModule("finance")
    .aggregate(FinancialRecord)
    .repository(IFinancialRecordRepository, FinancialRecordRepositoryImpl)
    .query(ListRecords, ListRecordsHandler, path="/api/financial/records", roles=BOOKKEEPERS)
    .command(CreateRecord, CreateRecordHandler, path="/api/financial/records", roles=BOOKKEEPERS, status_code=201)
    .query(GetSummary, GetSummaryHandler, path="/api/financial/summary", roles=BOOKKEEPERS)
)
