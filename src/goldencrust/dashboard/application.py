"""Dashboard: one stats payload, its sections chosen by the caller's role."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic.dataclasses import dataclass

from goldencrust.catalog.infrastructure import IProductRepository
from goldencrust.core.access import Role
from goldencrust.core.clock import Clock
from goldencrust.ddd import Query
from goldencrust.finance.domain import summarize
from goldencrust.finance.infrastructure import IFinancialRecordRepository
from goldencrust.orders.domain import OrderStatus
from goldencrust.orders.infrastructure import IOrderRepository
from goldencrust.production.domain import BatchStatus
from goldencrust.production.infrastructure import IBatchRepository

SEES_ORDERS = frozenset({Role.ADMIN, Role.SALES})
SEES_STOCK = frozenset({Role.ADMIN, Role.INVENTORY})
SEES_PRODUCTION = frozenset({Role.ADMIN, Role.PRODUCTION})
SEES_FINANCE = frozenset({Role.ADMIN, Role.ACCOUNTS})


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


@dataclass
class DashboardStats(Query):
    actor_role: Optional[str] = None


class DashboardStatsHandler:
    def __init__(
        self,
        products: IProductRepository,
        orders: IOrderRepository,
        batches: IBatchRepository,
        records: IFinancialRecordRepository,
        clock: Clock,
    ):
        self._products = products
        self._orders = orders
        self._batches = batches
        self._records = records
        self._clock = clock

    async def __call__(self, query: DashboardStats) -> dict:
        role = Role(query.actor_role) if query.actor_role else None
        products = await self._products.list_all()
        stats: dict[str, Any] = {"total_products": len(products)}
        if role in SEES_ORDERS:
            orders = await self._orders.list_all()
            stats["total_orders"] = len(orders)
            stats["pending_orders"] = sum(1 for o in orders if o.status is OrderStatus.PENDING)
        if role in SEES_STOCK:
            stats["low_stock_products"] = sum(1 for p in products if p.is_low_on_stock)
        if role in SEES_PRODUCTION:
            batches = await self._batches.list_all()
            stats["active_batches"] = sum(
                1 for b in batches if b.status in (BatchStatus.PLANNED, BatchStatus.IN_PROGRESS)
            )
        if role in SEES_FINANCE:
            now = self._clock.now()
            start = month_start(now)
            summary = summarize(await self._records.list_all(start=start, end=now), start, now)
            stats["monthly_income"] = summary.income
            stats["monthly_expense"] = summary.expense
        return stats
