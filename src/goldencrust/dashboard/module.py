"""Stateless bounded context «dashboard»: no aggregate, no repository of its own."""
from goldencrust.core.access import ANY_ROLE
from goldencrust.ddd import DomainModule

from .application import DashboardStats, DashboardStatsHandler

dashboard_module = DomainModule("dashboard").query(
    DashboardStats, DashboardStatsHandler, path="/api/dashboard/stats", roles=ANY_ROLE
)
