from goldencrust.dashboard.module import dashboard_module

__all__ = ["dashboard_module"]
