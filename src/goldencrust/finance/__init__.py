"""Finance context: income/expense records and summaries."""
from goldencrust.finance.module import finance_module

__all__ = ["finance_module"]
