"""Orders context: order pricing, placement and lifecycle."""
from goldencrust.orders.module import orders_module

__all__ = ["orders_module"]
