"""Inventory context: stock movements and low-stock reporting."""
from goldencrust.inventory.module import inventory_module

__all__ = ["inventory_module"]
