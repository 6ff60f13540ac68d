"""Pricing context: price lists, discounts, price resolution and discount evaluation."""
from goldencrust.pricing.module import pricing_module

__all__ = ["pricing_module"]
