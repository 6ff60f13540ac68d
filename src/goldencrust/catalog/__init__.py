"""Catalog context: products and categories."""
from goldencrust.catalog.module import catalog_module

__all__ = ["catalog_module"]
