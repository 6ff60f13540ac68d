"""Production context: baking batches."""
from goldencrust.production.module import production_module

__all__ = ["production_module"]
