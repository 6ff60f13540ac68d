"""Partners context: distributors and customer groups."""
from goldencrust.partners.module import partners_module

__all__ = ["partners_module"]
