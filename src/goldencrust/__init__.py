"""
Golden Crust: bakery back-office service: catalog, price lists, discounts, orders and operations.
Application is composed from module objects via app.register(module).
"""
from goldencrust.core import Application, Config, Container, HttpModule, Module

__version__ = "0.1.0"

__all__ = [
    "Application",
    "Container",
    "Module",
    "HttpModule",
    "Config",
]
