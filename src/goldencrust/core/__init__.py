from goldencrust.core.app import Application
from goldencrust.core.container import Container
from goldencrust.core.module import Module
from goldencrust.core.routing import HttpModule
from goldencrust.core.config import Config

__all__ = [
    "Application",
    "Container",
    "Module",
    "HttpModule",
    "Config",
]
