"""
A bakery service is assembled from named modules (catalog, pricing, orders, ...).
Each one wires its own routes, handlers and event subscriptions into the app.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from goldencrust.core.app import Application


@runtime_checkable
class Module(Protocol):
    """Named unit of the service; the name shows up in logs and the default URL prefix."""

    name: str

    def register_into(self, app: Application) -> None:
        ...
