"""Route module: one object per context; routes are attached to it."""
from __future__ import annotations

from typing import Any, Callable, Iterable

from goldencrust.core.access import Role
from goldencrust.core.app import Application
from goldencrust.core.module import Module


class HttpModule(Module):
    """
    HTTP module: name + plain routes (no commands/queries).
    Attach via app.register(module).
    """

    def __init__(self, name: str, prefix: str | None = None) -> None:
        self.name = name
        self.prefix = prefix if prefix is not None else f"/{name}"
        self._routes: list[tuple[str, Any, list[str], frozenset[Role] | None]] = []

    def route(
        self,
        path: str,
        endpoint: Callable[..., Any],
        methods: list[str] | None = None,
        roles: Iterable[Role] | None = None,
    ) -> HttpModule:
        """Add a route. path without leading slash is under the module prefix."""
        if methods is None:
            methods = ["GET"]
        p = path if path.startswith("/") else f"/{path}"
        self._routes.append((p, endpoint, methods, frozenset(roles) if roles is not None else None))
        return self

    def register_into(self, app: Application) -> None:
        for path, endpoint, methods, allowed in self._routes:
            full_path = (self.prefix.rstrip("/") + path) or "/"
            app.add_route(full_path, endpoint, methods, roles=allowed, openapi_tags=[self.name])
