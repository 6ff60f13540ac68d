"""Application: composed from modules via app.register(module). Backed by Starlette, served by uvicorn."""
from __future__ import annotations

import contextlib
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse
from starlette.routing import Route

from goldencrust.core.access import AccessPolicy, Role, identity_from_headers
from goldencrust.core.container import Container
from goldencrust.core.errors import EXCEPTION_HANDLERS
from goldencrust.core.module import Module
from goldencrust.core.openapi import SWAGGER_UI_HTML, RouteDoc, build_openapi_spec
from goldencrust.core.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

Endpoint = Callable[[Request], Awaitable[Response]]


class Application:
    """
    Application. Composed from modules via register(module).
    Every route goes through one dispatch guard that checks the access policy.
    The instance is an ASGI app: uvicorn goldencrust.main:app
    """

    def __init__(self, config: Any = None) -> None:
        self._modules: list[Module] = []
        self._container = Container()
        self._routes: list[Route] = []
        self._route_docs: list[RouteDoc] = []
        self._access = AccessPolicy()
        self._startup_hooks: list[Callable[[], Awaitable[None]]] = []
        self._shutdown_hooks: list[Callable[[], Awaitable[None]]] = []
        self._openapi_title = "API"
        self._openapi_version = "0.1.0"
        self._asgi: Starlette | None = None
        if config is not None:
            self._container.register_instance(type(config), config)
            self._container.register_instance("config", config)

    def register(self, module: Module) -> Application:
        """Register a module (DomainModule, HttpModule, etc.). Returns self for chaining."""
        if self._asgi is not None:
            raise RuntimeError("cannot register modules after the application has started")
        module.register_into(self)
        self._modules.append(module)
        logger.debug("registered module %s", module.name)
        return self

    def add_route(
        self,
        path: str,
        endpoint: Endpoint,
        methods: list[str] | None = None,
        *,
        roles: Iterable[Role] | None = None,
        openapi_body_schema: dict[str, Any] | None = None,
        openapi_parameters: list[dict[str, Any]] | None = None,
        openapi_tags: list[str] | None = None,
    ) -> None:
        """Add an HTTP route; roles=None makes it public. openapi_* feed /openapi.json."""
        if methods is None:
            methods = ["GET"]
        path = "/" + path.lstrip("/")
        allowed = frozenset(roles) if roles is not None else None
        for method in methods:
            method = method.upper()
            self._access.allow(method, path, allowed)
            self._routes.append(Route(path, self._dispatch(endpoint, method, path), methods=[method]))
            self._route_docs.append(
                RouteDoc(
                    path=path,
                    method=method,
                    body_schema=openapi_body_schema,
                    parameters=openapi_parameters,
                    tags=openapi_tags,
                    roles=sorted(r.value for r in allowed) if allowed is not None else None,
                )
            )

    def _dispatch(self, endpoint: Endpoint, method: str, path: str) -> Endpoint:
        access = self._access

        async def guarded(request: Request) -> Response:
            identity = identity_from_headers(request.headers)
            request.state.identity = identity
            access.check(method, path, identity)
            return await endpoint(request)

        guarded.__name__ = getattr(endpoint, "__name__", "endpoint")
        return guarded

    def on_startup(self, hook: Callable[[], Awaitable[None]]) -> Application:
        self._startup_hooks.append(hook)
        return self

    def on_shutdown(self, hook: Callable[[], Awaitable[None]]) -> Application:
        self._shutdown_hooks.append(hook)
        return self

    def openapi(
        self,
        *,
        title: str = "API",
        version: str = "0.1.0",
        docs_path: str = "/docs",
        openapi_path: str = "/openapi.json",
    ) -> Application:
        """Serve the OpenAPI document and Swagger UI."""
        self._openapi_title = title
        self._openapi_version = version

        async def openapi_endpoint(request: Request) -> Response:
            return JSONResponse(
                build_openapi_spec(self._route_docs, title=self._openapi_title, version=self._openapi_version)
            )

        async def docs_endpoint(request: Request) -> Response:
            return HTMLResponse(SWAGGER_UI_HTML.format(title=self._openapi_title, openapi_path=openapi_path))

        self._routes.append(Route(openapi_path, openapi_endpoint, methods=["GET"], include_in_schema=False))
        self._routes.append(Route(docs_path, docs_endpoint, methods=["GET"], include_in_schema=False))
        return self

    @property
    def container(self) -> Container:
        """DI container: registration and resolution of dependencies."""
        return self._container

    def build(self) -> Starlette:
        """Freeze routes into the Starlette app (done on first request)."""
        if self._asgi is None:
            startup, shutdown = self._startup_hooks, self._shutdown_hooks

            @contextlib.asynccontextmanager
            async def lifespan(app: Starlette) -> AsyncIterator[None]:
                for hook in startup:
                    await hook()
                yield
                for hook in shutdown:
                    await hook()

            self._asgi = Starlette(
                routes=list(self._routes),
                exception_handlers=dict(EXCEPTION_HANDLERS),
                lifespan=lifespan,
            )
            logger.debug("application built with %d routes", len(self._routes))
        return self._asgi

    async def __call__(self, scope: Any, receive: Any, send: Any) -> None:
        await self.build()(scope, receive, send)

    def run(self, host: str = "127.0.0.1", port: int = 8000, log_level: str = "info") -> None:
        """Run HTTP server (blocks)."""
        import uvicorn

        uvicorn.run(self, host=host, port=port, log_level=log_level.lower())
