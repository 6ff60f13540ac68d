"""
DomainModule: one object per bounded context.
Describes aggregate, repository, commands, queries, event subscriptions.
"""
from __future__ import annotations

import dataclasses
import json
import re
from typing import Any, Callable, Iterable, Type

from starlette.requests import Request

from goldencrust.core.access import Role
from goldencrust.core.app import Application
from goldencrust.core.errors import ValidationError
from goldencrust.core.module import Module
from goldencrust.core.openapi import parameters_from_message, schema_from_message
from goldencrust.core.responses import JSONResponse, Response
from goldencrust.ddd.commands import Command, PatchCommand, Query
from goldencrust.domain import Repository
from goldencrust.domain.events import EventBus, InProcessEventDispatcher

# Message fields filled from the caller identity, never from the payload.
ACTOR_FIELDS = ("actor_id", "actor_role")


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclasses.dataclass
class _Exposure:
    message_type: type
    handler: Any
    path: str | None
    methods: list[str] | None
    roles: frozenset[Role] | None
    status_code: int = 200


class DomainModule(Module):
    """
    One object = full bounded context.
    .aggregate() .repository() .bind() .command() .query() .on_event()
    Register via app.register(module).

    Commands and queries without an explicit path are served at
    {prefix}/commands/{snake_name} and {prefix}/queries/{snake_name}.
    """

    def __init__(self, name: str, prefix: str | None = None) -> None:
        self.name = name
        self.prefix = prefix or f"/{name}"
        self._aggregate_roots: list[Type[Any]] = []
        self._repositories: list[tuple[Type[Repository[Any]], Type[Any]]] = []
        self._bindings: list[tuple[Type[Any], Type[Any]]] = []
        self._commands: list[_Exposure] = []
        self._queries: list[_Exposure] = []
        self._event_handlers: list[tuple[type, Any]] = []

    def aggregate(self, root: Type[Any]) -> DomainModule:
        """Register aggregate root type (metadata only)."""
        self._aggregate_roots.append(root)
        return self

    def repository(self, interface: Type[Repository[Any]], impl: Type[Any]) -> DomainModule:
        self._repositories.append((interface, impl))
        return self

    def bind(self, interface: Type[Any], impl: Type[Any]) -> DomainModule:
        """Register any interface → implementation for DI (e.g. domain services)."""
        self._bindings.append((interface, impl))
        return self

    def command(
        self,
        cmd_type: Type[Command],
        handler: Type[Any] | Callable[..., Any],
        *,
        path: str | None = None,
        method: str = "POST",
        roles: Iterable[Role] | None = None,
        status_code: int = 200,
    ) -> DomainModule:
        self._commands.append(
            _Exposure(cmd_type, handler, path, [method], frozenset(roles) if roles is not None else None, status_code)
        )
        return self

    def query(
        self,
        query_type: Type[Query],
        handler: Type[Any] | Callable[..., Any],
        *,
        path: str | None = None,
        method: str = "GET",
        roles: Iterable[Role] | None = None,
    ) -> DomainModule:
        methods = [method] if path is not None else ["GET", "POST"]
        self._queries.append(
            _Exposure(query_type, handler, path, methods, frozenset(roles) if roles is not None else None)
        )
        return self

    def on_event(self, event_type: type, handler: Any) -> DomainModule:
        self._event_handlers.append((event_type, handler))
        return self

    @property
    def aggregates(self) -> list[Type[Any]]:
        return list(self._aggregate_roots)

    def register_into(self, app: Application) -> None:
        container = app.container

        # Repositories: interface -> implementation
        for iface, impl in self._repositories:
            container.register_class(impl)
            container.register(iface, lambda c=container, i=impl: c.resolve(i))

        # Arbitrary bindings (domain services, strategies, adapters)
        for iface, impl in self._bindings:
            container.register_class(impl)
            container.register(iface, lambda c=container, i=impl: c.resolve(i))

        # EventBus: if already registered, use it; else default in-process
        if container.has(EventBus):
            event_bus = container.resolve(EventBus)
        else:
            event_bus = InProcessEventDispatcher()
            container.register_instance(EventBus, event_bus)
            container.register_instance(InProcessEventDispatcher, event_bus)
        for event_type, handler in self._event_handlers:
            event_bus.subscribe(event_type, handler)

        for exp in self._commands:
            if isinstance(exp.handler, type):
                container.register_class(exp.handler)
            path = exp.path or f"{self.prefix.rstrip('/')}/commands/{_snake(exp.message_type.__name__)}"
            app.add_route(
                path,
                self._make_command_endpoint(exp, container),
                methods=exp.methods,
                roles=exp.roles,
                openapi_body_schema=schema_from_message(exp.message_type),
                openapi_tags=[self.name],
            )

        for exp in self._queries:
            if isinstance(exp.handler, type):
                container.register_class(exp.handler)
            path = exp.path or f"{self.prefix.rstrip('/')}/queries/{_snake(exp.message_type.__name__)}"
            app.add_route(
                path,
                self._make_query_endpoint(exp, container),
                methods=exp.methods,
                roles=exp.roles,
                openapi_parameters=parameters_from_message(exp.message_type, exclude=set(ACTOR_FIELDS)),
                openapi_body_schema=schema_from_message(exp.message_type),
                openapi_tags=[self.name],
            )

    async def _read_payload(self, request: Request, message_type: type) -> dict[str, Any]:
        body: Any = {}
        if request.method == "GET":
            body = dict(request.query_params)
        else:
            raw = await request.body()
            if raw:
                try:
                    body = json.loads(raw)
                except ValueError:
                    raise ValidationError("Request body is not valid JSON") from None
            if not isinstance(body, dict):
                raise ValidationError("Request body must be a JSON object")
        body.update(request.path_params)
        names = {f.name for f in dataclasses.fields(message_type)}
        payload = {k: v for k, v in body.items() if k in names and k not in ACTOR_FIELDS}
        identity = getattr(request.state, "identity", None)
        if "actor_id" in names:
            payload["actor_id"] = identity.user_id if identity is not None else None
        if "actor_role" in names:
            payload["actor_role"] = identity.role.value if identity is not None else None
        return payload

    def _make_command_endpoint(self, exp: _Exposure, container: Any) -> Callable:
        async def endpoint(request: Request) -> Response:
            payload = await self._read_payload(request, exp.message_type)
            cmd = exp.message_type(**payload)
            if isinstance(cmd, PatchCommand):
                cmd.mark_given(k for k in payload if k not in ACTOR_FIELDS)
            h = container.resolve(exp.handler) if isinstance(exp.handler, type) else exp.handler
            result = await self._call_handler(h, cmd)
            return JSONResponse(
                {"ok": True, "result": result} if result is not None else {"ok": True},
                status_code=exp.status_code,
            )
        endpoint.__name__ = _snake(exp.message_type.__name__)
        return endpoint

    def _make_query_endpoint(self, exp: _Exposure, container: Any) -> Callable:
        async def endpoint(request: Request) -> Response:
            query = exp.message_type(**await self._read_payload(request, exp.message_type))
            h = container.resolve(exp.handler) if isinstance(exp.handler, type) else exp.handler
            result = await self._call_handler(h, query)
            return JSONResponse(result if result is not None else {})
        endpoint.__name__ = _snake(exp.message_type.__name__)
        return endpoint

    async def _call_handler(self, handler: Any, payload: Any) -> Any:
        result = handler(payload)
        if hasattr(result, "__await__"):
            return await result
        return result
