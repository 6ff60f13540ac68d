"""Minimal OpenAPI 3.0 and Swagger UI: /openapi.json and /docs."""
from __future__ import annotations

import dataclasses
import re
from typing import Any

from pydantic import TypeAdapter
from pydantic.errors import PydanticUserError


@dataclasses.dataclass
class RouteDoc:
    """What the OpenAPI document needs to know about one registered route."""
    path: str
    method: str
    body_schema: dict[str, Any] | None = None
    parameters: list[dict[str, Any]] | None = None
    tags: list[str] | None = None
    roles: list[str] | None = None


def _path_to_openapi(path: str) -> str:
    """Strip Starlette convertors: {id:str} -> {id}."""
    return re.sub(r"\{(\w+):\w+\}", r"{\1}", path)


def _path_param_names(path: str) -> list[str]:
    return re.findall(r"\{(\w+)(?::\w+)?\}", path)


def schema_from_message(cls: type) -> dict[str, Any]:
    """JSON schema of a command/query dataclass so Swagger shows required fields and types."""
    if not dataclasses.is_dataclass(cls):
        return {"type": "object"}
    try:
        return TypeAdapter(cls).json_schema()
    except PydanticUserError:
        return {"type": "object"}


def parameters_from_message(cls: type, exclude: set[str] | None = None) -> list[dict[str, Any]]:
    """Build OpenAPI query parameters from a query dataclass (for GET queries)."""
    exclude = exclude or set()
    schema = schema_from_message(cls)
    required = set(schema.get("required", []))
    params: list[dict[str, Any]] = []
    for name, prop in schema.get("properties", {}).items():
        if name in exclude:
            continue
        params.append({
            "name": name,
            "in": "query",
            "required": name in required,
            "schema": prop,
        })
    return params


def build_openapi_spec(
    routes: list[RouteDoc],
    *,
    title: str = "API",
    version: str = "0.1.0",
) -> dict[str, Any]:
    """Build OpenAPI 3.0 spec from registered routes."""
    paths: dict[str, Any] = {}
    for route in routes:
        path = _path_to_openapi(route.path)
        method_lower = route.method.lower()
        op: dict[str, Any] = {
            "summary": f"{route.method} {path}",
            "tags": route.tags or ["default"],
            "responses": {
                "200": {"description": "OK", "content": {"application/json": {"schema": {"type": "object"}}}},
            },
        }
        params = [
            {"name": name, "in": "path", "required": True, "schema": {"type": "string"}}
            for name in _path_param_names(route.path)
        ]
        if method_lower == "get" and route.parameters:
            params.extend(route.parameters)
        if params:
            op["parameters"] = params
        if method_lower != "get" and route.body_schema:
            op["requestBody"] = {
                "required": True,
                "content": {"application/json": {"schema": route.body_schema}},
            }
        if route.roles is not None:
            op["description"] = "Roles: " + ", ".join(route.roles)
            op["responses"]["401"] = {"description": "Authentication required"}
            op["responses"]["403"] = {"description": "Insufficient permissions"}
        paths.setdefault(path, {})[method_lower] = op
    return {
        "openapi": "3.0.0",
        "info": {"title": title, "version": version},
        "paths": paths,
    }


SWAGGER_UI_HTML = """<!DOCTYPE html>
<html>
<head>
  <title>{title}</title>
  <link rel="stylesheet" type="text/css" href="https://unpkg.com/swagger-ui-dist@5/swagger-ui.css">
</head>
<body>
  <div id="swagger-ui"></div>
  <script src="https://unpkg.com/swagger-ui-dist@5/swagger-ui-bundle.js"></script>
  <script>
    SwaggerUIBundle({{
      url: "{openapi_path}",
      dom_id: "#swagger-ui",
    }});
  </script>
</body>
</html>
"""
