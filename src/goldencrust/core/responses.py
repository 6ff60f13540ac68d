"""JSON responses for module endpoints: Decimal, datetime, enum and set aware."""
from __future__ import annotations

import dataclasses
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from starlette.responses import JSONResponse as StarletteJSONResponse
from starlette.responses import Response

__all__ = ["JSONResponse", "Response", "to_jsonable"]


def to_jsonable(value: Any) -> Any:
    """Fallback encoder for json.dumps(default=...)."""
    if isinstance(value, Decimal):
        # money keeps its exact cents on the wire
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JSONResponse(StarletteJSONResponse):
    """JSON response; content is serialized to bytes with domain types converted."""

    def render(self, content: Any) -> bytes:
        return json.dumps(
            content,
            default=to_jsonable,
            ensure_ascii=False,
            separators=(",", ":"),
        ).encode("utf-8")
