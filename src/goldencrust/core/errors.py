"""Error kinds and their HTTP mapping. Envelope: {"error": {"code", "message", "details"}}."""
from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from starlette.requests import Request

from goldencrust.core.responses import JSONResponse

logger = logging.getLogger(__name__)


class GoldenCrustError(Exception):
    """Base error: carries a machine code, HTTP status and optional details list."""

    code = "error"
    status_code = 500

    def __init__(self, message: str, *, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class NotFound(GoldenCrustError):
    code = "not_found"
    status_code = 404

    def __init__(self, kind: str, id: str) -> None:
        super().__init__(f"{kind} {id!r} not found")
        self.kind = kind
        self.id = id


class ValidationError(GoldenCrustError):
    code = "validation_error"
    status_code = 400

    def __init__(self, message: str, *, field: str | None = None, details: list[dict[str, Any]] | None = None) -> None:
        if details is None and field is not None:
            details = [{"loc": [field], "msg": message}]
        super().__init__(message, details=details)


class Conflict(GoldenCrustError):
    code = "conflict"
    status_code = 409


class InvalidTransition(Conflict):
    code = "invalid_transition"


class CategoryCycleError(Conflict):
    """Category parent links form a loop: data-integrity error."""

    code = "category_cycle"

    def __init__(self, category_id: str) -> None:
        super().__init__(f"category {category_id!r} is part of a parent cycle")
        self.category_id = category_id


class AuthenticationRequired(GoldenCrustError):
    code = "authentication_required"
    status_code = 401


class PermissionDenied(GoldenCrustError):
    code = "permission_denied"
    status_code = 403


class DiscountExhausted(GoldenCrustError):
    """Usage-limit race lost on redemption. Handled inside order creation, never returned to clients."""

    code = "discount_exhausted"
    status_code = 409

    def __init__(self, discount_id: str) -> None:
        super().__init__(f"discount {discount_id!r} has reached its usage limit")
        self.discount_id = discount_id


async def handle_domain_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, GoldenCrustError)
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse({"error": exc.to_dict()}, status_code=exc.status_code)


async def handle_pydantic_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, PydanticValidationError)
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors(include_url=False, include_context=False, include_input=False)
    ]
    logger.info("%s %s rejected: %d validation error(s)", request.method, request.url.path, len(details))
    return JSONResponse(
        {"error": {"code": ValidationError.code, "message": "Invalid request", "details": details}},
        status_code=400,
    )


EXCEPTION_HANDLERS = {
    GoldenCrustError: handle_domain_error,
    PydanticValidationError: handle_pydantic_error,
}
