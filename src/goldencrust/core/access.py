"""
Roles and the capability table.

Identity comes from the upstream session layer as request headers
(X-User-Id, X-User-Role). Every route is registered with the set of roles
allowed to call it (None = public); one guard checks the table at dispatch.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping

from goldencrust.core.errors import AuthenticationRequired, PermissionDenied

ROLE_HEADER = "x-user-role"
USER_HEADER = "x-user-id"


class Role(str, Enum):
    ADMIN = "admin"
    SALES = "sales"
    PRODUCTION = "production"
    INVENTORY = "inventory"
    ACCOUNTS = "accounts"
    DISTRIBUTOR = "distributor"


ANY_ROLE = frozenset(Role)


def roles(*names: Role | str) -> frozenset[Role]:
    return frozenset(Role(n) for n in names)


@dataclass(frozen=True)
class Identity:
    role: Role
    user_id: str | None = None


def identity_from_headers(headers: Mapping[str, str]) -> Identity | None:
    """Read caller identity; unknown role names count as no identity."""
    raw = (headers.get(ROLE_HEADER) or "").strip().lower()
    if not raw:
        return None
    try:
        role = Role(raw)
    except ValueError:
        return None
    return Identity(role=role, user_id=headers.get(USER_HEADER) or None)


class AccessPolicy:
    """Capability table: (method, path template) -> allowed roles, or None for public routes."""

    def __init__(self) -> None:
        self._table: dict[tuple[str, str], frozenset[Role] | None] = {}

    def allow(self, method: str, path: str, allowed: Iterable[Role] | None) -> None:
        self._table[(method.upper(), path)] = frozenset(allowed) if allowed is not None else None

    def allowed_roles(self, method: str, path: str) -> frozenset[Role] | None:
        return self._table.get((method.upper(), path))

    def check(self, method: str, path: str, identity: Identity | None) -> None:
        allowed = self.allowed_roles(method, path)
        if allowed is None:
            return
        if identity is None:
            raise AuthenticationRequired("Authentication required")
        if identity.role not in allowed:
            raise PermissionDenied("Insufficient permissions")
