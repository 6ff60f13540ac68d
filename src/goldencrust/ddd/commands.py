"""
Message bases. Concrete commands and queries are pydantic dataclasses that
subclass these and are validated on construction.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from goldencrust.core.errors import ValidationError


@dataclass
class Command:
    """Intent to change state. One handler per command type."""


@dataclass
class Query:
    """Intent to read. One handler per query type."""


@dataclass
class PatchCommand(Command):
    """
    Partial update. The dispatcher records which fields the request body
    carried, so an explicit null clears a nullable field and an absent field
    is left alone. Built in code without mark_given(), a field counts as sent
    when it is not None.
    """

    def mark_given(self, names: Iterable[str]) -> PatchCommand:
        self._given = frozenset(names)
        return self

    def given(self, name: str) -> bool:
        sent = getattr(self, "_given", None)
        if sent is None:
            return getattr(self, name) is not None
        return name in sent

    def changes(self, *names: str, nullable: Iterable[str] = ()) -> dict[str, Any]:
        """Sent fields among names; null is only accepted for the nullable ones."""
        nullable = set(nullable)
        found: dict[str, Any] = {}
        for name in names:
            if not self.given(name):
                continue
            value = getattr(self, name)
            if value is None and name not in nullable:
                raise ValidationError(f"{name} cannot be null", field=name)
            found[name] = value
        return found
