"""
Domain events (stock low, order created, batch completed, ...) and the
in-process bus that hands them to subscribers. A subscriber to a base class
receives every subclass, so subscribing to DomainEvent sees everything.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class EventBus(Protocol):
    async def publish(self, event: object) -> None:
        ...

    def subscribe(self, event_type: type, handler: Callable[..., Any]) -> None:
        ...


@dataclass
class DomainEvent:
    """Something that happened in the bakery. Subclasses add the fields."""


class InProcessEventDispatcher:
    """Handlers run in subscription order, most specific event type first. Errors propagate to the publisher."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[..., Any]]] = {}

    def subscribe(self, event_type: type, handler: Callable[..., Any]) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    async def publish(self, event: object) -> None:
        logger.debug("publishing %s", type(event).__name__)
        for event_type in type(event).__mro__:
            for handler in self._handlers.get(event_type, ()):
                result = handler(event)
                if hasattr(result, "__await__"):
                    await result
