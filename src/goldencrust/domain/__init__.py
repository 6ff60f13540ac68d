"""Domain layer base classes: ValueObject, DomainEvent, Repository."""
from goldencrust.domain.value_object import ValueObject
from goldencrust.domain.events import DomainEvent, EventBus, InProcessEventDispatcher
from goldencrust.domain.repository import Repository

__all__ = [
    "ValueObject",
    "DomainEvent",
    "EventBus",
    "InProcessEventDispatcher",
    "Repository",
]
