"""Minimal DI container: register by type/protocol, resolve dependencies."""
from __future__ import annotations

import inspect
import typing
from typing import Any, Callable, TypeVar

T = TypeVar("T")


def _constructor_hints(cls: type[Any]) -> dict[str, Any]:
    """Resolve __init__ annotations against the module that defines __init__ (handles inherited constructors)."""
    try:
        hints = typing.get_type_hints(cls.__init__)
    except (NameError, TypeError):
        hints = {}
    hints.pop("return", None)
    return hints


def _instantiate_with_container(container: Container, cls: type[T]) -> T:
    """Create an instance of cls, resolving __init__ dependencies from the container."""
    sig = inspect.signature(cls)
    hints = _constructor_hints(cls)
    kwargs: dict[str, Any] = {}
    for name, param in sig.parameters.items():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        ann = hints.get(name, param.annotation)
        if ann is inspect.Parameter.empty:
            continue
        if param.default is not inspect.Parameter.empty and not container.has(ann):
            continue
        kwargs[name] = container.resolve(ann)
    return cls(**kwargs)


class Container:
    """
    Register by type (or key) and resolve via factory.
    Allows registering an implementation for a protocol/abstraction.
    """

    def __init__(self) -> None:
        self._registry: dict[type[Any] | str, Callable[[], Any]] = {}
        self._singletons: dict[type[Any] | str, Any] = {}
        self._singleton_keys: set[type[Any] | str] = set()

    def register(self, key: type[T] | type[Any] | str, factory: Callable[[], T], singleton: bool = True) -> None:
        """Register a factory for a type or string key."""
        self._registry[key] = factory
        if singleton:
            self._singleton_keys.add(key)
            self._singletons[key] = None  # placeholder until first resolve

    def register_instance(self, key: type[T] | type[Any] | str, instance: T) -> None:
        """Register a ready-made instance."""
        self._registry[key] = lambda: instance
        self._singletons[key] = instance
        self._singleton_keys.add(key)

    def has(self, key: Any) -> bool:
        try:
            return key in self._registry
        except TypeError:
            return False

    def resolve(self, key: type[T] | type[Any] | str) -> T:
        """Resolve an instance by type or key."""
        if not self.has(key):
            raise KeyError(f"No registration for {key}")
        if key in self._singleton_keys and self._singletons.get(key) is not None:
            return self._singletons[key]
        instance = self._registry[key]()
        if key in self._singleton_keys:
            self._singletons[key] = instance
        return instance

    def register_class(self, cls: type[T], singleton: bool = True) -> None:
        """Register a class: on resolve an instance is created with dependencies from the container."""
        self.register(key=cls, factory=lambda: _instantiate_with_container(self, cls), singleton=singleton)
