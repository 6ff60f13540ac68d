"""Repository: persistence interface for one aggregate type."""
from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

from goldencrust.core.errors import NotFound

T = TypeVar("T")


class Repository(ABC, Generic[T]):
    """get / add / save by id. `entity_name` labels NotFound errors raised by require()."""

    entity_name = "entity"

    @abstractmethod
    async def get(self, id: str) -> Optional[T]:
        ...

    async def require(self, id: str) -> T:
        entity = await self.get(id)
        if entity is None:
            raise NotFound(self.entity_name, id)
        return entity

    @abstractmethod
    async def add(self, aggregate: T) -> None:
        ...

    @abstractmethod
    async def save(self, aggregate: T) -> None:
        ...
