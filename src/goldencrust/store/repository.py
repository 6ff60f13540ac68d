"""Repository over a DocumentStore: entity <-> document mapping lives in subclasses."""
from __future__ import annotations

import uuid
from abc import abstractmethod
from typing import Any, Generic, Optional, TypeVar

from goldencrust.store.protocol import Document, DocumentStore

T = TypeVar("T")


def new_id() -> str:
    return uuid.uuid4().hex


class DocumentRepository(Generic[T]):
    """
    get / add / save / delete for entities with an `id` attribute, stored under "_id".

    `unique_fields` are enforced by the store (a unique index on MongoDB), so a
    check-then-insert race ends in Conflict instead of a duplicate.
    """

    collection: str = ""
    unique_fields: tuple[str, ...] = ()

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self._indexed = False

    @abstractmethod
    def to_document(self, entity: T) -> Document:
        ...

    @abstractmethod
    def from_document(self, document: Document) -> T:
        ...

    async def ensure_indexes(self) -> None:
        if self._indexed:
            return
        for field in self.unique_fields:
            await self._store.ensure_unique(self.collection, field)
        self._indexed = True

    async def get(self, id: str) -> Optional[T]:
        doc = await self._store.find_one(self.collection, {"_id": id})
        return self.from_document(doc) if doc is not None else None

    async def add(self, aggregate: T) -> None:
        await self.ensure_indexes()
        await self._store.insert_one(self.collection, self.to_document(aggregate))

    async def save(self, aggregate: T) -> None:
        await self.ensure_indexes()
        await self._store.replace_one(self.collection, {"_id": getattr(aggregate, "id")}, self.to_document(aggregate))

    async def delete(self, id: str) -> bool:
        return await self._store.delete_one(self.collection, {"_id": id})

    async def find(self, filter: Optional[Document] = None) -> list[T]:
        return [self.from_document(d) for d in await self._store.find(self.collection, filter)]

    async def update(self, id: str, update: Document, predicate: Optional[dict[str, Any]] = None) -> Optional[T]:
        """Atomic conditional update by id; None when the id is unknown or the predicate fails."""
        await self.ensure_indexes()
        doc = await self._store.update_one(self.collection, {"_id": id, **(predicate or {})}, update)
        return self.from_document(doc) if doc is not None else None
