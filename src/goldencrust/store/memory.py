"""In-memory document store. Each match-and-write runs under one lock, so update_one is atomic."""
from __future__ import annotations

import copy
import threading
from typing import Optional

from goldencrust.core.errors import Conflict
from goldencrust.store.matching import apply_update, matches
from goldencrust.store.protocol import Document


class InMemoryDocumentStore:
    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = {}
        self._unique: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def _collection(self, name: str) -> dict[str, Document]:
        return self._collections.setdefault(name, {})

    def _check_unique(self, collection: str, document: Document) -> None:
        # caller holds the lock
        for field in self._unique.get(collection, ()):
            value = document.get(field)
            if value is None:
                continue
            for other in self._collection(collection).values():
                if other["_id"] != document["_id"] and other.get(field) == value:
                    raise Conflict(f"{field} {value!r} is already in use")

    async def ensure_unique(self, collection: str, field: str) -> None:
        with self._lock:
            self._unique.setdefault(collection, set()).add(field)

    async def find_one(self, collection: str, filter: Document) -> Optional[Document]:
        with self._lock:
            for doc in self._collection(collection).values():
                if matches(doc, filter):
                    return copy.deepcopy(doc)
        return None

    async def find(self, collection: str, filter: Optional[Document] = None) -> list[Document]:
        with self._lock:
            return [copy.deepcopy(d) for d in self._collection(collection).values() if matches(d, filter)]

    async def insert_one(self, collection: str, document: Document) -> None:
        with self._lock:
            docs = self._collection(collection)
            if document["_id"] in docs:
                raise Conflict(f"duplicate id {document['_id']!r} in {collection}")
            self._check_unique(collection, document)
            docs[document["_id"]] = copy.deepcopy(document)

    async def replace_one(self, collection: str, filter: Document, document: Document) -> bool:
        with self._lock:
            docs = self._collection(collection)
            for key, doc in docs.items():
                if matches(doc, filter):
                    replacement = {**document, "_id": doc["_id"]}
                    self._check_unique(collection, replacement)
                    docs[key] = copy.deepcopy(replacement)
                    return True
        return False

    async def update_one(self, collection: str, filter: Document, update: Document) -> Optional[Document]:
        with self._lock:
            docs = self._collection(collection)
            for key, doc in docs.items():
                if matches(doc, filter):
                    updated = apply_update(doc, update)
                    self._check_unique(collection, updated)
                    docs[key] = updated
                    return copy.deepcopy(updated)
        return None

    async def delete_one(self, collection: str, filter: Document) -> bool:
        with self._lock:
            docs = self._collection(collection)
            for key, doc in list(docs.items()):
                if matches(doc, filter):
                    del docs[key]
                    return True
        return False

    async def close(self) -> None:
        pass
