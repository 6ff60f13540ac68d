"""MongoDB document store (pymongo async client). update_one maps to find_one_and_update."""
from __future__ import annotations

import logging
from typing import Any, Optional

from pymongo import AsyncMongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError

from goldencrust.core.errors import Conflict
from goldencrust.store.protocol import Document

logger = logging.getLogger(__name__)


def database_name_from_uri(uri: str, default: str = "goldencrust") -> str:
    """mongodb://host/dbname?opts -> dbname."""
    tail = uri.split("://", 1)[-1]
    if "/" not in tail:
        return default
    name = tail.split("/", 1)[1].split("?", 1)[0]
    return name or default


def _conflict(collection: str, error: DuplicateKeyError) -> Conflict:
    key = (error.details or {}).get("keyValue") or {}
    described = ", ".join(f"{field} {value!r}" for field, value in key.items()) or "key"
    return Conflict(f"{described} is already in use in {collection}")


class MongoDocumentStore:
    def __init__(self, uri: str, database: Optional[str] = None, client: Any = None) -> None:
        self._client = client or AsyncMongoClient(uri, tz_aware=True)
        self._db = self._client[database or database_name_from_uri(uri)]
        logger.info("using MongoDB database %s", self._db.name)

    async def ensure_unique(self, collection: str, field: str) -> None:
        await self._db[collection].create_index(field, unique=True)
        logger.debug("unique index on %s.%s", collection, field)

    async def find_one(self, collection: str, filter: Document) -> Optional[Document]:
        return await self._db[collection].find_one(filter)

    async def find(self, collection: str, filter: Optional[Document] = None) -> list[Document]:
        cursor = self._db[collection].find(filter or {})
        return await cursor.to_list(None)

    async def insert_one(self, collection: str, document: Document) -> None:
        try:
            await self._db[collection].insert_one(dict(document))
        except DuplicateKeyError as e:
            raise _conflict(collection, e) from e

    async def replace_one(self, collection: str, filter: Document, document: Document) -> bool:
        body = {k: v for k, v in document.items() if k != "_id"}
        try:
            result = await self._db[collection].replace_one(filter, body)
        except DuplicateKeyError as e:
            raise _conflict(collection, e) from e
        return result.matched_count > 0

    async def update_one(self, collection: str, filter: Document, update: Document) -> Optional[Document]:
        try:
            return await self._db[collection].find_one_and_update(
                filter, update, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError as e:
            raise _conflict(collection, e) from e

    async def delete_one(self, collection: str, filter: Document) -> bool:
        result = await self._db[collection].delete_one(filter)
        return result.deleted_count > 0

    async def close(self) -> None:
        await self._client.close()
