"""Document store protocol. Filters and updates use the MongoDB query/update dialect (subset)."""
from typing import Any, Optional, Protocol, runtime_checkable

Document = dict[str, Any]


@runtime_checkable
class DocumentStore(Protocol):
    """
    Collections of documents keyed by "_id".
    update_one is the atomic conditional update: the filter is the predicate,
    the update is applied only if it matches, in one step.
    """

    async def find_one(self, collection: str, filter: Document) -> Optional[Document]:
        ...

    async def find(self, collection: str, filter: Optional[Document] = None) -> list[Document]:
        ...

    async def ensure_unique(self, collection: str, field: str) -> None:
        """Reject writes that would give two documents the same value for field (Conflict)."""
        ...

    async def insert_one(self, collection: str, document: Document) -> None:
        ...

    async def replace_one(self, collection: str, filter: Document, document: Document) -> bool:
        ...

    async def update_one(self, collection: str, filter: Document, update: Document) -> Optional[Document]:
        """Apply update to the first match; return the updated document, or None when nothing matched."""
        ...

    async def delete_one(self, collection: str, filter: Document) -> bool:
        ...

    async def close(self) -> None:
        ...
