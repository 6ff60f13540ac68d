from goldencrust.store.memory import InMemoryDocumentStore
from goldencrust.store.protocol import Document, DocumentStore
from goldencrust.store.repository import DocumentRepository, new_id

__all__ = [
    "Document",
    "DocumentStore",
    "DocumentRepository",
    "InMemoryDocumentStore",
    "new_id",
]
