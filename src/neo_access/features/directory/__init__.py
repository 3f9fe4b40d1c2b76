"""Owner-scoped sub-user directory."""

from .entities import Document, DocumentStore, RecordWatch, SubUser, SubUserProfile, SubUserUpdate
from .repositories import (
    DirectorySubscription,
    MemoryDocumentStore,
    PostgresDocumentStore,
    UserDirectoryStore,
)

__all__ = [
    "Document",
    "DocumentStore",
    "RecordWatch",
    "SubUser",
    "SubUserProfile",
    "SubUserUpdate",
    "DirectorySubscription",
    "MemoryDocumentStore",
    "PostgresDocumentStore",
    "UserDirectoryStore",
]
