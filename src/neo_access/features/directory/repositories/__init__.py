from .directory_store import DirectorySubscription, UserDirectoryStore, sort_newest_first
from .memory_document_store import MemoryDocumentStore, MemoryRecordWatch
from .postgres_document_store import PostgresDocumentStore, PostgresRecordWatch

__all__ = [
    "DirectorySubscription",
    "UserDirectoryStore",
    "sort_newest_first",
    "MemoryDocumentStore",
    "MemoryRecordWatch",
    "PostgresDocumentStore",
    "PostgresRecordWatch",
]
