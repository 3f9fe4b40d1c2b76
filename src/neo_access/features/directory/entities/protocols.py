"""Document store protocol contracts.

The directory never talks to a concrete database. It consumes these
protocols; adapters live in ``repositories``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class Document:
    """A stored record: store-assigned id plus its field mapping."""

    id: str
    data: Dict[str, Any] = field(default_factory=dict)


def matches(data: Mapping[str, Any], filter: Mapping[str, Any]) -> bool:
    """Equality match of every filter field against the record."""
    return all(data.get(key) == value for key, value in filter.items())


@runtime_checkable
class RecordWatch(Protocol):
    """A standing watch over a filtered collection.

    Iterating yields the full filtered record set, first the current state and
    then once per change affecting it. ``close`` releases the watch and ends
    iteration; it is safe to call more than once.
    """

    def __aiter__(self) -> "RecordWatch":
        ...

    async def __anext__(self) -> List[Document]:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Structured-record persistence with live queries."""

    async def insert(self, collection: str, data: Mapping[str, Any]) -> str:
        """Insert a record.

        Args:
            collection: Target collection
            data: Record fields

        Returns:
            Store-assigned document id

        Raises:
            DocumentStoreError: If the write fails
        """
        ...

    async def update(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> None:
        """Merge fields into an existing record, leaving other fields untouched.

        Raises:
            DocumentNotFound: If the record does not exist
            DocumentStoreError: If the write fails
        """
        ...

    async def remove(self, collection: str, document_id: str) -> None:
        """Delete a record. Removing a missing id succeeds without effect."""
        ...

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        """Fetch one record by id."""
        ...

    async def find(self, collection: str, filter: Mapping[str, Any]) -> List[Document]:
        """Fetch every record whose fields equal the filter values."""
        ...

    async def watch(self, collection: str, filter: Mapping[str, Any]) -> RecordWatch:
        """Open a standing watch over the records matching the filter."""
        ...
