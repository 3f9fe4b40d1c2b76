"""Memory document store.

Process-local implementation of the DocumentStore protocol for development
and tests. Every write completes synchronously within the event loop, so
watches observe changes in the order they were made.
"""

import asyncio
import copy
import logging
from typing import Any, Dict, List, Mapping, Optional

from ....core.exceptions import DocumentNotFound
from ....utils.uuid import generate_uuid_v7
from ..entities.protocols import Document, matches

logger = logging.getLogger(__name__)

_CLOSED = object()


class MemoryRecordWatch:
    """Queue-backed watch handed out by MemoryDocumentStore."""

    def __init__(self, store: "MemoryDocumentStore", collection: str, filter: Mapping[str, Any]):
        self.collection = collection
        self.filter = dict(filter)
        self._store = store
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    def push(self, snapshot: List[Document]) -> None:
        if not self._closed:
            self._queue.put_nowait(snapshot)

    def __aiter__(self) -> "MemoryRecordWatch":
        return self

    async def __anext__(self) -> List[Document]:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._store._detach(self)
        # Wake a consumer blocked in __anext__
        self._queue.put_nowait(_CLOSED)


class MemoryDocumentStore:
    """In-process document store with live watches."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._watches: Dict[str, List[MemoryRecordWatch]] = {}

    def _collection(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def _snapshot(self, collection: str, filter: Mapping[str, Any]) -> List[Document]:
        return [
            Document(id=document_id, data=copy.deepcopy(data))
            for document_id, data in self._collection(collection).items()
            if matches(data, filter)
        ]

    def _notify(
        self,
        collection: str,
        before: Optional[Mapping[str, Any]],
        after: Optional[Mapping[str, Any]],
    ) -> None:
        for watch in list(self._watches.get(collection, [])):
            touched = (before is not None and matches(before, watch.filter)) or (
                after is not None and matches(after, watch.filter)
            )
            if touched:
                watch.push(self._snapshot(collection, watch.filter))

    def _detach(self, watch: MemoryRecordWatch) -> None:
        watches = self._watches.get(watch.collection, [])
        if watch in watches:
            watches.remove(watch)
            logger.debug(f"Released watch on {watch.collection} {watch.filter}")

    @property
    def open_watches(self) -> int:
        """Number of watches not yet closed."""
        return sum(len(watches) for watches in self._watches.values())

    async def insert(self, collection: str, data: Mapping[str, Any]) -> str:
        document_id = generate_uuid_v7()
        stored = copy.deepcopy(dict(data))
        self._collection(collection)[document_id] = stored
        self._notify(collection, None, stored)
        return document_id

    async def update(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> None:
        records = self._collection(collection)
        if document_id not in records:
            raise DocumentNotFound(collection, document_id)
        before = records[document_id]
        after = {**before, **copy.deepcopy(dict(fields))}
        records[document_id] = after
        self._notify(collection, before, after)

    async def remove(self, collection: str, document_id: str) -> None:
        before = self._collection(collection).pop(document_id, None)
        if before is None:
            return
        self._notify(collection, before, None)

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        data = self._collection(collection).get(document_id)
        if data is None:
            return None
        return Document(id=document_id, data=copy.deepcopy(data))

    async def find(self, collection: str, filter: Mapping[str, Any]) -> List[Document]:
        return self._snapshot(collection, filter)

    async def watch(self, collection: str, filter: Mapping[str, Any]) -> MemoryRecordWatch:
        watch = MemoryRecordWatch(self, collection, filter)
        self._watches.setdefault(collection, []).append(watch)
        watch.push(self._snapshot(collection, watch.filter))
        logger.debug(f"Opened watch on {collection} {watch.filter}")
        return watch
