"""
PostgreSQL document store using asyncpg.

Records live in one ``documents`` table as JSONB. Filters use JSON
containment, and live watches use LISTEN/NOTIFY: every write notifies the
collection's channel inside its transaction and each watch re-reads its
filtered set when notified.
"""
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Mapping, Optional

import asyncpg
from asyncpg import Connection, Pool

from ....core.exceptions import DocumentNotFound, DocumentStoreError
from ....utils.uuid import generate_uuid_v7
from ..entities.protocols import Document

logger = logging.getLogger(__name__)

NOTIFY_CHANNEL = "neo_access_documents"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    data JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    PRIMARY KEY (collection, id)
);
CREATE INDEX IF NOT EXISTS documents_data_gin ON documents USING GIN (data jsonb_path_ops);
"""

_WAKE = object()
_CLOSED = object()


def _load(data: Any) -> Dict[str, Any]:
    # asyncpg returns JSONB as text unless a codec is registered
    if isinstance(data, str):
        return json.loads(data)
    return dict(data)


class PostgresRecordWatch:
    """LISTEN/NOTIFY-backed watch holding one pooled connection until closed."""

    def __init__(self, store: "PostgresDocumentStore", collection: str, filter: Mapping[str, Any]):
        self.collection = collection
        self.filter = dict(filter)
        self._store = store
        self._queue: asyncio.Queue = asyncio.Queue()
        self._connection: Optional[Connection] = None
        self._closed = False

    async def open(self) -> "PostgresRecordWatch":
        pool = await self._store.create_pool()
        self._connection = await pool.acquire()
        try:
            await self._connection.add_listener(NOTIFY_CHANNEL, self._on_notify)
        except Exception:
            await pool.release(self._connection)
            self._connection = None
            raise
        # First emission is the current state
        self._queue.put_nowait(_WAKE)
        return self

    def _on_notify(self, connection, pid, channel, payload) -> None:
        if payload == self.collection and not self._closed:
            self._queue.put_nowait(_WAKE)

    def __aiter__(self) -> "PostgresRecordWatch":
        return self

    async def __anext__(self) -> List[Document]:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        # Collapse notifications that arrived while we were waiting
        while not self._queue.empty():
            if self._queue.get_nowait() is _CLOSED:
                raise StopAsyncIteration
        return await self._store.find(self.collection, self.filter)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        if self._connection is not None:
            connection, self._connection = self._connection, None
            try:
                await connection.remove_listener(NOTIFY_CHANNEL, self._on_notify)
            except (asyncpg.PostgresError, asyncpg.InterfaceError) as e:
                logger.warning(f"Failed to remove listener on {NOTIFY_CHANNEL}: {e}")
            finally:
                await self._store.pool.release(connection)
        logger.debug(f"Released watch on {self.collection} {self.filter}")


class PostgresDocumentStore:
    """DocumentStore implementation over a single JSONB table."""

    def __init__(self, database_url: str, **pool_config):
        """Initialize the store.

        Args:
            database_url: PostgreSQL DSN
            **pool_config: Additional asyncpg pool configuration options
        """
        if not database_url:
            raise ValueError("Database URL is required")
        self.pool: Optional[Pool] = None
        self.dsn = database_url.replace("+asyncpg", "")
        self.pool_config = {
            "min_size": 1,
            "max_size": 10,
            "max_inactive_connection_lifetime": 300,
            "command_timeout": 60,
            **pool_config
        }

    async def create_pool(self) -> Pool:
        """Create and return the connection pool."""
        if self.pool is None:
            logger.info(f"Creating document store pool with size {self.pool_config['max_size']}")
            try:
                self.pool = await asyncpg.create_pool(self.dsn, **self.pool_config)
            except (asyncpg.PostgresError, OSError) as e:
                raise DocumentStoreError(f"Cannot connect to document store: {e}") from e
        return self.pool

    async def close_pool(self) -> None:
        """Close the connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Document store pool closed")

    @asynccontextmanager
    async def transaction(self):
        """Acquire a connection and open a transaction on it."""
        pool = await self.create_pool()
        try:
            async with pool.acquire() as connection:
                async with connection.transaction():
                    yield connection
        except asyncpg.PostgresError as e:
            raise DocumentStoreError(f"Document store operation failed: {e}") from e

    async def ensure_schema(self) -> None:
        """Create the documents table if it does not exist."""
        async with self.transaction() as conn:
            await conn.execute(SCHEMA_SQL)

    async def _notify(self, conn: Connection, collection: str) -> None:
        await conn.execute("SELECT pg_notify($1, $2)", NOTIFY_CHANNEL, collection)

    async def insert(self, collection: str, data: Mapping[str, Any]) -> str:
        document_id = generate_uuid_v7()
        async with self.transaction() as conn:
            await conn.execute(
                "INSERT INTO documents (collection, id, data) VALUES ($1, $2, $3::jsonb)",
                collection, document_id, json.dumps(dict(data))
            )
            await self._notify(conn, collection)
        return document_id

    async def update(self, collection: str, document_id: str, fields: Mapping[str, Any]) -> None:
        async with self.transaction() as conn:
            status = await conn.execute(
                "UPDATE documents SET data = data || $3::jsonb WHERE collection = $1 AND id = $2",
                collection, document_id, json.dumps(dict(fields))
            )
            if status == "UPDATE 0":
                raise DocumentNotFound(collection, document_id)
            await self._notify(conn, collection)

    async def remove(self, collection: str, document_id: str) -> None:
        async with self.transaction() as conn:
            status = await conn.execute(
                "DELETE FROM documents WHERE collection = $1 AND id = $2",
                collection, document_id
            )
            if status != "DELETE 0":
                await self._notify(conn, collection)

    async def get(self, collection: str, document_id: str) -> Optional[Document]:
        pool = await self.create_pool()
        try:
            row = await pool.fetchrow(
                "SELECT id, data FROM documents WHERE collection = $1 AND id = $2",
                collection, document_id
            )
        except asyncpg.PostgresError as e:
            raise DocumentStoreError(f"Cannot read document {document_id}: {e}") from e
        if row is None:
            return None
        return Document(id=row["id"], data=_load(row["data"]))

    async def find(self, collection: str, filter: Mapping[str, Any]) -> List[Document]:
        pool = await self.create_pool()
        try:
            rows = await pool.fetch(
                """
                SELECT id, data FROM documents
                WHERE collection = $1 AND data @> $2::jsonb
                ORDER BY created_at, id
                """,
                collection, json.dumps(dict(filter))
            )
        except asyncpg.PostgresError as e:
            raise DocumentStoreError(f"Cannot query {collection}: {e}") from e
        return [Document(id=row["id"], data=_load(row["data"])) for row in rows]

    async def watch(self, collection: str, filter: Mapping[str, Any]) -> PostgresRecordWatch:
        try:
            return await PostgresRecordWatch(self, collection, filter).open()
        except asyncpg.PostgresError as e:
            raise DocumentStoreError(f"Cannot watch {collection}: {e}") from e
