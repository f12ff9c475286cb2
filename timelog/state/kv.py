"""
Key-value persistence for timelog.

Values are JSON-compatible and always written whole; there is no partial or
delta persistence. ``MemoryStore`` backs the tests, ``SqliteStore`` is the
durable backend used by the CLI. SQLite runs in WAL mode with a single
long-lived connection, following the single-writer asyncio pattern.
"""

import copy
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Protocol

import aiosqlite

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Contract every persistence backend satisfies."""

    async def load(self, key: str, default: Any = None) -> Any:
        ...

    async def save(self, key: str, value: Any) -> None:
        ...


class MemoryStore:
    """Process-local store. Copies on the way in and out so callers never share state."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self.writes: list[str] = []

    async def load(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    async def save(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)
        self.writes.append(key)


_DDL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS kv_store (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SqliteStore:
    """Durable store: one JSON document per key in a SQLite table."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Open connection and run DDL."""
        os.makedirs(os.path.dirname(self.db_path) or ".", exist_ok=True)
        try:
            self._conn = await aiosqlite.connect(self.db_path)
            await self._conn.executescript(_DDL)
            await self._conn.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Cannot open store at {self.db_path}: {e}") from e
        logger.info("Key-value store initialised: %s", self.db_path)

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def __aenter__(self) -> "SqliteStore":
        await self.init()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("SqliteStore not initialised; call init() first")
        return self._conn

    async def load(self, key: str, default: Any = None) -> Any:
        conn = self._connection()
        try:
            async with conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageError(f"Cannot read {key!r}: {e}") from e
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored value for {key!r} is not valid JSON: {e}") from e

    async def save(self, key: str, value: Any) -> None:
        conn = self._connection()
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key!r} is not JSON-serialisable: {e}") from e
        try:
            await conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=excluded.updated_at
                """,
                (key, encoded, datetime.now(timezone.utc).isoformat()),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            raise StorageError(f"Cannot write {key!r}: {e}") from e
        logger.debug("Saved %s (%d bytes)", key, len(encoded))
