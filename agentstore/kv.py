"""Key-value store over the ``auth_kv`` and ``state`` tables.

Values are opaque text. Each operation is a single autocommit statement,
so a write is durable once the call returns. Only the two known
namespace table names are ever formatted into SQL.
"""

from __future__ import annotations

import logging
import sqlite3

import aiosqlite

from agentstore.exceptions import SchemaNotReadyError, StorageError, StoreClosedError
from agentstore.types import Namespace

_logger = logging.getLogger(__name__)


class KeyValueStore:
    """Flat key-value access to one namespace.

    A store built by ``Database`` is gated only by ``mark_ready()``. A bare
    store on a connection falls back to checking that the file was migrated
    by an earlier session.
    """

    def __init__(
        self,
        db: aiosqlite.Connection,
        namespace: Namespace,
        managed: bool = False,
    ) -> None:
        self._db = db
        self._namespace = Namespace(namespace)
        self._table = self._namespace.value
        self._managed = managed
        self._ready = False
        self._closed = False

    @property
    def namespace(self) -> Namespace:
        return self._namespace

    def mark_ready(self) -> None:
        """Called once migrations have completed on this connection."""
        self._ready = True

    def mark_not_ready(self) -> None:
        """Called when a migration run on this connection failed."""
        self._ready = False

    def mark_closed(self) -> None:
        self._closed = True

    async def _ensure_ready(self) -> None:
        if self._closed:
            raise StoreClosedError(f"Store '{self._table}' belongs to a closed database")
        if self._ready:
            return
        if self._managed:
            raise SchemaNotReadyError(self._table)
        # A file migrated by an earlier session is ready too.
        try:
            async with self._db.execute(
                "SELECT COUNT(*) FROM sqlite_master "
                "WHERE type = 'table' AND name IN ('migrations', ?)",
                (self._table,),
            ) as cursor:
                (tables,) = await cursor.fetchone()
            if tables == 2:
                async with self._db.execute("SELECT 1 FROM migrations LIMIT 1") as cursor:
                    recorded = await cursor.fetchone()
            else:
                recorded = None
        except sqlite3.Error as e:
            raise StorageError(self._table, None, e) from e

        if recorded is None:
            raise SchemaNotReadyError(self._table)
        self._ready = True

    async def get(self, key: str) -> str | None:
        """Stored value, or None when the key is absent."""
        await self._ensure_ready()
        _logger.debug("get %s[%s]", self._table, key)
        try:
            async with self._db.execute(
                f"SELECT value FROM {self._table} WHERE key = ?", (key,)
            ) as cursor:
                row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageError(self._table, key, e) from e
        return row[0] if row is not None else None

    async def set(self, key: str, value: str | None) -> None:
        """Insert or overwrite the value for a key."""
        await self._ensure_ready()
        _logger.debug("set %s[%s]", self._table, key)
        try:
            await self._db.execute(
                f"INSERT OR REPLACE INTO {self._table} (key, value) VALUES (?, ?)",
                (key, value),
            )
            await self._db.commit()
        except sqlite3.Error as e:
            raise StorageError(self._table, key, e) from e

    async def delete(self, key: str) -> bool:
        """Remove a key. Returns False if it was not present."""
        await self._ensure_ready()
        _logger.debug("delete %s[%s]", self._table, key)
        try:
            cursor = await self._db.execute(
                f"DELETE FROM {self._table} WHERE key = ?", (key,)
            )
            await self._db.commit()
        except sqlite3.Error as e:
            raise StorageError(self._table, key, e) from e
        return cursor.rowcount > 0

    async def keys(self) -> list[str]:
        """All keys currently in this namespace."""
        await self._ensure_ready()
        try:
            async with self._db.execute(
                f"SELECT key FROM {self._table} ORDER BY key"
            ) as cursor:
                rows = await cursor.fetchall()
        except sqlite3.Error as e:
            raise StorageError(self._table, None, e) from e
        return [r[0] for r in rows]

    async def clear(self) -> int:
        """Delete every entry of this namespace. Returns the number removed."""
        await self._ensure_ready()
        try:
            cursor = await self._db.execute(f"DELETE FROM {self._table}")
            await self._db.commit()
        except sqlite3.Error as e:
            raise StorageError(self._table, None, e) from e
        _logger.info("Cleared %d entries from %s", cursor.rowcount, self._table)
        return cursor.rowcount

    def __repr__(self) -> str:
        return f"KeyValueStore(namespace={self._table!r})"
