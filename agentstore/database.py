"""Database handle — one storage session for the process.

Opens the SQLite file, tightens its permissions, runs migrations, then
hands out the auth and state namespaces. Acquire once at startup and
close at shutdown::

    async with Database(path) as db:
        await db.migrate()
        await db.set_secret("token", "...")
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

import aiosqlite
from pydantic import SecretStr

from agentstore.config import StoreSettings, settings as default_settings
from agentstore.exceptions import StoreClosedError
from agentstore.kv import KeyValueStore
from agentstore.migrations.registry import MigrationRegistry, default_registry
from agentstore.migrations.runner import apply_pending
from agentstore.types import Namespace

_logger = logging.getLogger(__name__)

MEMORY = ":memory:"
FILE_MODE = 0o600


class Database:
    """Owns the connection and the two key-value namespaces."""

    def __init__(
        self,
        path: str | Path,
        busy_timeout: float = 5.0,
        enforce_file_mode: bool = True,
    ) -> None:
        self._path = str(path)
        self._busy_timeout = busy_timeout
        self._enforce_file_mode = enforce_file_mode
        self._db: aiosqlite.Connection | None = None
        self._auth: KeyValueStore | None = None
        self._state: KeyValueStore | None = None

    @classmethod
    def from_settings(cls, cfg: StoreSettings | None = None) -> Database:
        cfg = cfg or default_settings
        return cls(
            cfg.db_path,
            busy_timeout=cfg.busy_timeout,
            enforce_file_mode=cfg.enforce_file_mode,
        )

    @property
    def path(self) -> str:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._db is not None

    # ── Lifecycle ───────────────────────────────────────────────

    async def open(self) -> None:
        """Connect to the file, creating it and its parent directory if needed."""
        if self._db is not None:
            return

        if self._path != MEMORY:
            parent = Path(self._path).parent
            if not parent.exists():
                parent.mkdir(parents=True, exist_ok=True)

        self._db = await aiosqlite.connect(
            self._path, timeout=self._busy_timeout, isolation_level=None
        )
        self._auth = KeyValueStore(self._db, Namespace.AUTH, managed=True)
        self._state = KeyValueStore(self._db, Namespace.STATE, managed=True)

        if self._path != MEMORY and self._enforce_file_mode:
            self._restrict_permissions()

    def _restrict_permissions(self) -> None:
        if os.name != "posix":
            return
        mode = stat.S_IMODE(os.stat(self._path).st_mode)
        if mode != FILE_MODE:
            _logger.debug("Setting database file permissions to 0600: %s", self._path)
            os.chmod(self._path, FILE_MODE)

    async def close(self) -> None:
        if self._db is None:
            return
        self._auth.mark_closed()
        self._state.mark_closed()
        await self._db.close()
        self._db = None
        self._auth = None
        self._state = None

    async def __aenter__(self) -> Database:
        await self.open()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreClosedError(f"Database {self._path} is not open")
        return self._db

    # ── Migrations ──────────────────────────────────────────────

    async def migrate(self, registry: MigrationRegistry | None = None) -> list[int]:
        """Bring the schema up to date. Must finish before the stores are used."""
        db = self._conn()
        if registry is None:
            registry = default_registry()
        try:
            applied = await apply_pending(registry, db)
        except BaseException:
            self._auth.mark_not_ready()
            self._state.mark_not_ready()
            raise
        self._auth.mark_ready()
        self._state.mark_ready()
        if applied:
            _logger.info("Applied migrations %s to %s", applied, self._path)
        return applied

    @property
    def connection(self) -> aiosqlite.Connection:
        return self._conn()

    # ── Namespaces ──────────────────────────────────────────────

    @property
    def auth(self) -> KeyValueStore:
        self._conn()
        return self._auth

    @property
    def state(self) -> KeyValueStore:
        self._conn()
        return self._state

    def store(self, namespace: Namespace | str) -> KeyValueStore:
        return self.auth if Namespace(namespace) is Namespace.AUTH else self.state

    # ── Secrets ─────────────────────────────────────────────────

    async def get_secret(self, key: str) -> SecretStr | None:
        value = await self.auth.get(key)
        return SecretStr(value) if value is not None else None

    async def set_secret(self, key: str, value: str | SecretStr) -> None:
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        await self.auth.set(key, value)

    async def delete_secret(self, key: str) -> None:
        await self.auth.delete(key)

    def __repr__(self) -> str:
        return f"Database(path={self._path!r}, open={self.is_open})"
