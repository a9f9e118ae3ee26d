"""Migration runner — applies pending migrations on startup.

The ``migrations`` table is the only record of what has been applied.
Each pending unit runs in its own transaction together with its
bookkeeping row, strictly in ascending version order. The connection
must be in autocommit mode (``isolation_level=None``) so the runner owns
transaction boundaries.
"""

from __future__ import annotations

import time

import aiosqlite
import structlog

from agentstore.exceptions import MigrationFailedError, UnknownVersionError
from agentstore.migrations.registry import MigrationRegistry
from agentstore.types import MigrationRecord, MigrationUnit

logger = structlog.get_logger()

BOOKKEEPING_DDL = (
    "CREATE TABLE IF NOT EXISTS migrations "
    "(version INTEGER PRIMARY KEY, migration_time INTEGER NOT NULL)"
)


async def ensure_bookkeeping(db: aiosqlite.Connection) -> None:
    """Create the migrations table if needed. Safe on an initialized file."""
    await db.execute(BOOKKEEPING_DDL)
    await db.commit()


async def get_applied(db: aiosqlite.Connection) -> list[MigrationRecord]:
    """All recorded migrations, ascending by version."""
    await ensure_bookkeeping(db)
    return await read_applied(db)


async def read_applied(db: aiosqlite.Connection) -> list[MigrationRecord]:
    """Like ``get_applied`` but never writes; empty when there is no table."""
    async with db.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'migrations'"
    ) as cursor:
        if await cursor.fetchone() is None:
            return []
    async with db.execute(
        "SELECT version, migration_time FROM migrations ORDER BY version"
    ) as cursor:
        rows = await cursor.fetchall()
    return [MigrationRecord(version=r[0], migration_time=r[1]) for r in rows]


async def get_pending(
    registry: MigrationRegistry, db: aiosqlite.Connection
) -> list[MigrationUnit]:
    """Units not yet recorded, in the order they would be applied."""
    recorded = {r.version for r in await get_applied(db)}

    unknown = sorted(v for v in recorded if v not in registry)
    if unknown:
        raise UnknownVersionError(unknown)

    return [unit for unit in registry if unit.version not in recorded]


async def _apply_unit(db: aiosqlite.Connection, unit: MigrationUnit) -> None:
    try:
        await db.execute("BEGIN")
        for statement in unit.statements:
            await db.execute(statement)
        await db.execute(
            "INSERT INTO migrations (version, migration_time) VALUES (?, ?)",
            (unit.version, int(time.time())),
        )
        await db.commit()
    except BaseException as e:
        if db.in_transaction:
            await db.rollback()
        if not isinstance(e, Exception):
            # cancellation and interrupts pass through unwrapped
            raise
        logger.error("migration_failed", version=unit.version, name=unit.name, error=str(e))
        raise MigrationFailedError(unit.version, e) from e


async def apply_pending(
    registry: MigrationRegistry, db: aiosqlite.Connection
) -> list[int]:
    """Apply all pending migrations. Returns list of applied version numbers.

    Stops at the first failure; versions after it are left untouched.
    """
    pending = await get_pending(registry, db)
    if not pending:
        logger.debug("migrations_up_to_date", latest=registry.latest)
        return []

    applied: list[int] = []
    for unit in pending:
        await _apply_unit(db, unit)
        logger.info("migration_applied", version=unit.version, name=unit.name)
        applied.append(unit.version)

    return applied
