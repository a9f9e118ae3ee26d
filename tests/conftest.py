"""Shared test fixtures — temporary database files and connections."""

from __future__ import annotations

import aiosqlite
import pytest
import pytest_asyncio

from agentstore.database import Database
from agentstore.migrations.registry import MigrationRegistry
from agentstore.types import MigrationUnit


BOOTSTRAP = MigrationUnit(
    version=0,
    description="create tables",
    statements=(
        "CREATE TABLE IF NOT EXISTS migrations "
        "(version INTEGER PRIMARY KEY, migration_time INTEGER NOT NULL)",
        "CREATE TABLE IF NOT EXISTS auth_kv (key TEXT PRIMARY KEY, value TEXT)",
        "CREATE TABLE IF NOT EXISTS state (key TEXT PRIMARY KEY, value TEXT)",
    ),
)

ADD_INDEX = MigrationUnit(
    version=1,
    description="add index",
    statements=("CREATE INDEX IF NOT EXISTS idx_state_value ON state(value)",),
)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "agent.sqlite3")


@pytest.fixture
def bootstrap_registry():
    return MigrationRegistry([BOOTSTRAP])


@pytest_asyncio.fixture
async def conn(db_path):
    db = await aiosqlite.connect(db_path, isolation_level=None)
    yield db
    await db.close()


@pytest_asyncio.fixture
async def database(db_path):
    store = Database(db_path)
    await store.open()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def migrated(database):
    await database.migrate()
    return database


@pytest.fixture
def bootstrap_unit():
    return BOOTSTRAP


@pytest.fixture
def index_unit():
    return ADD_INDEX
