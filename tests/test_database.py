"""Tests for the database handle."""

import os
import stat

import pytest
from pydantic import SecretStr

from agentstore.config import StoreSettings
from agentstore.database import Database
from agentstore.exceptions import StoreClosedError
from agentstore.migrations.registry import MigrationRegistry
from agentstore.migrations.runner import get_applied


@pytest.mark.asyncio
async def test_fresh_file_scenario(db_path, bootstrap_registry):
    """Fresh file: migrate, auth round trip, re-run leaves one record."""
    async with Database(db_path) as db:
        assert await db.migrate(bootstrap_registry) == [0]
        assert await db.auth.get("token") is None

        await db.auth.set("token", "abc")
        assert await db.auth.get("token") == "abc"

        assert await db.migrate(bootstrap_registry) == []
        records = await get_applied(db.connection)
        assert [r.version for r in records] == [0]


@pytest.mark.asyncio
async def test_values_survive_reopen(db_path):
    async with Database(db_path) as db:
        await db.migrate()
        await db.state.set("session", "s-1")

    async with Database(db_path) as db:
        assert await db.migrate() == []
        assert await db.state.get("session") == "s-1"


@pytest.mark.asyncio
async def test_open_creates_parent_directory(tmp_path):
    path = tmp_path / "nested" / "dir" / "data.sqlite3"
    async with Database(path) as db:
        await db.migrate()
    assert path.exists()


@pytest.mark.skipif(os.name != "posix", reason="POSIX file modes only")
@pytest.mark.asyncio
async def test_file_permissions_restricted(db_path):
    with open(db_path, "w"):
        pass
    os.chmod(db_path, 0o644)

    async with Database(db_path):
        pass
    assert stat.S_IMODE(os.stat(db_path).st_mode) == 0o600


@pytest.mark.asyncio
async def test_in_memory_database():
    async with Database(":memory:") as db:
        await db.migrate()
        await db.state.set("k", "v")
        assert await db.state.get("k") == "v"


@pytest.mark.asyncio
async def test_secret_helpers(migrated):
    await migrated.set_secret("refresh_token", "hunter2")
    secret = await migrated.get_secret("refresh_token")

    assert isinstance(secret, SecretStr)
    assert secret.get_secret_value() == "hunter2"
    assert "hunter2" not in repr(secret)

    await migrated.set_secret("refresh_token", SecretStr("rotated"))
    assert (await migrated.get_secret("refresh_token")).get_secret_value() == "rotated"

    await migrated.delete_secret("refresh_token")
    assert await migrated.get_secret("refresh_token") is None


@pytest.mark.asyncio
async def test_closed_handle_raises(db_path):
    db = Database(db_path)
    with pytest.raises(StoreClosedError):
        db.auth
    with pytest.raises(StoreClosedError):
        await db.migrate()


@pytest.mark.asyncio
async def test_migrate_with_custom_registry(database, bootstrap_unit, index_unit):
    applied = await database.migrate(MigrationRegistry([bootstrap_unit, index_unit]))
    assert applied == [0, 1]


def test_from_settings(tmp_path):
    cfg = StoreSettings(data_dir=tmp_path, db_filename="x.sqlite3", busy_timeout=1.5)
    db = Database.from_settings(cfg)
    assert db.path == str(tmp_path / "x.sqlite3")
    assert not db.is_open


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("AGENTSTORE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("AGENTSTORE_ENFORCE_FILE_MODE", "false")
    cfg = StoreSettings()
    assert cfg.db_path == tmp_path / "data.sqlite3"
    assert cfg.enforce_file_mode is False


@pytest.mark.asyncio
async def test_migrate_with_empty_registry(database):
    """An explicit empty registry applies nothing, not the shipped default."""
    assert await database.migrate(MigrationRegistry()) == []
    assert await get_applied(database.connection) == []
