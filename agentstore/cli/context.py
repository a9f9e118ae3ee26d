"""CLI runtime context — bridges sync CLI commands to the async store."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Coroutine

from agentstore.config import settings
from agentstore.database import Database


class CliContext:
    """Options shared by every command, set by the top-level callback."""

    db_path: Path | None = None

    @classmethod
    def configure(cls, db_path: Path | None, verbose: bool) -> None:
        cls.db_path = db_path
        level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
        logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    @classmethod
    def database(cls) -> Database:
        if cls.db_path is not None:
            return Database(
                cls.db_path,
                busy_timeout=settings.busy_timeout,
                enforce_file_mode=settings.enforce_file_mode,
            )
        return Database.from_settings(settings)


@asynccontextmanager
async def migrated_database() -> AsyncIterator[Database]:
    """Open the configured database and run the startup migration gate."""
    async with CliContext.database() as db:
        await db.migrate()
        yield db


def run_async(coro: Coroutine) -> Any:
    """Run an async coroutine from sync CLI code."""
    return asyncio.run(coro)
