"""Core types shared across agentstore."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ── Namespaces ────────────────────────────────────────────────────────────────


class Namespace(str, Enum):
    """Key-value namespaces. The value is the backing table name."""

    AUTH = "auth_kv"
    STATE = "state"


# ── Migrations ────────────────────────────────────────────────────────────────


class MigrationUnit(BaseModel):
    """A versioned batch of schema statements, applied at most once."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(ge=0)
    description: str = ""
    statements: tuple[str, ...]

    @field_validator("statements")
    @classmethod
    def _non_empty(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            raise ValueError("a migration unit needs at least one statement")
        if any(not s.strip() for s in v):
            raise ValueError("migration statements must not be blank")
        return v

    @property
    def name(self) -> str:
        """External identity, e.g. ``000_create_migration_auth_state_tables``."""
        if self.description:
            return f"{self.version:03d}_{self.description}"
        return f"{self.version:03d}"


class MigrationRecord(BaseModel):
    """One row of the bookkeeping table."""

    model_config = ConfigDict(frozen=True)

    version: int
    migration_time: int  # seconds since epoch

    @property
    def applied_at(self) -> datetime:
        return datetime.fromtimestamp(self.migration_time, tz=timezone.utc)
