"""Custom exception hierarchy for agentstore."""

from __future__ import annotations


class AgentStoreError(Exception):
    """Base for all agentstore errors."""


class MigrationError(AgentStoreError):
    """Base for problems bringing the schema up to date."""


class DuplicateVersionError(MigrationError):
    """Two migration units declare the same version."""

    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"Duplicate migration version {version}")


class MigrationFailedError(MigrationError):
    """A pending migration failed and was rolled back."""

    def __init__(self, version: int, cause: BaseException) -> None:
        self.version = version
        self.cause = cause
        super().__init__(f"Migration {version} failed: {cause}")


class UnknownVersionError(MigrationError):
    """The database records versions this build does not know about."""

    def __init__(self, versions: list[int]) -> None:
        self.versions = versions
        listed = ", ".join(str(v) for v in versions)
        super().__init__(
            f"Database has applied migrations unknown to this build: {listed}"
        )


class SchemaNotReadyError(AgentStoreError):
    """Key-value store used before migrations were applied."""

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace
        super().__init__(
            f"Schema not ready for '{namespace}': run migrations before using the store"
        )


class StorageError(AgentStoreError):
    """The storage engine failed during a key-value operation."""

    def __init__(self, namespace: str, key: str | None, cause: BaseException) -> None:
        self.namespace = namespace
        self.key = key
        self.cause = cause
        where = f"{namespace}[{key!r}]" if key is not None else namespace
        super().__init__(f"Storage error on {where}: {cause}")


class StoreClosedError(AgentStoreError):
    """Database handle used while not open."""
