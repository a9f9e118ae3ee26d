"""Migration 000: bookkeeping, auth and state tables.

Existence-guarded so it is a no-op against files created by older
deployments that already carry these tables.
"""

STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS migrations (
        version INTEGER PRIMARY KEY,
        migration_time INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS auth_kv (
        key TEXT PRIMARY KEY,
        value TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS state (
        key TEXT PRIMARY KEY,
        value TEXT
    )
    """,
)
