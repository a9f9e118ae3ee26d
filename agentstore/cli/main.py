"""agentstore CLI — inspect and maintain the local store.

`agentstore migrate` and `agentstore status` manage the schema;
`agentstore state ...` and `agentstore auth ...` work on the two
namespaces. Auth values are never printed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from agentstore.cli.context import CliContext, migrated_database, run_async
from agentstore.database import MEMORY
from agentstore.exceptions import AgentStoreError
from agentstore.migrations.registry import default_registry
from agentstore.migrations.runner import read_applied
from agentstore.types import Namespace

console = Console()

app = typer.Typer(
    name="agentstore",
    help="agentstore -- local persistence for agent auth and runtime state.",
    no_args_is_help=True,
)
state_app = typer.Typer(help="Runtime state entries")
auth_app = typer.Typer(help="Credential entries (values are never shown)")
app.add_typer(state_app, name="state")
app.add_typer(auth_app, name="auth")


def _fail(e: Exception) -> None:
    console.print(f"[red]Error: {e}[/red]")
    raise typer.Exit(code=1)


@app.callback()
def main(
    db: Optional[Path] = typer.Option(None, "--db", help="Database file (default from settings)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Global options."""
    CliContext.configure(db, verbose)


@app.command("migrate")
def migrate():
    """Apply pending migrations."""

    async def _migrate() -> list[int]:
        async with CliContext.database() as db:
            return await db.migrate()

    try:
        applied = run_async(_migrate())
    except AgentStoreError as e:
        _fail(e)

    if applied:
        console.print(f"[green]Applied migrations: {', '.join(str(v) for v in applied)}[/green]")
    else:
        console.print("[dim]Schema is up to date.[/dim]")


@app.command("status")
def status():
    """Show known migrations and when they were applied."""

    async def _status():
        database = CliContext.database()
        if database.path != MEMORY and not Path(database.path).exists():
            return []
        async with database as db:
            return await read_applied(db.connection)

    try:
        records = {r.version: r for r in run_async(_status())}
    except AgentStoreError as e:
        _fail(e)

    table = Table(title="Migrations")
    table.add_column("Version", justify="right", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Applied", style="green")

    registry = default_registry()
    for unit in registry:
        record = records.get(unit.version)
        applied = record.applied_at.strftime("%Y-%m-%d %H:%M:%S UTC") if record else "[yellow]pending[/yellow]"
        table.add_row(str(unit.version), unit.name, applied)
    for version in sorted(v for v in records if v not in registry):
        table.add_row(str(version), "[red]unknown[/red]", records[version].applied_at.isoformat())

    console.print(table)


# ── Namespace commands ──────────────────────────────────────────


def _run_store(namespace: Namespace, op: str, *args):
    async def _go():
        async with migrated_database() as db:
            return await getattr(db.store(namespace), op)(*args)

    try:
        return run_async(_go())
    except AgentStoreError as e:
        _fail(e)


def _print_keys(namespace: Namespace) -> None:
    keys = _run_store(namespace, "keys")
    if not keys:
        console.print("[dim]No entries.[/dim]")
        return
    for k in keys:
        console.print(k)


@state_app.command("keys")
def state_keys():
    """List state keys."""
    _print_keys(Namespace.STATE)


@state_app.command("get")
def state_get(key: str = typer.Argument(help="State key")):
    """Print a state value."""
    value = _run_store(Namespace.STATE, "get", key)
    if value is None:
        console.print(f"[yellow]No value for '{key}'[/yellow]")
        raise typer.Exit(code=1)
    console.print(value, markup=False, highlight=False)


@state_app.command("set")
def state_set(
    key: str = typer.Argument(help="State key"),
    value: str = typer.Argument(help="Value to store"),
):
    """Store a state value."""
    _run_store(Namespace.STATE, "set", key, value)
    console.print(f"[green]Set '{key}'[/green]")


@state_app.command("delete")
def state_delete(key: str = typer.Argument(help="State key")):
    """Delete a state entry."""
    removed = _run_store(Namespace.STATE, "delete", key)
    console.print(f"[green]Deleted '{key}'[/green]" if removed else f"[dim]'{key}' not present[/dim]")


@state_app.command("clear")
def state_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete every state entry. Credentials are not touched."""
    if not yes:
        typer.confirm("Delete all state entries?", abort=True)
    count = _run_store(Namespace.STATE, "clear")
    console.print(f"[green]Cleared {count} state entries[/green]")


@auth_app.command("keys")
def auth_keys():
    """List credential keys."""
    _print_keys(Namespace.AUTH)


@auth_app.command("delete")
def auth_delete(key: str = typer.Argument(help="Credential key")):
    """Delete a credential."""
    removed = _run_store(Namespace.AUTH, "delete", key)
    console.print(f"[green]Deleted '{key}'[/green]" if removed else f"[dim]'{key}' not present[/dim]")


def cli():
    """Entry point."""
    app()
