"""CLI commands for catalog maintenance: schema migrations and record counts."""

from __future__ import annotations

import asyncio
import importlib
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

if TYPE_CHECKING:  # pragma: no cover - typing only
    import typer
    from typer import Typer as TyperType
else:  # pragma: no cover - runtime fallback for typing
    typer = importlib.import_module("typer")
    TyperType = Any

from rich.console import Console
from rich.table import Table

from medialedger.catalog.store import (
    CatalogStore,
    apply_migrations,
    resolve_catalog_db_path,
)
from medialedger.config import load_settings
from medialedger.core.errors import ConfigurationError, PersistenceFailure
from medialedger.core.schemas import CollectionType

app: TyperType = typer.Typer(
    help="Inspect and migrate the medialedger catalog.", no_args_is_help=True
)

DbPathOption = Annotated[
    Path | None,
    typer.Option(
        "--db-path",
        help="Catalog location. Defaults to MEDIALEDGER_CATALOG_PATH.",
    ),
]


def _catalog_location(db_path: Path | None) -> str:
    if db_path is not None:
        return resolve_catalog_db_path(db_path)

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    return resolve_catalog_db_path(settings.catalog_path)


async def _count_records(location: str) -> dict[CollectionType, int]:
    async with CatalogStore(location) as store:
        return await store.count_by_type()


def migrate(db_path: DbPathOption = None) -> None:
    """Bring the catalog schema up to date."""

    location = _catalog_location(db_path)
    applied = asyncio.run(apply_migrations(location))
    if not applied:
        typer.secho(f"Catalog at {location} is up to date", fg=typer.colors.GREEN)
        return

    typer.secho(
        f"Applied {len(applied)} migration(s) to {location}: {', '.join(applied)}",
        fg=typer.colors.GREEN,
    )


def status(db_path: DbPathOption = None) -> None:
    """Show how many files the catalog holds per collection type."""

    location = _catalog_location(db_path)
    try:
        counts = asyncio.run(_count_records(location))
    except PersistenceFailure as exc:
        typer.secho(f"Catalog unavailable: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    table = Table(title="Catalog records", caption=location)
    table.add_column("Collection")
    table.add_column("Files", justify="right")
    for kind in CollectionType:
        table.add_row(kind.value, str(counts.get(kind, 0)))
    table.add_row("total", str(sum(counts.values())), style="bold")
    Console().print(table)


app.command("migrate")(migrate)
app.command("status")(status)
