"""CLI commands for reconciling collections and inspecting filenames."""

from __future__ import annotations

import asyncio
import importlib
import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

if TYPE_CHECKING:  # pragma: no cover - typing only
    import typer
else:  # pragma: no cover - runtime fallback for typing
    typer = importlib.import_module("typer")

from rich.console import Console
from rich.table import Table

from medialedger.catalog.store import CatalogStore
from medialedger.config import Settings, load_settings
from medialedger.core.errors import ConfigurationError, MediaLedgerError
from medialedger.core.parser import detect_release_group, parse_filename
from medialedger.core.runner import CollectionRunner
from medialedger.core.schemas import CollectionType, RunSummary
from medialedger.core.source import classify_origin
from medialedger.metadata.providers.tmdb import TMDBProvider
from medialedger.probe.cache import Probe
from medialedger.probe.mediainfo import MediaInfoProbe
from medialedger.utils.log_config import configure_logging

TypeOption = Annotated[
    CollectionType,
    typer.Option("--type", "-t", help="Collection type to process (movie, tv)."),
]
RootOption = Annotated[
    list[Path] | None,
    typer.Option(
        "--root",
        help="Collection root (repeatable). Defaults to the configured roots.",
    ),
]
RenameFlag = Annotated[
    bool,
    typer.Option("--rename", help="Move added files to their canonical name."),
]
DbPathOption = Annotated[
    Path | None,
    typer.Option("--db-path", help="Optional override for the catalog location."),
]
JsonFlag = Annotated[
    bool,
    typer.Option("--json", help="Emit the run summary as JSON."),
]
VerboseFlag = Annotated[
    bool,
    typer.Option("--verbose", help="Log debug events and list skipped files."),
]
NameArgument = Annotated[
    str,
    typer.Argument(help="Filename or path to parse."),
]


def build_provider(settings: Settings) -> TMDBProvider:
    return TMDBProvider(base_url=settings.tmdb_api_uri)


def build_probe() -> Probe:
    return MediaInfoProbe()


async def run_scan(
    settings: Settings,
    collection_type: CollectionType,
    roots: list[Path],
    *,
    rename: bool,
    db_path: Path | None = None,
    console: Console | None = None,
) -> RunSummary:
    """Reconcile ``roots`` with the catalog using the configured collaborators."""

    async with (
        build_provider(settings) as provider,
        CatalogStore(db_path or settings.catalog_path) as catalog,
    ):
        runner = CollectionRunner(
            provider, catalog, build_probe(), rename=rename, ui=console
        )
        return await runner.run(collection_type, roots)


def _render_summary(summary: RunSummary, console: Console, verbose: bool) -> None:
    table = Table(title=f"{summary.collection_type.value} reconciliation")
    table.add_column("Status")
    table.add_column("Path", overflow="fold")
    table.add_column("Target / Reason", overflow="fold")

    for item in summary.items:
        if item.status == "skipped" and not verbose:
            continue
        detail = item.target or item.reason or ""
        if item.renamed:
            detail = f"{detail} (renamed)"
        table.add_row(item.status, item.path, detail)

    if table.row_count:
        console.print(table)
    console.print(
        f"added: {summary.added}  deleted: {summary.deleted}  "
        f"skipped: {summary.skipped}  failed: {summary.failed}  "
        f"renamed: {summary.renamed}"
    )


def scan_collection(  # noqa: D401
    collection_type: TypeOption,
    root: RootOption = None,
    rename: RenameFlag = False,
    db_path: DbPathOption = None,
    json_output: JsonFlag = False,
    verbose: VerboseFlag = False,
) -> None:
    """Reconcile a collection with the catalog and print the outcome."""

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        typer.secho(str(exc), err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    configure_logging(verbose or settings.debug)

    roots = list(root) if root else settings.roots_for(collection_type)
    console = Console()

    try:
        summary = asyncio.run(
            run_scan(
                settings,
                collection_type,
                roots,
                rename=rename or settings.rename,
                db_path=db_path,
                console=Console(stderr=True),
            )
        )
    except MediaLedgerError as exc:
        typer.secho(f"Run aborted: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    if json_output:
        typer.echo(summary.model_dump_json(indent=2))
        return

    _render_summary(summary, console, verbose)


def parse_name(name: NameArgument, collection_type: TypeOption) -> None:
    """Show what the parser and origin classifier derive from a filename."""

    basename = Path(name).name
    payload: dict[str, Any] = {
        "identity": parse_filename(basename, collection_type).model_dump(),
        "origin": classify_origin(name).model_dump(mode="json"),
        "group": detect_release_group(basename),
    }
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))
