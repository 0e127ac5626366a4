"""Root ``medialedger`` command."""

from __future__ import annotations

import importlib
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing only
    import typer
    from typer import Typer as TyperType
else:  # pragma: no cover - runtime fallback for typing
    typer = importlib.import_module("typer")
    TyperType = Any

from medialedger.cli.catalog import app as catalog_app
from medialedger.cli.scan import parse_name, scan_collection

app: TyperType = typer.Typer(
    help="Catalog movie and TV collections against TMDB.", no_args_is_help=True
)

app.command("scan")(scan_collection)
app.command("parse")(parse_name)
app.add_typer(catalog_app, name="catalog")


def run_cli(args: Sequence[str] | None = None) -> None:
    app(args=args)
