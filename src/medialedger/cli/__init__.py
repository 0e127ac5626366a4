"""CLI entrypoints for medialedger."""

from medialedger.cli.catalog import app as catalog_app
from medialedger.cli.main import app, run_cli

__all__ = ["app", "catalog_app", "run_cli"]
