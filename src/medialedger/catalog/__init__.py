"""Persistent catalog of known media files."""

from medialedger.catalog.store import (
    CatalogStore,
    apply_migrations,
    resolve_catalog_db_path,
)

__all__ = ["CatalogStore", "apply_migrations", "resolve_catalog_db_path"]
