"""SQLite-backed catalog of known media files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from medialedger.catalog.migrations import ensure_connection_migrated
from medialedger.core.errors import PersistenceFailure
from medialedger.core.schemas import CatalogRecord, CollectionType

logger = structlog.get_logger(__name__)

# Column order of the ``collection`` table, paired with record fields
_COLUMNS: tuple[tuple[str, str], ...] = (
    ("COLLECTION_TYPE", "collection_type"),
    ("ABSOLUTE_PATH", "absolute_path"),
    ("FILE_NAME", "file_name"),
    ("FILE_EXTENSION", "file_extension"),
    ("NAME", "name"),
    ("SOURCE_TYPE", "source_type"),
    ("SOURCE", "source"),
    ("GROUP_NAME", "group_name"),
    ("TMDB_ID", "tmdb_id"),
    ("RELEASE_YEAR", "release_year"),
    ("FILE_SIZE", "file_size"),
    ("RELEASE_DATE", "release_date"),
    ("TMDB_NAME", "tmdb_name"),
    ("TMDB_DESCRIPTION", "tmdb_description"),
    ("SEASON_NUMBER", "season_number"),
    ("EPISODE_NUMBER", "episode_number"),
    ("EPISODE_NAME", "episode_name"),
    ("EPISODE_OVERVIEW", "episode_overview"),
    ("RESOLUTION", "resolution"),
    ("HDR_FORMAT", "hdr_format"),
    ("VIDEO_CODEC", "video_codec"),
    ("AUDIO_CODEC", "audio_codec"),
    ("AUDIO_CHANNELS", "audio_channels"),
)

_INSERT_SQL = (
    f"INSERT INTO collection ({', '.join(column for column, _ in _COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _COLUMNS)})"
)
_SELECT_SQL = (
    f"SELECT {', '.join(column for column, _ in _COLUMNS)} FROM collection "
    "WHERE ABSOLUTE_PATH = ?"
)


def resolve_catalog_db_path(db_path: str | Path) -> str:
    """Absolute SQLite location for ``db_path``, creating its directory.

    ``":memory:"`` is passed through untouched.
    """

    if str(db_path) == ":memory:":
        return ":memory:"

    resolved = Path(db_path).expanduser()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved.resolve())


async def apply_migrations(db_path: str | Path) -> list[str]:
    """Apply pending catalog migrations to the database at ``db_path``.

    Returns:
        Names of the migrations applied by this call
    """

    async with aiosqlite.connect(resolve_catalog_db_path(db_path)) as connection:
        return await ensure_connection_migrated(connection)


class CatalogStore:
    """Async SQLite store for catalog records.

    Every failing statement surfaces as ``PersistenceFailure``.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the catalog store.

        Args:
            db_path: Path to SQLite database file (":memory:" for in-memory)
        """

        self._db_path = resolve_catalog_db_path(db_path)
        self._db: aiosqlite.Connection | None = None

    @property
    def db_path(self) -> str:
        return self._db_path

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create the catalog database connection."""

        if self._db is None:
            try:
                self._db = await aiosqlite.connect(self._db_path)
                await ensure_connection_migrated(self._db)
            except aiosqlite.Error as exc:
                raise PersistenceFailure("connect", self._db_path, str(exc)) from exc
        return self._db

    async def list_paths(self, collection_type: CollectionType | str) -> set[str]:
        """Absolute paths of every record of one collection type."""

        db = await self._get_connection()
        kind = CollectionType(collection_type).value
        try:
            async with db.execute(
                "SELECT ABSOLUTE_PATH FROM collection WHERE COLLECTION_TYPE = ?",
                (kind,),
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise PersistenceFailure("list", None, str(exc)) from exc
        return {row[0] for row in rows}

    async def count_by_type(self) -> dict[CollectionType, int]:
        """Number of records per collection type (absent types are omitted)."""

        db = await self._get_connection()
        try:
            async with db.execute(
                "SELECT COLLECTION_TYPE, COUNT(*) FROM collection GROUP BY COLLECTION_TYPE"
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise PersistenceFailure("count", None, str(exc)) from exc
        return {CollectionType(kind): count for kind, count in rows}

    async def insert(self, record: CatalogRecord) -> None:
        """Insert one record.

        Raises:
            PersistenceFailure: If the row is rejected (e.g. duplicate path)
        """

        db = await self._get_connection()
        data = record.model_dump(mode="json")
        values = [data[field] for _, field in _COLUMNS]
        try:
            await db.execute(_INSERT_SQL, values)
            await db.commit()
        except aiosqlite.Error as exc:
            await db.rollback()
            raise PersistenceFailure(
                "insert", str(record.absolute_path), str(exc)
            ) from exc
        logger.debug("catalog.inserted", path=str(record.absolute_path))

    async def delete(self, path: str | Path) -> None:
        """Delete the record for an absolute path.

        Raises:
            PersistenceFailure: If the statement fails or nothing was deleted
        """

        db = await self._get_connection()
        try:
            cursor = await db.execute(
                "DELETE FROM collection WHERE ABSOLUTE_PATH = ?", (str(path),)
            )
            deleted = cursor.rowcount
            await cursor.close()
            await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceFailure("delete", str(path), str(exc)) from exc

        if deleted == 0:
            raise PersistenceFailure("delete", str(path), "no such record")
        logger.debug("catalog.deleted", path=str(path))

    async def get(self, path: str | Path) -> CatalogRecord | None:
        """Fetch the record for an absolute path, if any."""

        db = await self._get_connection()
        try:
            async with db.execute(_SELECT_SQL, (str(path),)) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise PersistenceFailure("get", str(path), str(exc)) from exc

        if row is None:
            return None
        values: dict[str, Any] = {
            field: value for (_, field), value in zip(_COLUMNS, row, strict=True)
        }
        return CatalogRecord.model_validate(values)

    async def close(self) -> None:
        """Close database connection."""

        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> CatalogStore:
        """Async context manager entry."""

        await self._get_connection()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""

        await self.close()
