"""Runtime settings loaded from environment variables.

Variables (an optional ``.env`` in the working directory pre-seeds any that
are not already set):

- MEDIALEDGER_MOVIE_PATHS: comma-separated movie roots
- MEDIALEDGER_TV_PATHS: comma-separated TV roots
- TMDB_API_URI: TMDB base URL
- MEDIALEDGER_CATALOG_PATH: SQLite catalog location
- MEDIALEDGER_RENAME: move files to their canonical name after cataloguing
- MEDIALEDGER_DEBUG: log debug events (same as --verbose)

TMDB_API_KEY is read by the provider itself and never stored here.
"""

import os
from collections.abc import Mapping, MutableMapping
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from medialedger.core.constants import TMDB_API_URI
from medialedger.core.errors import ConfigurationError
from medialedger.core.schemas import CollectionType

_TRUTHY = ("1", "true", "yes", "on")

#: Catalog location when MEDIALEDGER_CATALOG_PATH is unset, relative to the cwd
DEFAULT_CATALOG_PATH = str(Path(".cache") / "medialedger.db")


def load_dotenv(
    env_path: Path, environ: MutableMapping[str, str] | None = None
) -> None:
    """Load variables from a .env file without overriding existing ones."""

    target = os.environ if environ is None else environ
    if not env_path.exists():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if "#" in value:
            value = value.split("#", 1)[0].strip()

        if key and value and key not in target:
            target[key] = value


def _split_paths(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


class Settings(BaseModel):
    """Validated runtime configuration."""

    movie_paths: list[Path] = Field(default_factory=list)
    tv_paths: list[Path] = Field(default_factory=list)
    tmdb_api_uri: str = TMDB_API_URI
    catalog_path: str = DEFAULT_CATALOG_PATH
    rename: bool = False
    debug: bool = False

    model_config = {"frozen": True}

    @field_validator("movie_paths", "tv_paths")
    @classmethod
    def dedupe_paths(cls, v: list[Path]) -> list[Path]:
        """Drop repeated roots, keeping first-seen order."""
        return list(dict.fromkeys(Path(p).expanduser() for p in v))

    @field_validator("tmdb_api_uri")
    @classmethod
    def validate_uri(cls, v: str) -> str:
        """Ensure the TMDB base URL is an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"TMDB_API_URI must be an http(s) URL, got {v!r}")
        return v.rstrip("/")

    def roots_for(self, collection_type: CollectionType | str) -> list[Path]:
        """Configured roots of one collection type."""
        if CollectionType(collection_type) == CollectionType.MOVIE:
            return list(self.movie_paths)
        return list(self.tv_paths)


def load_settings(
    environ: Mapping[str, str] | None = None, env_file: Path | None = Path(".env")
) -> Settings:
    """Build ``Settings`` from the environment.

    Args:
        environ: Mapping to read instead of ``os.environ``
        env_file: Optional .env file pre-seeding ``os.environ``

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If a value is invalid
    """
    if environ is None:
        if env_file is not None:
            load_dotenv(env_file)
        environ = os.environ

    try:
        return Settings(
            movie_paths=_split_paths(environ.get("MEDIALEDGER_MOVIE_PATHS")),
            tv_paths=_split_paths(environ.get("MEDIALEDGER_TV_PATHS")),
            tmdb_api_uri=environ.get("TMDB_API_URI") or TMDB_API_URI,
            catalog_path=environ.get("MEDIALEDGER_CATALOG_PATH") or DEFAULT_CATALOG_PATH,
            rename=environ.get("MEDIALEDGER_RENAME", "").lower() in _TRUTHY,
            debug=environ.get("MEDIALEDGER_DEBUG", "").lower() in _TRUTHY,
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
