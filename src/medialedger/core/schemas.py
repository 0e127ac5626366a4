"""Pydantic schemas for the parse/classify/reconcile/name pipeline.

These schemas define the data structures passed between pipeline stages:
- ParsedIdentity: Output from the filename parser
- OriginClassification: Output from the source origin classifier
- TechnicalAttributes: Output from the technical attribute resolver
- TitleRecord / EpisodeRecord: Metadata provider answers
- CatalogRecord: One persisted row of the catalog
- RunSummary: Results from reconciling one collection

All schemas use Pydantic v2 for validation and serialization.
"""

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_serializer, field_validator


class CollectionType(str, Enum):
    """Kind of library a file belongs to."""

    MOVIE = "movie"
    TV = "tv"


class InventoryAction(str, Enum):
    """Reconciliation verdict for one absolute path.

    Attributes:
        ADD: On disk but not yet catalogued
        DELETE: Catalogued but gone from disk
        SKIP: Present in both (or, defensively, in neither)
    """

    ADD = "ADD"
    DELETE = "DELETE"
    SKIP = "SKIP"


class SourceType(str, Enum):
    """Release origin. The value is the label used in canonical names."""

    BRRIP = "BRRip"
    BLURAY = "Bluray"
    TV = "TVRip"
    WEBRIP = "WEBRip"
    WEB_DL = "WEB-DL"
    STREAM = "Stream"
    REMUX = "REMUX"
    UNKNOWN = ""

    @property
    def label(self) -> str:
        return self.value


class ParsedIdentity(BaseModel):
    """Identity extracted from a single release filename.

    Attributes:
        title: Cleaned show or movie title ('' when nothing usable was found)
        year: Release year (movies; TV only when it is part of the name)
        season: Season digits exactly as written in the filename
        episode: Episode digits exactly as written in the filename
        tmdb_id: Provider id from an embedded ``{tmdb-<id>}`` tag
    """

    title: str = ""
    year: int | None = None
    season: str | None = None
    episode: str | None = None
    tmdb_id: int | None = None

    model_config = {"frozen": True}

    @property
    def is_episode(self) -> bool:
        return self.season is not None and self.episode is not None


class OriginClassification(BaseModel):
    """Where a release came from.

    Attributes:
        source_type: Rip type detected from the filename and its directories
        streaming_service: Platform abbreviation, the generic fallback label,
            or the Bluray label for remuxes
    """

    source_type: SourceType = SourceType.UNKNOWN
    streaming_service: str | None = None

    model_config = {"frozen": True}


class TechnicalAttributes(BaseModel):
    """Canonical technical labels resolved from probe properties.

    Attributes:
        resolution: e.g. '1080p' ('' when undetectable)
        hdr_format: Dot-joined HDR labels such as 'DV.HDR' ('' for SDR)
        video_codec: e.g. 'H264', 'HEVC', 'MPEG2'
        audio_codec: e.g. 'DTS-HD.MA' (None when no usable audio stream)
        audio_channels: e.g. '5.1' (None for MP3 or no usable audio stream)
    """

    resolution: str = ""
    hdr_format: str = ""
    video_codec: str = ""
    audio_codec: str | None = None
    audio_channels: str | None = None

    model_config = {"frozen": True}


class TitleRecord(BaseModel):
    """A movie or show as known by the metadata provider."""

    id: int
    name: str
    release_date: str | None = None
    description: str | None = None

    @property
    def release_year(self) -> int | None:
        if not self.release_date or len(self.release_date) < 4:
            return None
        try:
            return int(self.release_date[:4])
        except ValueError:
            return None


class EpisodeRecord(BaseModel):
    """A single TV episode as known by the metadata provider."""

    name: str | None = None
    overview: str | None = None
    air_date: str | None = None


class CatalogRecord(BaseModel):
    """One row of the persisted catalog.

    Mirrors the ``collection`` table: file facts, parsed identity, provider
    answers and technical attributes.
    """

    collection_type: CollectionType
    absolute_path: Path
    file_name: str
    file_extension: str
    name: str
    source_type: str = ""
    source: str | None = None
    group_name: str | None = None
    tmdb_id: int | None = None
    release_year: int | None = None
    file_size: int = 0
    release_date: str | None = None
    tmdb_name: str | None = None
    tmdb_description: str | None = None
    season_number: str | None = None
    episode_number: str | None = None
    episode_name: str | None = None
    episode_overview: str | None = None
    resolution: str = ""
    hdr_format: str = ""
    video_codec: str = ""
    audio_codec: str | None = None
    audio_channels: str | None = None

    @field_serializer("absolute_path")
    def serialize_path(self, path: Path) -> str:
        """Serialize Path to string for JSON."""
        return str(path)

    @field_validator("file_size")
    @classmethod
    def validate_size(cls, v: int) -> int:
        """Ensure the file size is not negative."""
        if v < 0:
            raise ValueError("file_size cannot be negative")
        return v


class ItemOutcome(BaseModel):
    """What happened to a single path during a run.

    Attributes:
        path: Absolute path from the filesystem scan or the catalog
        action: Reconciliation verdict for the path
        status: Final status after collaborators ran
        target: Canonical filename (ADD only)
        reason: Error message when status is 'failed'
    """

    path: str
    action: InventoryAction
    status: Literal["added", "deleted", "skipped", "failed"]
    target: str | None = None
    renamed: bool = False
    reason: str | None = None


class RunSummary(BaseModel):
    """Results from reconciling one collection.

    ``failed`` items were ADD/DELETE candidates whose collaborator call failed.
    They are reported separately from plain SKIP paths.
    """

    collection_type: CollectionType
    added: int = 0
    deleted: int = 0
    skipped: int = 0
    failed: int = 0
    renamed: int = 0
    items: list[ItemOutcome] = Field(default_factory=list)
