"""Canonical filename generation.

Movie:
    Title.Year.Resolution.Service.Source.HDR.VideoCodec.AudioCodec.Channels.{tmdb-ID}-GROUP.ext
TV:
    Show.S01E02.Episode.Title.Resolution.Service.Source.AudioCodec.Channels.HDR.VideoCodec-GROUP.ext

Blank tokens are dropped before joining with '.'. Names produced here parse
back to the same identity, so rebuilding an already-canonical file is a
no-op.
"""

import re
import unicodedata
from collections.abc import Iterable

from medialedger.core.constants import DEFAULT_RELEASE_GROUP
from medialedger.core.schemas import (
    CollectionType,
    OriginClassification,
    ParsedIdentity,
    TechnicalAttributes,
)

_ILLEGAL_RE = re.compile(r"[^A-Za-z0-9.-]")
_DOTS_RE = re.compile(r"\.{2,}")

#: Minimum digits for season and episode numbers
MIN_NUMBER_WIDTH = 2


def clean_title(text: str | None) -> str:
    """Normalize a title into a dot-separated ASCII token.

    Args:
        text: Provider or parsed title, e.g. 'Amélie & Friends'

    Returns:
        e.g. 'Amelie.and.Friends'
    """
    if not text:
        return ""

    # Letters with no NFD decomposition (ø, ß, Æ, Ł) end up as dots
    decomposed = unicodedata.normalize("NFD", text)
    ascii_text = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    ascii_text = ascii_text.replace("&", "and")
    dotted = _DOTS_RE.sub(".", _ILLEGAL_RE.sub(".", ascii_text)).strip(".")

    # CON is a reserved device name on Windows
    if dotted.startswith("Con."):
        dotted = "Con" + dotted[len("Con.") :]
    return dotted


def episode_padding(numbers: Iterable[str | int | None]) -> int:
    """Width needed to print every number of a show, at least 2."""
    width = MIN_NUMBER_WIDTH
    for number in numbers:
        if number is None or str(number).strip() == "":
            continue
        width = max(width, len(str(int(number))))
    return width


def pad_number(value: str | int, width: int = MIN_NUMBER_WIDTH) -> str:
    """Zero-pad a season or episode number to ``width`` digits."""
    return str(int(value)).zfill(width)


def _join(tokens: Iterable[str | None]) -> str:
    return ".".join(token for token in tokens if token and token.strip())


def _group(group: str | None) -> str:
    return group if group and group.strip() else DEFAULT_RELEASE_GROUP


def build_movie_name(
    *,
    title: str,
    year: int | None,
    origin: OriginClassification,
    attributes: TechnicalAttributes,
    tmdb_id: int | None,
    extension: str,
    group: str | None = None,
) -> str:
    """Assemble the canonical movie filename."""
    tmdb_tag = f"{{tmdb-{tmdb_id}}}" if tmdb_id is not None else ""
    return _join(
        [
            clean_title(title),
            str(year) if year is not None else None,
            attributes.resolution,
            origin.streaming_service,
            origin.source_type.label,
            attributes.hdr_format,
            attributes.video_codec,
            attributes.audio_codec,
            attributes.audio_channels,
            f"{tmdb_tag}-{_group(group)}",
            extension.lstrip("."),
        ]
    )


def build_tv_name(
    *,
    title: str,
    season: str | int,
    episode: str | int,
    origin: OriginClassification,
    attributes: TechnicalAttributes,
    extension: str,
    episode_title: str | None = None,
    group: str | None = None,
    season_width: int = MIN_NUMBER_WIDTH,
    episode_width: int = MIN_NUMBER_WIDTH,
) -> str:
    """Assemble the canonical TV episode filename."""
    marker = f"S{pad_number(season, season_width)}E{pad_number(episode, episode_width)}"
    return _join(
        [
            clean_title(title),
            marker,
            clean_title(episode_title),
            attributes.resolution,
            origin.streaming_service,
            origin.source_type.label,
            attributes.audio_codec,
            attributes.audio_channels,
            attributes.hdr_format,
            f"{attributes.video_codec}-{_group(group)}",
            extension.lstrip("."),
        ]
    )


def build_canonical_name(
    collection_type: CollectionType | str,
    identity: ParsedIdentity,
    origin: OriginClassification,
    attributes: TechnicalAttributes,
    title: str,
    *,
    extension: str,
    tmdb_id: int | None = None,
    year: int | None = None,
    episode_title: str | None = None,
    group: str | None = None,
    season_width: int = MIN_NUMBER_WIDTH,
    episode_width: int = MIN_NUMBER_WIDTH,
) -> str:
    """Build the canonical name for a resolved file.

    Args:
        collection_type: 'movie' or 'tv'
        identity: Parsed identity of the original filename
        origin: Source classification
        attributes: Technical attributes
        title: Provider-confirmed title (falls back to the parsed title)
        extension: File extension with or without the dot
        tmdb_id: Provider id (movies)
        year: Release year; defaults to the parsed year
        episode_title: Provider episode name (TV)
        group: Release group; 'NOGRP' when missing
        season_width: Zero-padding width for the season number
        episode_width: Zero-padding width for the episode number

    Returns:
        The canonical filename

    Raises:
        ValueError: For a TV identity without season/episode numbers
    """
    resolved_title = title or identity.title
    if CollectionType(collection_type) == CollectionType.MOVIE:
        return build_movie_name(
            title=resolved_title,
            year=year if year is not None else identity.year,
            origin=origin,
            attributes=attributes,
            tmdb_id=tmdb_id if tmdb_id is not None else identity.tmdb_id,
            extension=extension,
            group=group,
        )

    if identity.season is None or identity.episode is None:
        raise ValueError(f"TV identity without episode numbers: {identity.title!r}")

    return build_tv_name(
        title=resolved_title,
        season=identity.season,
        episode=identity.episode,
        origin=origin,
        attributes=attributes,
        extension=extension,
        episode_title=episode_title,
        group=group,
        season_width=season_width,
        episode_width=episode_width,
    )
