"""Release origin classification.

Origins (Bluray, WEB-DL, TV capture, ...) are matched against a release
path from the most specific segment (the filename) up to the root. The
origin table is fixed and compiled once at import. Only the technical tail of
each segment (see ``release_tail``) is searched, keeping title words out.
"""

import re
from dataclasses import dataclass
from pathlib import Path, PurePath

import structlog

from medialedger.core.constants import (
    DEFAULT_STREAMING_SERVICE,
    STREAM_EXTENSIONS,
    STREAMING_PLATFORMS,
)
from medialedger.core.errors import ClassificationAmbiguity
from medialedger.core.parser import strip_tmdb_tag
from medialedger.core.schemas import OriginClassification, SourceType

logger = structlog.get_logger(__name__)

_START_TOKEN = r"[\/\\ _,.()\[\]-]"
_END_TOKEN = r"([\/\\ _,.()\[\]-]|$)"

_REMUX_MARKERS = ("REMUX", ".BD50", "BDMV")


@dataclass(frozen=True)
class SourceOrigin:
    """One entry of the origin table.

    Attributes:
        source_type: Origin the entry stands for
        pattern: Delimiter-bounded pattern (None for origins never matched)
        pattern_whole: Pattern that must span a whole segment
    """

    source_type: SourceType
    pattern: re.Pattern[str] | None = None
    pattern_whole: re.Pattern[str] | None = None

    @property
    def label(self) -> str:
        return self.source_type.label

    def matches(self, segment: str) -> bool:
        """Check one path segment against this origin."""
        if self.pattern is None or self.pattern_whole is None:
            return False
        if self.pattern.search(segment) or self.pattern_whole.search(segment):
            return True
        return bool(self.pattern_whole.search(PurePath(segment).stem))


def _origin(source_type: SourceType, pattern: str | None = None) -> SourceOrigin:
    if pattern is None:
        return SourceOrigin(source_type)
    return SourceOrigin(
        source_type,
        re.compile(_START_TOKEN + pattern + _END_TOKEN, re.IGNORECASE),
        re.compile("^" + pattern + "$", re.IGNORECASE),
    )


def _resolution_order(origins: tuple[SourceOrigin, ...]) -> tuple[SourceOrigin, ...]:
    # By label first, then stably by enum name length, longest first
    by_label = sorted(origins, key=lambda origin: origin.label)
    return tuple(
        sorted(by_label, key=lambda origin: len(origin.source_type.name), reverse=True)
    )


ORIGINS: tuple[SourceOrigin, ...] = _resolution_order(
    (
        _origin(SourceType.BRRIP, r"(bdrip|brrip|dbrip)"),
        _origin(SourceType.BLURAY, r"(bluray|blueray|bd25|bd50|bdmv|blu\-ray)"),
        _origin(
            SourceType.TV,
            r"(tv|hdtv|pdtv|dsr|dtb|dtt|dttv|dtv|hdtvrip|tvrip|dvbrip|hdrip)",
        ),
        _origin(SourceType.WEBRIP, r"(webrip)"),
        _origin(SourceType.WEB_DL, r"(web-dl|webdl|web)"),
        _origin(SourceType.STREAM),
        _origin(SourceType.UNKNOWN),
    )
)

# The MA of a DTS-HD.MA audio label is not the MA platform
_PLATFORM_RES: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (platform, re.compile(rf"(?<!-hd)\.{re.escape(platform)}\.", re.IGNORECASE))
    for platform in STREAMING_PLATFORMS
)

_DELIMITER_RE = re.compile(_START_TOKEN)
_EPISODE_MARKER_RE = re.compile(
    r"[. _-](?:[Ss]\d{1,4}[Ee]\d{1,4}|\d{1,4}x\d{1,4})(?=[. _-]|$)"
)
_YEAR_TOKEN_RE = re.compile(rf"(?<={_START_TOKEN})(?:19|20)\d{{2}}(?={_END_TOKEN})")

# Tokens that never occur in a title and open the technical part of a name.
# Bare "web" and "tv" are left out since titles use them as words.
_TECHNICAL_TOKENS = (
    "hybrid",
    "web-dl",
    "webdl",
    "webrip",
    "bluray",
    "blu-ray",
    "blueray",
    "bd25",
    "bd50",
    "bdmv",
    "bdrip",
    "brrip",
    "dbrip",
    "hdtv",
    "hdtvrip",
    "pdtv",
    "tvrip",
    "dvbrip",
    "hdrip",
    "dsr",
    "dtv",
    "dttv",
    "remux",
    "x264",
    "x265",
    "h264",
    "h265",
    "hevc",
    "xvid",
)
_TECHNICAL_RE = re.compile(
    rf"(?:^|(?<={_START_TOKEN}))"
    rf"(?:\d{{3,4}}[pi]|{'|'.join(re.escape(token) for token in _TECHNICAL_TOKENS)})"
    rf"(?={_END_TOKEN})",
    re.IGNORECASE,
)
_LEADING_TOKENS = frozenset(platform.lower() for platform in STREAMING_PLATFORMS) | {
    "web"
}


def _is_leading_token(token: str) -> bool:
    # Title-cased words ("It", "Web") belong to the title
    return token.lower() in _LEADING_TOKENS and not token.istitle()


def _extend_over_leading_tokens(name: str, start: int, begin: int) -> int:
    """Move ``begin`` back over platform tokens placed right before it."""
    while begin > start:
        end = begin - 1
        token_start = end
        while token_start > start and not _DELIMITER_RE.match(name[token_start - 1]):
            token_start -= 1
        if not _is_leading_token(name[token_start:end]):
            break
        begin = token_start
    return begin


def release_tail(name: str) -> str:
    """Technical part of a release name, past the title.

    Movies keep everything after the last year token. Episodes skip the
    episode marker and the episode title, up to the first resolution or
    technical token (plus any platform tokens directly in front of it).
    Names with no year or marker are cut the same way from their start.

    Args:
        name: A single path segment

    Returns:
        The tail, starting at its leading delimiter, or ``name`` itself when
        no technical part can be told apart from the title
    """
    name = strip_tmdb_tag(name)
    marker = _EPISODE_MARKER_RE.search(name)
    if marker is None:
        years = list(_YEAR_TOKEN_RE.finditer(name))
        if years:
            return name[years[-1].end() :]
        start = 0
    else:
        start = marker.end()

    technical = _TECHNICAL_RE.search(name, start)
    if technical is None:
        return name[start:]

    begin = _extend_over_leading_tokens(name, start, technical.start())
    return name[begin - 1 :] if begin > 0 else name


def _segments(path: PurePath) -> list[str]:
    """Path segments from the filename up to the top directory."""
    anchor = path.anchor
    return [part for part in reversed(path.parts) if part and part != anchor]


def _match_origin(path: str | Path) -> SourceType:
    pure = PurePath(str(path))
    segments = [release_tail(segment) for segment in _segments(pure)]

    for origin in ORIGINS:
        for segment in segments:
            if origin.matches(segment):
                return origin.source_type

    if pure.suffix.lower().lstrip(".") in STREAM_EXTENSIONS:
        return SourceType.STREAM

    raise ClassificationAmbiguity(pure.name)


def parse_media_source(path: str | Path) -> SourceType:
    """Classify the origin of a release from its path.

    Args:
        path: Basename, relative or absolute path of the release

    Returns:
        The first origin (in resolution order) matching any segment, STREAM
        for playlist files, otherwise UNKNOWN
    """
    try:
        return _match_origin(path)
    except ClassificationAmbiguity as exc:
        logger.debug("source.unmatched", name=exc.name)
        return SourceType.UNKNOWN


def is_remux(basename: str) -> bool:
    """Return True for remuxes (REMUX, .BD50 or BDMV in the name)."""
    upper = basename.upper()
    return any(marker in upper for marker in _REMUX_MARKERS)


def detect_streaming_service(
    basename: str, default: str | None = DEFAULT_STREAMING_SERVICE
) -> str | None:
    """Find the streaming platform abbreviation in a release name.

    Only the technical tail of the name is searched, so title words such as
    "It" are never taken for a platform.

    Args:
        basename: Release filename
        default: Label returned when no platform token is present

    Returns:
        The platform abbreviation as listed in ``STREAMING_PLATFORMS``
    """
    tail = release_tail(basename)
    for platform, pattern in _PLATFORM_RES:
        if pattern.search(tail):
            return platform
    return default


def classify_origin(path: str | Path) -> OriginClassification:
    """Classify source type and streaming service for a release.

    Remuxes always win over the pattern result and are attributed to Bluray.
    """
    basename = PurePath(str(path)).name
    source_type = parse_media_source(path)
    service = detect_streaming_service(basename)

    if is_remux(basename):
        return OriginClassification(
            source_type=SourceType.REMUX,
            streaming_service=SourceType.BLURAY.label,
        )

    return OriginClassification(source_type=source_type, streaming_service=service)
