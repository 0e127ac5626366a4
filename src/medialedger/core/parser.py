"""Deterministic filename parser for scene-style release names.

Extracts identity from a single basename:
- TV: Show.Name.S02E05.720p.WEB-DL.mkv or Show Name - 2x05.avi
- Movies: The.Matrix.1999.1080p.BluRay.x264-GROUP.mkv
- Provider override: any name carrying a {tmdb-603} tag

The parser never raises. Blank or unusable input yields an empty
``ParsedIdentity`` and a log event.
"""

import re
from datetime import date

import structlog

from medialedger.core.constants import (
    CLEAN_WORDS,
    DELIMITER,
    HYPHENATED_TECH_TOKENS,
)
from medialedger.core.errors import ParseFailure
from medialedger.core.schemas import CollectionType, ParsedIdentity
from medialedger.core.tokens import (
    as_year,
    is_hard_stopword,
    is_roman_numeral,
    is_soft_stopword,
    split_tokens,
)

logger = structlog.get_logger(__name__)

_EXTENSION_RE = re.compile(r"\.\w{2,4}$")

# {tmdb-603}, [tmdbid-603], tmdbid=603, tmdb 603
_TMDB_TAG_RE = re.compile(r"[\[{(]?\btmdb(?:id)?[-= _:]?(\d+)[\]})]?", re.IGNORECASE)

_EPISODE_RE = re.compile(
    r"^(.+?)[. _-]+(?:[Ss](\d{1,4})[Ee](\d{1,4})|(\d{1,4})x(\d{1,4})).*$"
)

_RESOLUTION_RE = re.compile(
    rf"({DELIMITER})\d{{3,4}}x\d{{3,4}}({DELIMITER}|$)", re.IGNORECASE
)
_CLEAN_WORD_RES = tuple(
    re.compile(rf"({DELIMITER}){word}", re.IGNORECASE) for word in CLEAN_WORDS
)
_OPTIONALS_RE = re.compile(r"\[(.*?)\]")

# Off-the-air recordings like Title_12.11.17_20-15_ProSieben
_OTR_RE = re.compile(r"_\d{2}\.\d{2}\.\d{2}[_ ]+\d{2}-\d{2}_")
_OTR_MIN_START = 10

_GROUP_BREAK_RE = re.compile(r"[\[\](){} _,.]")


def strip_extension(name: str) -> str:
    """Remove a trailing ``.ext`` of 2 to 4 word characters."""
    return _EXTENSION_RE.sub("", name, count=1)


def detect_tmdb_id(text: str | None) -> int | None:
    """Find an embedded provider id override.

    Args:
        text: Filename or directory name

    Returns:
        The id from ``{tmdb-603}`` (or the looser ``tmdbid-603`` and
        ``tmdb 603`` spellings), or None
    """
    if not text:
        return None
    match = _TMDB_TAG_RE.search(text)
    if match is None:
        return None
    return int(match.group(1))


def strip_tmdb_tag(text: str) -> str:
    """Remove every provider id tag from ``text``."""
    return _TMDB_TAG_RE.sub("", text)


def detect_release_group(basename: str | None) -> str | None:
    """Return the release group after the last ``-`` of a release name.

    Hyphenated technical tokens such as ``WEB-DL`` or ``DTS-HD`` are not
    release groups.

    Args:
        basename: Filename, with or without extension

    Returns:
        Group name, or None when the name carries no trailing group
    """
    if not basename:
        return None

    stem = strip_extension(strip_tmdb_tag(basename)).rstrip()
    index = stem.rfind("-")
    if index < 0:
        return None

    group = stem[index + 1 :]
    if not group or _GROUP_BREAK_RE.search(group):
        return None

    preceding = split_tokens(stem[:index])
    if preceding and f"{preceding[-1]}-{group}".lower() in HYPHENATED_TECH_TOKENS:
        return None

    return group


def detect_clean_title_and_year(
    name: str, current_year: int | None = None
) -> tuple[str, int | None]:
    """Extract a clean title and release year from a noisy release name.

    Args:
        name: Basename, extension optional
        current_year: Upper reference for year detection (defaults to today)

    Returns:
        (title, year) where title falls back to the working string when no
        token survives and year is None when nothing plausible was found
    """
    if current_year is None:
        current_year = date.today().year

    working = strip_extension(strip_tmdb_tag(name))
    working = _RESOLUTION_RE.sub(r"\1", working, count=1)
    for clean_word in _CLEAN_WORD_RES:
        working = clean_word.sub(r"\1", working, count=1)

    optionals: list[str] = []
    for match in list(_OPTIONALS_RE.finditer(working)):
        optionals.extend(split_tokens(match.group(1)))
        working = working.replace(match.group(0), "")

    otr = _OTR_RE.search(working)
    if otr is not None and otr.start() > _OTR_MIN_START:
        working = working[: otr.start()]

    tokens = split_tokens(working)
    if not tokens:
        tokens = list(optionals)

    year: int | None = None
    year_index: int | None = None
    for i in range(len(tokens) - 1, 0, -1):
        candidate = as_year(tokens[i], current_year)
        if candidate is not None:
            year = candidate
            year_index = i
            tokens[i] = ""
            break

    if year is None:
        for optional in optionals:
            candidate = as_year(optional, current_year)
            if candidate is not None:
                year = candidate
                break

    # Never cut away the first two tokens
    cut_index = len(tokens)
    for i, token in enumerate(tokens):
        if token and is_hard_stopword(token):
            tokens[i] = ""
            if 2 <= i < cut_index:
                cut_index = i

    for i in range(year_index or 0, len(tokens)):
        if tokens[i] and is_soft_stopword(tokens[i]):
            tokens[i] = ""
            if 2 <= i < cut_index:
                cut_index = i

    end = cut_index if year_index is None else min(cut_index, year_index)
    words = [
        token.upper() if is_roman_numeral(token) else token
        for token in tokens[:end]
        if token
    ]
    title = " ".join(words).strip()
    if not title:
        title = working

    return title, year


def _match_episode(stem: str) -> tuple[str, str, str] | None:
    """Match the TV episode pattern, returning (title, season, episode)."""
    match = _EPISODE_RE.match(stem)
    if match is None:
        return None

    title = match.group(1).replace(".", " ").replace("_", " ").strip()
    if match.group(2) is not None:
        return title, match.group(2), match.group(3)
    return title, match.group(4), match.group(5)


def _parse(
    basename: str, collection_type: CollectionType, current_year: int | None
) -> ParsedIdentity:
    tmdb_id = detect_tmdb_id(basename)
    stem = strip_extension(strip_tmdb_tag(basename)).strip()
    if not stem and tmdb_id is not None:
        return ParsedIdentity(tmdb_id=tmdb_id)
    if not stem:
        raise ParseFailure(basename, "nothing left after removing tags")

    if collection_type == CollectionType.TV:
        episode = _match_episode(stem)
        if episode is not None:
            title, season, number = episode
            return ParsedIdentity(
                title=title, season=season, episode=number, tmdb_id=tmdb_id
            )

    # The override id replaces the heuristic title lookup entirely
    if tmdb_id is not None:
        return ParsedIdentity(tmdb_id=tmdb_id)

    title, year = detect_clean_title_and_year(stem, current_year)
    if not title:
        raise ParseFailure(basename, "no title tokens")
    return ParsedIdentity(title=title, year=year)


def parse_filename(
    basename: str | None,
    collection_type: CollectionType | str,
    *,
    current_year: int | None = None,
) -> ParsedIdentity:
    """Parse a release basename into a ``ParsedIdentity``.

    Args:
        basename: File name without directories (extension optional)
        collection_type: 'movie' or 'tv'
        current_year: Upper reference for year detection (defaults to today)

    Returns:
        ParsedIdentity; all fields empty when the name is blank or unusable
    """
    kind = CollectionType(collection_type)
    if basename is None or not basename.strip():
        logger.warning("parser.blank_input", collection_type=kind.value)
        return ParsedIdentity()

    try:
        return _parse(basename, kind, current_year)
    except ParseFailure as exc:
        logger.warning("parser.failure", **exc.to_dict())
        return ParsedIdentity()
