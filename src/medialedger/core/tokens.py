"""Token tables and lookups shared by the filename parser.

All helpers here are pure: they only consult the tables defined in
``medialedger.core.constants``.
"""

import re

from medialedger.core.constants import (
    DELIMITER,
    HARD_STOPWORDS,
    MIN_RELEASE_YEAR,
    ROMAN_NUMERALS,
    SOFT_STOPWORDS,
    YEAR_LOOKAHEAD,
)

_DELIMITER_RE = re.compile(DELIMITER)
_YEAR_RE = re.compile(r"^\d{4}$")


def split_tokens(text: str | None) -> list[str]:
    """Split text on the delimiter set, dropping empty tokens.

    Args:
        text: Raw text such as a release name

    Returns:
        Tokens in original order (never contains '')
    """
    if not text:
        return []
    return [token for token in _DELIMITER_RE.split(text) if token]


def is_hard_stopword(token: str) -> bool:
    """Return True if the token is always stripped from a title."""
    return token.lower() in HARD_STOPWORDS


def is_soft_stopword(token: str) -> bool:
    """Return True if the token is stripped once a year has been seen."""
    return token.lower() in SOFT_STOPWORDS


def is_roman_numeral(token: str) -> bool:
    """Return True for the roman numerals I to X (any case)."""
    return token.upper() in ROMAN_NUMERALS


def as_year(token: str, current_year: int) -> int | None:
    """Interpret a token as a release year.

    Args:
        token: Candidate token
        current_year: Reference year for the upper bound

    Returns:
        The year when ``token`` is exactly four digits inside
        ``[1900, current_year + 5]``, otherwise None
    """
    if not _YEAR_RE.match(token):
        return None
    value = int(token)
    if MIN_RELEASE_YEAR <= value <= current_year + YEAR_LOOKAHEAD:
        return value
    return None
