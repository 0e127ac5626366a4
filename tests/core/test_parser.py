"""Tests for the release filename parser.

Covers the movie title/year heuristics, the TV episode patterns, provider
id overrides and release group detection.
"""

import pytest

from medialedger.core.schemas import CollectionType, ParsedIdentity

YEAR = 2026


# ============================================================================
# Movie title and year
# ============================================================================


def test_parse_movie_scene_name() -> None:
    """Year ends the title; technical tokens after it are dropped."""
    from medialedger.core.parser import parse_filename

    result = parse_filename(
        "The.Matrix.1999.1080p.BluRay.x264-GRP.mkv", "movie", current_year=YEAR
    )

    assert result == ParsedIdentity(title="The Matrix", year=1999)


def test_parse_movie_prefers_last_plausible_year() -> None:
    """A number inside the title is kept when a later year exists."""
    from medialedger.core.parser import detect_clean_title_and_year

    assert detect_clean_title_and_year("Blade.Runner.2049.2017.2160p.mkv", YEAR) == (
        "Blade Runner 2049",
        2017,
    )


def test_parse_movie_first_token_is_never_the_year() -> None:
    from medialedger.core.parser import detect_clean_title_and_year

    assert detect_clean_title_and_year("2012.2009.mkv", YEAR) == ("2012", 2009)


def test_parse_movie_year_window_uses_reference_year() -> None:
    from medialedger.core.parser import detect_clean_title_and_year

    assert detect_clean_title_and_year("Some.Movie.2030.mkv", 2026) == (
        "Some Movie",
        2030,
    )
    assert detect_clean_title_and_year("Some.Movie.2030.mkv", 2024) == (
        "Some Movie 2030",
        None,
    )
    assert detect_clean_title_and_year("Old.Film.1899.mkv", YEAR) == (
        "Old Film 1899",
        None,
    )


def test_parse_movie_roman_numerals_are_upper_cased() -> None:
    from medialedger.core.parser import detect_clean_title_and_year

    assert detect_clean_title_and_year("Rocky.ii.1979.mkv", YEAR) == ("Rocky II", 1979)


def test_parse_movie_year_from_bracketed_optionals() -> None:
    from medialedger.core.parser import detect_clean_title_and_year

    assert detect_clean_title_and_year("Movie Name [2010].mkv", YEAR) == (
        "Movie Name",
        2010,
    )


def test_parse_movie_hard_stopword_cuts_title() -> None:
    from medialedger.core.parser import detect_clean_title_and_year

    assert detect_clean_title_and_year("The.Movie.DVDRip.Extra.Words.avi", YEAR) == (
        "The Movie",
        None,
    )


def test_parse_movie_soft_stopword_only_after_year() -> None:
    """'Complete' before the year is part of the title, 'Extended' after it is not."""
    from medialedger.core.parser import detect_clean_title_and_year

    assert detect_clean_title_and_year(
        "The.Complete.Story.2001.Extended.mkv", YEAR
    ) == ("The Complete Story", 2001)


def test_parse_movie_strips_frame_size_and_clean_words() -> None:
    from medialedger.core.parser import detect_clean_title_and_year

    assert detect_clean_title_and_year("Movie.1920x1080.2001.mkv", YEAR) == (
        "Movie",
        2001,
    )
    assert detect_clean_title_and_year("Movie.Title.2004.WEB-DL.mkv", YEAR) == (
        "Movie Title",
        2004,
    )


def test_parse_movie_cuts_off_the_air_recording_suffix() -> None:
    from medialedger.core.parser import detect_clean_title_and_year

    title, year = detect_clean_title_and_year(
        "Der.Tatort.Krimi_17.11.12_20-15_ard.mkv", YEAR
    )

    assert title == "Der Tatort Krimi"
    assert year is None


# ============================================================================
# TV episodes
# ============================================================================


@pytest.mark.parametrize(
    ("basename", "title", "season", "episode"),
    [
        ("Show.Name.S02E05.720p.WEB-DL.mkv", "Show Name", "02", "05"),
        ("Show Name - 2x05.avi", "Show Name", "2", "05"),
        ("show_name_s1e3.mp4", "show name", "1", "3"),
        ("Long.Runner.S01E1005.mkv", "Long Runner", "01", "1005"),
    ],
)
def test_parse_tv_episode_patterns(
    basename: str, title: str, season: str, episode: str
) -> None:
    """Season and episode digits are kept exactly as written."""
    from medialedger.core.parser import parse_filename

    result = parse_filename(basename, CollectionType.TV)

    assert result.title == title
    assert result.season == season
    assert result.episode == episode
    assert result.is_episode


def test_parse_tv_without_episode_marker_falls_back_to_title() -> None:
    from medialedger.core.parser import parse_filename

    result = parse_filename("Some Show Special.mkv", "tv", current_year=YEAR)

    assert result.title == "Some Show Special"
    assert not result.is_episode


def test_parse_tv_keeps_override_id_with_episode() -> None:
    from medialedger.core.parser import parse_filename

    result = parse_filename("Show {tmdb-1399} S01E01.mkv", "tv")

    assert result == ParsedIdentity(
        title="Show", season="01", episode="01", tmdb_id=1399
    )


# ============================================================================
# Provider id override
# ============================================================================


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Heat (1995) {tmdb-949}.mkv", 949),
        ("Heat [tmdbid-949].mkv", 949),
        ("Heat tmdbid=949.mkv", 949),
        ("Heat {TMDB-949}.mkv", 949),
        ("Heat (1995).mkv", None),
        (None, None),
    ],
)
def test_detect_tmdb_id(text: str | None, expected: int | None) -> None:
    from medialedger.core.parser import detect_tmdb_id

    assert detect_tmdb_id(text) == expected


def test_parse_movie_override_skips_title_heuristics() -> None:
    from medialedger.core.parser import parse_filename

    result = parse_filename("Heat (1995) {tmdb-949}.mkv", "movie")

    assert result == ParsedIdentity(tmdb_id=949)


@pytest.mark.parametrize("kind", ["movie", "tv"])
def test_parse_tag_only_name_keeps_override(kind: str) -> None:
    from medialedger.core.parser import parse_filename

    assert parse_filename("{tmdb-603}.mkv", kind) == ParsedIdentity(tmdb_id=603)


# ============================================================================
# Degenerate input
# ============================================================================


@pytest.mark.parametrize("basename", ["", "   ", None, ".mkv"])
def test_parse_blank_input_returns_empty_identity(basename: str | None) -> None:
    """Unusable names never raise."""
    from medialedger.core.parser import parse_filename

    assert parse_filename(basename, "movie") == ParsedIdentity()


def test_parse_rejects_unknown_collection_type() -> None:
    from medialedger.core.parser import parse_filename

    with pytest.raises(ValueError):
        parse_filename("Movie.2001.mkv", "music")


# ============================================================================
# Release group
# ============================================================================


@pytest.mark.parametrize(
    ("basename", "expected"),
    [
        ("The.Matrix.1999.1080p.BluRay.x264-GRP.mkv", "GRP"),
        ("Movie.x264-GRP {tmdb-1}.mkv", "GRP"),
        ("Show.S01E01.1080p.WEB-DL.mkv", None),
        ("Movie.2001.DTS-HD.mkv", None),
        ("Movie Name (2010).mkv", None),
        ("Movie - Part 2.mkv", None),
        ("Movie.2001-.mkv", None),
        ("", None),
    ],
)
def test_detect_release_group(basename: str, expected: str | None) -> None:
    from medialedger.core.parser import detect_release_group

    assert detect_release_group(basename) == expected
