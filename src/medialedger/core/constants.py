"""Core constants for medialedger.

This module defines constants used throughout the application:
- Video file extensions recognised by the filesystem scanner
- Token tables used by the filename parser
- Streaming platform abbreviations and naming fallbacks
- Metadata provider configuration values
"""

# ============================================================================
# Media File Extensions
# ============================================================================

#: Video file extensions picked up by the scanner (lowercase, with dot)
VIDEO_EXTENSIONS: tuple[str, ...] = (
    ".mkv",
    ".mp4",
    ".avi",
    ".m4v",
    ".ts",
    ".strm",
)

#: Extensions that mark a streaming playlist rather than a real rip
STREAM_EXTENSIONS: tuple[str, ...] = ("strm",)

# ============================================================================
# Filename Tokens
# ============================================================================

#: Character class splitting a release name into tokens
DELIMITER: str = r"[\[\](){} _,.-]"

#: Hard stopwords are always removed from a release name
HARD_STOPWORDS: frozenset[str] = frozenset(
    {
        "1080", "1080i", "1080p", "2160p", "2160i", "3d", "480i", "480p",
        "576i", "576p", "360p", "10bit", "12bit", "360i", "720", "720i",
        "720p", "8bit", "ac3", "ac3ld", "ac3d", "ac3md", "amzn", "aoe",
        "atmos", "avc", "bd5", "bdrip", "blueray", "bluray", "brrip", "cam",
        "cd1", "cd2", "cd3", "cd4", "cd5", "cd6", "cd7", "cd8", "cd9",
        "dd20", "dd51", "disc1", "disc2", "disc3", "disc4", "disc5", "disc6",
        "disc7", "disc8", "disc9", "divx", "divx5", "dl", "dsr", "dsrip",
        "dts", "dtv", "dubbed", "dvd", "dvd1", "dvd2", "dvd3", "dvd4", "dvd5",
        "dvd6", "dvd7", "dvd8", "dvd9", "dvdivx", "dvdrip", "dvdscr",
        "dvdscreener", "emule", "etm", "fs", "fps", "h264", "h265", "hd",
        "hddvd", "hdr", "hdr10", "hdr10+", "hdrip", "hdtv", "hdtvrip", "hevc",
        "hrhd", "hrhdtv", "ind", "ituneshd", "ld", "md", "microhd",
        "multisubs", "mp3", "netflixhd", "nfo", "nfofix", "ntg", "ntsc",
        "ogg", "ogm", "pal", "pdtv", "pso", "r3", "r5", "remastered",
        "repack", "rerip", "remux", "roor", "rs", "rsvcd", "screener", "sd",
        "subbed", "subs", "svcd", "tc", "telecine", "telesync", "ts",
        "truehd", "uhd", "uncut", "unrated", "vcf", "vhs", "vhsrip", "webdl",
        "webrip", "workprint", "ws", "x264", "x265", "xf", "xvid", "xvidvd",
        "4k",
    }
)  # fmt: skip

#: Soft stopwords may legitimately appear in a title, so they are only
#: removed from the year token onwards
SOFT_STOPWORDS: frozenset[str] = frozenset(
    {
        "complete", "custom", "dc", "docu", "doku", "extended", "fragment",
        "internal", "limited", "local", "ma", "multi", "pal", "proper",
        "read", "retail", "se", "www", "xxx",
    }
)  # fmt: skip

#: Regex fragments stripped before splitting (must follow a delimiter)
CLEAN_WORDS: tuple[str, ...] = (
    r"24\.000",
    r"23\.976",
    r"23\.98",
    r"24\.00",
    r"web\-dl",
    r"web\-rip",
    r"blue\-ray",
    r"blu\-ray",
    r"dvd\-rip",
)

#: Roman numerals kept upper-case when a title is rebuilt
ROMAN_NUMERALS: frozenset[str] = frozenset(
    {"I", "II", "III", "IV", "V", "VI", "VII", "VIII", "IX", "X"}
)

#: Earliest year accepted as a release year
MIN_RELEASE_YEAR: int = 1900

#: How many years past the current one a release year may lie
YEAR_LOOKAHEAD: int = 5

#: Hyphenated technical tokens that must not be mistaken for a release group
HYPHENATED_TECH_TOKENS: frozenset[str] = frozenset(
    {
        "web-dl",
        "web-rip",
        "blu-ray",
        "blue-ray",
        "dvd-rip",
        "dts-hd",
        "dts-x",
        "dts-es",
    }
)

# ============================================================================
# Origin / Streaming Service
# ============================================================================

#: Streaming platform abbreviations recognised as `.{PLATFORM}.`
STREAMING_PLATFORMS: tuple[str, ...] = (
    "AMZN",
    "ATVP",
    "BMS",
    "DSNP",
    "GPLAY",
    "HS",
    "HULU",
    "JC",
    "JSTAR",
    "MA",
    "MX",
    "NF",
    "SM",
    "SONY",
    "YTUBE",
    "ZEE5",
    "iT",
)

#: Streaming service label used when no platform token is present
DEFAULT_STREAMING_SERVICE: str = "Hybrid"

#: Release group used in canonical names when none could be detected
DEFAULT_RELEASE_GROUP: str = "NOGRP"

# ============================================================================
# Technical Attributes
# ============================================================================

#: Audio languages accepted when picking the primary audio stream
ALLOWED_AUDIO_LANGUAGES: frozenset[str] = frozenset(
    {"en", "hi", "gu", "te", "ta", "ko", "ja", "zh", "mr"}
)

#: Channel label used when mediainfo reports something unparsable
UNKNOWN_CHANNELS: str = "Unknown"

# ============================================================================
# Provider Configuration
# ============================================================================

#: Default TMDB API base URL
TMDB_API_URI: str = "https://api.themoviedb.org/3"

#: Maximum number of retry attempts for provider API calls
MAX_PROVIDER_RETRIES: int = 3

#: Timeout for provider API calls in seconds
PROVIDER_TIMEOUT: float = 10.0

#: Requests per minute allowed against TMDB
TMDB_RATE_LIMIT_PER_MINUTE: int = 40
