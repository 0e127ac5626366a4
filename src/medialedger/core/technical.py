"""Technical attribute resolution from probe properties.

Consumes an opaque ``PropertyAccessor`` (mediainfo-style ``get(stream,
index, key)`` lookups) and derives canonical labels for resolution, HDR
format, video codec and the primary audio stream.
"""

import re
from collections.abc import Callable
from enum import Enum
from typing import Protocol, TypeVar

import structlog

from medialedger.core.constants import ALLOWED_AUDIO_LANGUAGES, UNKNOWN_CHANNELS
from medialedger.core.errors import ProbeFailure
from medialedger.core.schemas import TechnicalAttributes

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class StreamKind(str, Enum):
    """Stream sections exposed by the probe."""

    GENERAL = "General"
    VIDEO = "Video"
    AUDIO = "Audio"


class PropertyAccessor(Protocol):
    """Read-only view over one probed file.

    ``get`` returns '' for missing keys or streams. Implementations raise
    ``ProbeFailure`` when the underlying data cannot be read at all.
    """

    def get(self, stream: StreamKind, index: int, key: str) -> str: ...

    def stream_count(self, stream: StreamKind) -> int: ...


# ============================================================================
# Resolution
# ============================================================================


def blur(value: int) -> int:
    """Inflate a bound by 1% to absorb encoder rounding."""
    return value + value // 100


#: (max width or None for height-only rows, max height, label), top-down
RESOLUTION_TABLE: tuple[tuple[int | None, int, str], ...] = (
    (128, 96, "96p"),
    (160, 120, "120p"),
    (176, 144, "144p"),
    (256, 144, "144p"),
    (320, 240, "240p"),
    (352, 240, "240p"),
    (426, 240, "240p"),
    (480, 272, "288p"),
    (480, 360, "360p"),
    (640, 360, "360p"),
    (640, 480, "480p"),
    (720, 480, "480p"),
    (800, 480, "480p"),
    (853, 480, "480p"),
    (776, 592, "576p"),
    (1024, 576, "576p"),
    (None, 720, "720p"),
    (None, 1080, "1080p"),
    (None, 1440, "1440p"),
    (3840, 2160, "2160p"),
    (3840, 1600, "2160p"),
    (4096, 2160, "2160p"),
    (4096, 1716, "2160p"),
    (3996, 2160, "2160p"),
)

#: Label when no table row is satisfied
MAX_RESOLUTION_LABEL = "4320p"


def detect_resolution(width: int, height: int) -> str:
    """Map pixel dimensions to a canonical resolution label.

    Args:
        width: Frame width in pixels
        height: Frame height in pixels

    Returns:
        Label such as '1080p'; '' when either dimension is 0
    """
    if width == 0 or height == 0:
        return ""

    for max_width, max_height, label in RESOLUTION_TABLE:
        if max_width is not None and width > blur(max_width):
            continue
        if height <= blur(max_height):
            return label

    return MAX_RESOLUTION_LABEL


def _as_int(raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        return 0


def resolve_resolution(accessor: PropertyAccessor) -> str:
    """Resolution label of the first video stream."""
    width = _as_int(accessor.get(StreamKind.VIDEO, 0, "Width"))
    height = _as_int(accessor.get(StreamKind.VIDEO, 0, "Height"))
    return detect_resolution(width, height)


# ============================================================================
# HDR
# ============================================================================


def detect_hdr_format(source: str | None) -> str:
    """Collect HDR labels mentioned in a free-text property value.

    Args:
        source: e.g. 'Dolby Vision / SMPTE ST 2086'

    Returns:
        De-duplicated labels in detection order joined with '.', e.g. 'DV.HDR'
    """
    if not source:
        return ""

    text = source.lower()
    labels: list[str] = []

    if "dolby vision" in text:
        labels.append("DV")
    if "hlg" in text:
        labels.append("HLG")
    if "2094" in text or "hdr10+" in text:
        labels.append("HDR")

    text = text.replace("hdr10+", "")
    if "2086" in text or "hdr10" in text:
        labels.append("HDR")

    return ".".join(dict.fromkeys(labels))


def resolve_hdr_format(accessor: PropertyAccessor) -> str:
    """Resolve the HDR label of the first video stream.

    Priority: the combined HDR_Format fields, then transfer characteristics,
    then BT.2100 colour primaries, then known HDR transfer functions.
    """
    combined = " / ".join(
        accessor.get(StreamKind.VIDEO, 0, key)
        for key in ("HDR_Format", "HDR_Format_String", "HDR_Format_Compatibility")
    )
    hdr = detect_hdr_format(combined)
    if hdr:
        return hdr

    transfer = accessor.get(StreamKind.VIDEO, 0, "transfer_characteristics")
    hdr = detect_hdr_format(transfer)
    if hdr:
        return hdr

    if "2100" in accessor.get(StreamKind.VIDEO, 0, "colour_primaries"):
        return "HDR"

    if "2100" in transfer or transfer in ("PQ", "HLG"):
        return "HDR"

    return ""


# ============================================================================
# Video codec
# ============================================================================


def resolve_video_codec(accessor: PropertyAccessor) -> str:
    """Canonical video codec of the first video stream.

    Examples: 'H264', 'HEVC', 'XVID', 'MPEG2', 'VC-1'.
    """
    codec = accessor.get(StreamKind.VIDEO, 0, "CodecID/Hint")
    if not codec.strip():
        codec = accessor.get(StreamKind.VIDEO, 0, "Format")

    # Hints like 'Microsoft' carry no codec name (VC-1)
    if "microsoft" in codec.lower():
        codec = accessor.get(StreamKind.VIDEO, 0, "Format")

    if accessor.get(StreamKind.GENERAL, 0, "CodecID").upper() == "XVID":
        codec = "XVID"

    if codec.upper() == "AVC":
        codec = "H264"

    if "mpeg" in codec.lower():
        digits = re.sub(r"\D", "", accessor.get(StreamKind.VIDEO, 0, "Format_Version"))
        if digits:
            codec = f"MPEG{int(digits)}"

    return codec


# ============================================================================
# Audio
# ============================================================================

#: Exact commercial-format names and their canonical labels
_AUDIO_LABELS: dict[str, str] = {
    "Dolby Digital": "DD",
    "DTS-HD Master Audio": "DTS-HD.MA",
    "DTS-HD High Resolution Audio": "DTS-HR",
    "Dolby Digital Plus": "DD+",
    "Dolby Digital Plus with Dolby Atmos": "DD+.Atmos",
    "Dolby TrueHD with Dolby Atmos": "TrueHD.Atmos",
    "Dolby TrueHD": "TrueHD",
    "DTS-HD MA + IMAX Enhanced": "IMAX.Enhanced.DTS-HD.MA",
}


def determine_audio_codec(commercial: str, profile: str = "", features: str = "") -> str:
    """Map a commercial audio format name to a canonical codec label.

    Args:
        commercial: Format_Commercial (or its fallbacks), e.g. 'Dolby Digital'
        profile: Format_Profile, e.g. 'Layer 3'
        features: Format_AdditionalFeatures, e.g. 'XLL X'

    Returns:
        Canonical label, or ``commercial`` unchanged when no rule applies
    """
    if "DTS-HD" in commercial and features == "XLL X":
        return "DTS-X"
    if "DTS-" in commercial and "ES" in features:
        return "DTS-ES"
    if commercial == "MPEG Audio" and "Layer 3" in profile:
        return "MP3"
    if "AAC" in commercial:
        return "AAC"
    return _AUDIO_LABELS.get(commercial, commercial)


def get_channels(raw: str | None) -> str:
    """Convert a channel count to a layout label.

    '6' -> '5.1', '2' -> '2.0'; anything unparsable -> 'Unknown'.
    """
    try:
        count = int(str(raw).strip())
    except ValueError:
        return UNKNOWN_CHANNELS

    if count > 2:
        return f"{count - 1}.1"
    return f"{count}.0"


def _coalesce(*values: str) -> str | None:
    for value in values:
        if value and value.strip():
            return value
    return None


def _language_allowed(language: str) -> bool:
    if not language.strip():
        return True
    primary = re.split(r"[-_]", language.strip().lower(), maxsplit=1)[0]
    return primary in ALLOWED_AUDIO_LANGUAGES


def resolve_audio(accessor: PropertyAccessor) -> tuple[str | None, str | None]:
    """Resolve codec and channel labels of the primary audio stream.

    The primary stream is the first one that is neither commentary nor a
    compatibility track and whose language (if set) is allowed.

    Returns:
        (codec, channels); both None when no stream qualifies, channels None
        for MP3
    """
    for index in range(accessor.stream_count(StreamKind.AUDIO)):
        title = accessor.get(StreamKind.AUDIO, index, "Title").upper()
        if "COMMENT" in title or "COMPATIBILITY" in title:
            continue
        if not _language_allowed(accessor.get(StreamKind.AUDIO, index, "Language")):
            continue

        commercial = _coalesce(
            accessor.get(StreamKind.AUDIO, index, "Format_Commercial"),
            accessor.get(StreamKind.AUDIO, index, "Format_Commercial_IfAny"),
            accessor.get(StreamKind.AUDIO, index, "Format"),
        )
        if commercial is None:
            return None, None

        codec = determine_audio_codec(
            commercial,
            accessor.get(StreamKind.AUDIO, index, "Format_Profile"),
            accessor.get(StreamKind.AUDIO, index, "Format_AdditionalFeatures"),
        )
        if codec == "MP3":
            return codec, None
        return codec, get_channels(accessor.get(StreamKind.AUDIO, index, "Channels"))

    return None, None


# ============================================================================
# Combined
# ============================================================================


def _guarded(part: str, resolve: Callable[[], T], fallback: T) -> T:
    try:
        return resolve()
    except ProbeFailure as exc:
        logger.warning("technical.probe_failed", part=part, **exc.to_dict())
        return fallback


def resolve_technical_attributes(accessor: PropertyAccessor) -> TechnicalAttributes:
    """Resolve every technical label for one probed file.

    A part whose properties cannot be read is left empty; probe failures are
    logged and never propagated.
    """
    audio_codec, audio_channels = _guarded(
        "audio", lambda: resolve_audio(accessor), (None, None)
    )
    return TechnicalAttributes(
        resolution=_guarded("resolution", lambda: resolve_resolution(accessor), ""),
        hdr_format=_guarded("hdr", lambda: resolve_hdr_format(accessor), ""),
        video_codec=_guarded("video_codec", lambda: resolve_video_codec(accessor), ""),
        audio_codec=audio_codec,
        audio_channels=audio_channels,
    )
