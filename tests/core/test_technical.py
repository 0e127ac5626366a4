"""Tests for technical attribute resolution."""

import pytest
from fakes import FakeAccessor

from medialedger.core.errors import ProbeFailure
from medialedger.core.schemas import TechnicalAttributes
from medialedger.core.technical import (
    StreamKind,
    blur,
    detect_hdr_format,
    detect_resolution,
    determine_audio_codec,
    get_channels,
    resolve_audio,
    resolve_hdr_format,
    resolve_technical_attributes,
    resolve_video_codec,
)


def _video(**fields: str) -> FakeAccessor:
    return FakeAccessor({"Video": [dict(fields)]})


def _audio(*tracks: dict[str, str]) -> FakeAccessor:
    return FakeAccessor({"Audio": list(tracks)})


# ============================================================================
# Resolution
# ============================================================================


def test_blur_adds_one_percent() -> None:
    assert blur(1080) == 1090
    assert blur(99) == 99


@pytest.mark.parametrize(
    ("width", "height", "expected"),
    [
        (1920, 1080, "1080p"),
        (1920, 800, "1080p"),
        (1280, 720, "720p"),
        (720, 576, "576p"),
        (640, 480, "480p"),
        (3840, 2160, "2160p"),
        (3840, 1600, "2160p"),
        (7680, 4320, "4320p"),
        (0, 1080, ""),
        (1920, 0, ""),
    ],
)
def test_detect_resolution(width: int, height: int, expected: str) -> None:
    assert detect_resolution(width, height) == expected


def test_detect_resolution_is_monotonic_in_height() -> None:
    labels = [detect_resolution(1920, height) for height in range(100, 2200, 20)]
    values = [int(label.rstrip("p")) for label in labels]

    assert values == sorted(values)


# ============================================================================
# HDR
# ============================================================================


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("Dolby Vision / SMPTE ST 2086", "DV.HDR"),
        ("SMPTE ST 2094 App 4, HDR10+ Profile B", "HDR"),
        ("Dolby Vision, Version 1.0 / SMPTE ST 2094 App 4 / HDR10", "DV.HDR"),
        ("HLG", "HLG"),
        ("", ""),
        (None, ""),
    ],
)
def test_detect_hdr_format(source: str | None, expected: str) -> None:
    assert detect_hdr_format(source) == expected


def test_resolve_hdr_format_prefers_hdr_format_fields() -> None:
    accessor = _video(
        HDR_Format="Dolby Vision",
        HDR_Format_Compatibility="HDR10",
        transfer_characteristics="HLG",
    )

    assert resolve_hdr_format(accessor) == "DV.HDR"


@pytest.mark.parametrize(
    ("fields", "expected"),
    [
        ({"transfer_characteristics": "HLG"}, "HLG"),
        ({"transfer_characteristics": "PQ"}, "HDR"),
        ({"colour_primaries": "BT.2100"}, "HDR"),
        ({"transfer_characteristics": "BT.709"}, ""),
        ({}, ""),
    ],
)
def test_resolve_hdr_format_fallbacks(fields: dict[str, str], expected: str) -> None:
    assert resolve_hdr_format(_video(**fields)) == expected


# ============================================================================
# Video codec
# ============================================================================


def test_resolve_video_codec_maps_avc() -> None:
    assert resolve_video_codec(_video(Format="AVC")) == "H264"


def test_resolve_video_codec_prefers_hint() -> None:
    assert resolve_video_codec(_video(**{"CodecID/Hint": "HEVC", "Format": "x"})) == (
        "HEVC"
    )


def test_resolve_video_codec_microsoft_hint_uses_format() -> None:
    accessor = _video(**{"CodecID/Hint": "Microsoft", "Format": "VC-1"})

    assert resolve_video_codec(accessor) == "VC-1"


def test_resolve_video_codec_mpeg_version() -> None:
    accessor = _video(Format="MPEG Video", Format_Version="Version 2")

    assert resolve_video_codec(accessor) == "MPEG2"


def test_resolve_video_codec_xvid_from_container() -> None:
    accessor = FakeAccessor(
        {"General": [{"CodecID": "XVID"}], "Video": [{"Format": "MPEG-4 Visual"}]}
    )

    assert resolve_video_codec(accessor) == "XVID"


# ============================================================================
# Audio
# ============================================================================


@pytest.mark.parametrize(
    ("commercial", "profile", "features", "expected"),
    [
        ("DTS-HD Master Audio", "", "XLL X", "DTS-X"),
        ("DTS-HD High Resolution Audio", "", "ES", "DTS-ES"),
        ("MPEG Audio", "Layer 3", "", "MP3"),
        ("AAC LC", "", "", "AAC"),
        ("Dolby Digital", "", "", "DD"),
        ("Dolby Digital Plus with Dolby Atmos", "", "", "DD+.Atmos"),
        ("DTS-HD Master Audio", "", "XLL", "DTS-HD.MA"),
        ("Opus", "", "", "Opus"),
    ],
)
def test_determine_audio_codec(
    commercial: str, profile: str, features: str, expected: str
) -> None:
    assert determine_audio_codec(commercial, profile, features) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("6", "5.1"), ("8", "7.1"), ("2", "2.0"), ("1", "1.0"), ("abc", "Unknown"), (None, "Unknown")],
)
def test_get_channels(raw: str | None, expected: str) -> None:
    assert get_channels(raw) == expected


def test_resolve_audio_skips_commentary_and_foreign_tracks() -> None:
    accessor = _audio(
        {"Title": "Director's Commentary", "Format": "AAC", "Channels": "2"},
        {"Language": "de", "Format_Commercial": "Dolby Digital", "Channels": "6"},
        {"Language": "en-US", "Format_Commercial": "Dolby TrueHD", "Channels": "8"},
    )

    assert resolve_audio(accessor) == ("TrueHD", "7.1")


def test_resolve_audio_mp3_has_no_channels() -> None:
    accessor = _audio({"Format": "MPEG Audio", "Format_Profile": "Layer 3", "Channels": "2"})

    assert resolve_audio(accessor) == ("MP3", None)


def test_resolve_audio_without_usable_stream() -> None:
    assert resolve_audio(FakeAccessor()) == (None, None)
    assert resolve_audio(_audio({"Language": "en"})) == (None, None)


# ============================================================================
# Combined
# ============================================================================


def test_resolve_technical_attributes(hd_accessor: FakeAccessor) -> None:
    assert resolve_technical_attributes(hd_accessor) == TechnicalAttributes(
        resolution="1080p",
        hdr_format="",
        video_codec="H264",
        audio_codec="DTS-HD.MA",
        audio_channels="5.1",
    )


class _BrokenAudioAccessor(FakeAccessor):
    def stream_count(self, stream: StreamKind) -> int:
        if stream == StreamKind.AUDIO:
            raise ProbeFailure("movie.mkv", "audio section unreadable")
        return super().stream_count(stream)


def test_resolve_technical_attributes_isolates_probe_failures(
    hd_accessor: FakeAccessor,
) -> None:
    """A failing part is left empty while the others still resolve."""
    accessor = _BrokenAudioAccessor(hd_accessor.streams)

    result = resolve_technical_attributes(accessor)

    assert result.resolution == "1080p"
    assert result.video_codec == "H264"
    assert result.audio_codec is None
    assert result.audio_channels is None
