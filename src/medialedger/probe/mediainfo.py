"""Technical probe backed by the ``mediainfo`` command line tool.

Runs ``mediainfo --Output=JSON <file>`` and exposes the reported tracks
through the ``PropertyAccessor`` protocol used by the attribute resolver.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any

import anyio
import structlog

from medialedger.core.errors import ProbeFailure
from medialedger.core.technical import StreamKind

logger = structlog.get_logger(__name__)

__all__ = ["JsonTrackAccessor", "MediaInfoProbe"]


class JsonTrackAccessor:
    """Property lookups over mediainfo's JSON track list."""

    def __init__(self, path: str, tracks: list[dict[str, Any]]) -> None:
        self.path = path
        self._tracks: dict[str, list[dict[str, Any]]] = {}
        for track in tracks:
            kind = str(track.get("@type", ""))
            self._tracks.setdefault(kind, []).append(track)

    @classmethod
    def from_json(cls, path: str, payload: str | bytes) -> JsonTrackAccessor:
        """Build an accessor from raw ``--Output=JSON`` output.

        Raises:
            ProbeFailure: If the payload is not mediainfo JSON
        """
        try:
            data = json.loads(payload)
        except ValueError as exc:
            raise ProbeFailure(path, f"invalid mediainfo output: {exc}") from exc

        media = data.get("media") if isinstance(data, dict) else None
        tracks = media.get("track") if isinstance(media, dict) else None
        if not isinstance(tracks, list) or not tracks:
            raise ProbeFailure(path, "mediainfo reported no tracks")

        return cls(path, [track for track in tracks if isinstance(track, dict)])

    def stream_count(self, stream: StreamKind) -> int:
        return len(self._tracks.get(stream.value, []))

    def get(self, stream: StreamKind, index: int, key: str) -> str:
        tracks = self._tracks.get(stream.value, [])
        if index >= len(tracks):
            return ""

        track = tracks[index]
        extra = track.get("extra")
        # JSON output spells "CodecID/Hint" as "CodecID_Hint"
        for name in dict.fromkeys((key, key.replace("/", "_"))):
            value = track.get(name)
            if value is None and isinstance(extra, dict):
                # Non-standard fields are nested under "extra"
                value = extra.get(name)
            if value is not None:
                return str(value)
        return ""


class MediaInfoProbe:
    """Opens video files with the mediainfo CLI."""

    def __init__(self, executable: str = "mediainfo") -> None:
        self.executable = executable

    async def open(self, path: str | Path) -> JsonTrackAccessor:
        """Probe one file.

        Args:
            path: File to inspect

        Returns:
            Accessor over the reported tracks

        Raises:
            ProbeFailure: If mediainfo is missing, fails or prints garbage
        """
        target = str(path)
        binary = shutil.which(self.executable)
        if binary is None:
            raise ProbeFailure(target, f"'{self.executable}' not found on PATH")

        try:
            result = await anyio.run_process(
                [binary, "--Output=JSON", target], check=False
            )
        except OSError as exc:
            raise ProbeFailure(target, f"cannot run mediainfo: {exc}") from exc

        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace").strip()
            raise ProbeFailure(
                target, f"mediainfo exited with {result.returncode}: {stderr}"
            )

        logger.debug("probe.opened", path=target)
        return JsonTrackAccessor.from_json(target, result.stdout)
