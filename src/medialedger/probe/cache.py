"""Per-file memo of resolved technical attributes."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import structlog

from medialedger.core.errors import ProbeFailure
from medialedger.core.schemas import TechnicalAttributes
from medialedger.core.technical import PropertyAccessor, resolve_technical_attributes

logger = structlog.get_logger(__name__)

__all__ = ["Probe", "ProbeCache"]


class Probe(Protocol):
    """Anything that can open a file as a property accessor."""

    async def open(self, path: str | Path) -> PropertyAccessor: ...


class ProbeCache:
    """Memoise ``TechnicalAttributes`` keyed on (absolute path, file size).

    A file that changed size since it was last probed is probed again.
    Failed probes are not cached.
    """

    def __init__(self, probe: Probe) -> None:
        self._probe = probe
        self._entries: dict[tuple[str, int], TechnicalAttributes] = {}
        self._hits = 0
        self._misses = 0

    async def resolve(self, path: Path, size: int | None = None) -> TechnicalAttributes:
        """Return technical attributes for ``path``, probing on a miss.

        Args:
            path: Absolute file path
            size: Known file size (stat'ed when omitted)

        Returns:
            Resolved attributes; empty attributes when the probe fails
        """
        if size is None:
            size = path.stat().st_size
        key = (str(path), size)

        cached = self._entries.get(key)
        if cached is not None:
            self._hits += 1
            return cached

        self._misses += 1
        try:
            accessor = await self._probe.open(path)
        except ProbeFailure as exc:
            logger.warning("probe.failed", **exc.to_dict())
            return TechnicalAttributes()

        attributes = resolve_technical_attributes(accessor)
        self._entries[key] = attributes
        return attributes

    def get_stats(self) -> dict[str, int]:
        """Get cache statistics."""

        return {"hits": self._hits, "misses": self._misses, "entries": len(self._entries)}
