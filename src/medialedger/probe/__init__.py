"""Technical probe adapters."""

from medialedger.probe.cache import Probe, ProbeCache
from medialedger.probe.mediainfo import JsonTrackAccessor, MediaInfoProbe

__all__ = ["JsonTrackAccessor", "MediaInfoProbe", "Probe", "ProbeCache"]
