"""Metadata providers.

Security: All API keys must be loaded from environment variables.
Rate limiting: Each provider enforces conservative limits to prevent bans.
"""

from medialedger.metadata.providers.base import (
    BaseProvider,
    MetadataProvider,
    ProviderError,
    RateLimitError,
)
from medialedger.metadata.providers.tmdb import TMDBProvider

__all__ = [
    "BaseProvider",
    "MetadataProvider",
    "ProviderError",
    "RateLimitError",
    "TMDBProvider",
]
