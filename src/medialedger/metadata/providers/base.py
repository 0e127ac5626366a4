"""Base provider interface with security, rate limiting, and retry logic.

SECURITY REQUIREMENTS:
- API keys MUST come from environment variables only
- API keys MUST NEVER appear in logs or error messages
- Rate limits MUST be enforced to prevent API bans
- Retry logic with exponential backoff for resilience
"""

import os
import time
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

import anyio
import httpx
import structlog

from medialedger.core.errors import ConfigurationError, LookupFailure
from medialedger.core.schemas import CollectionType, EpisodeRecord, TitleRecord

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class ProviderError(LookupFailure):
    """Base error for provider-related failures."""

    pass


class RateLimitError(ProviderError):
    """Raised when the provider keeps answering 429 after all retries."""

    pass


class MetadataProvider(Protocol):
    """What the collection runner needs from a metadata source.

    Every method raises ``LookupFailure`` (``not_found=True`` when the
    provider answered but had no match).
    """

    async def lookup_by_title(
        self,
        collection_type: CollectionType,
        title: str,
        year: int | None = None,
        *,
        season: str | None = None,
        episode: str | None = None,
    ) -> TitleRecord: ...

    async def lookup_by_id(
        self, tmdb_id: int, collection_type: CollectionType = CollectionType.MOVIE
    ) -> TitleRecord: ...

    async def lookup_episode(
        self, show_id: int, season: str | int, episode: str | int
    ) -> EpisodeRecord: ...


class BaseProvider(ABC):
    """Base class for metadata providers with security and resilience.

    Features:
    - Environment-only API key loading (never hardcoded)
    - Sliding-window rate limiting per provider
    - Exponential backoff retry logic
    - Secure error handling (keys never exposed)
    """

    def __init__(
        self,
        provider_name: str,
        api_key_env_var: str | None = None,
        rate_limit_per_minute: int = 40,
        max_retries: int = 3,
    ):
        """Initialize provider with secure configuration.

        Args:
            provider_name: Name of the provider (for logging)
            api_key_env_var: Environment variable name containing API key
            rate_limit_per_minute: Max requests per minute (conservative)
            max_retries: Maximum retry attempts for failed requests

        Raises:
            ConfigurationError: If API key required but not found in environment
        """
        self.provider_name = provider_name
        self.rate_limit_per_minute = rate_limit_per_minute
        self.max_retries = max_retries

        # Load API key from environment ONLY - never hardcode!
        self._api_key_env_var = api_key_env_var
        if api_key_env_var:
            self._api_key = os.getenv(api_key_env_var)
            if not self._api_key:
                raise ConfigurationError(
                    f"{provider_name} API key not found in environment variable "
                    f"'{api_key_env_var}'. Please set it in your .env file."
                )
        else:
            self._api_key = None

        # Rate limiting: track request timestamps
        self._request_times: deque[float] = deque()

    def __str__(self) -> str:
        """String representation with API key MASKED for security."""
        if self._api_key_env_var:
            return f"{self.provider_name}Provider(api_key={self._api_key_env_var}=***)"
        return f"{self.provider_name}Provider(no_auth_required)"

    def __repr__(self) -> str:
        """Repr with API key MASKED for security."""
        return self.__str__()

    def check_rate_limit(self) -> bool:
        """Check if we're within rate limit, update tracking.

        Returns:
            True if request allowed (and recorded), False if rate limited
        """
        now = time.time()
        minute_ago = now - 60

        # Remove timestamps older than 1 minute
        while self._request_times and self._request_times[0] < minute_ago:
            self._request_times.popleft()

        if len(self._request_times) >= self.rate_limit_per_minute:
            return False

        self._request_times.append(now)
        return True

    async def wait_for_rate_limit(self) -> None:
        """Block until the sliding window has room for one more request."""
        while not self.check_rate_limit():
            oldest = self._request_times[0]
            delay = max(oldest + 60 - time.time(), 0.05)
            logger.debug("provider.rate_limited", provider=self.provider_name, delay=delay)
            await anyio.sleep(delay)

    def calculate_backoff_delay(self, attempt: int, base_delay: float = 1.0) -> float:
        """Calculate exponential backoff delay for retry attempt.

        Args:
            attempt: Retry attempt number (1-indexed)
            base_delay: Base delay in seconds (default 1.0)

        Returns:
            Delay in seconds (exponential: 1s, 2s, 4s, 8s...), capped at 60s
        """
        delay: float = min(base_delay * (2 ** (attempt - 1)), 60.0)
        return delay

    async def _execute_with_retry(
        self, func: Callable[[], Awaitable[T]], operation_name: str = "request"
    ) -> T:
        """Execute an async function with automatic retry on transient errors.

        Retries on:
        - 429 Too Many Requests (rate limit)
        - 500, 502, 503, 504 (server errors)
        - Network timeouts

        Does NOT retry on:
        - 4xx errors (except 429) - these are client errors

        Args:
            func: Async function to execute
            operation_name: Name of operation for error messages

        Returns:
            Result from func()

        Raises:
            ProviderError: After max retries exceeded or non-retriable error
        """
        last_error: Exception | None = None

        for attempt in range(1, self.max_retries + 1):
            try:
                return await func()

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                last_error = e

                should_retry = status_code in (429, 500, 502, 503, 504)

                if not should_retry or attempt >= self.max_retries:
                    error_cls = RateLimitError if status_code == 429 else ProviderError
                    raise error_cls(
                        operation_name,
                        f"{self.provider_name} returned HTTP {status_code}",
                    ) from e

                delay = self.calculate_backoff_delay(attempt)
                logger.info(
                    "provider.retry",
                    provider=self.provider_name,
                    operation=operation_name,
                    status=status_code,
                    attempt=attempt,
                    delay=delay,
                )
                await anyio.sleep(delay)
                continue

            except httpx.TimeoutException as e:
                last_error = e

                if attempt >= self.max_retries:
                    raise ProviderError(
                        operation_name,
                        f"{self.provider_name} timed out after "
                        f"{self.max_retries} attempts",
                    ) from e

                delay = self.calculate_backoff_delay(attempt)
                await anyio.sleep(delay)
                continue

            except httpx.TransportError as e:
                raise ProviderError(
                    operation_name, f"{self.provider_name} unreachable: {e}"
                ) from e

        # Should never reach here, but just in case
        raise ProviderError(
            operation_name,
            f"{self.provider_name} failed after {self.max_retries} retries",
        ) from last_error

    @property
    def api_key(self) -> str | None:
        """Get API key (for internal use only - never log this!)."""
        return self._api_key

    @abstractmethod
    async def lookup_by_title(
        self,
        collection_type: CollectionType,
        title: str,
        year: int | None = None,
        *,
        season: str | None = None,
        episode: str | None = None,
    ) -> TitleRecord:
        """Find a movie or show by its title.

        Args:
            collection_type: Search movies or shows
            title: Parsed title
            year: Optional release year filter
            season: Season the candidate show must contain (TV only)
            episode: Episode the candidate show must contain (TV only)

        Raises:
            LookupFailure: On provider error or when nothing matches
        """

    @abstractmethod
    async def lookup_by_id(
        self, tmdb_id: int, collection_type: CollectionType = CollectionType.MOVIE
    ) -> TitleRecord:
        """Fetch a movie or show by provider id."""

    @abstractmethod
    async def lookup_episode(
        self, show_id: int, season: str | int, episode: str | int
    ) -> EpisodeRecord:
        """Fetch a single episode of a show."""
