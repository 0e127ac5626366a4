"""Tests for base provider interface and security.

These tests verify:
- API key security (environment-only, masked in repr)
- Rate limiting enforcement
- Retry/backoff logic
- Error translation into lookup failures
"""

import os
from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from medialedger.core.errors import ConfigurationError, LookupFailure
from medialedger.core.schemas import CollectionType, EpisodeRecord, TitleRecord
from medialedger.metadata.providers.base import (
    BaseProvider,
    ProviderError,
    RateLimitError,
)


class _ConcreteProvider(BaseProvider):
    async def lookup_by_title(
        self, collection_type: CollectionType, title: str, year: int | None = None, **_: Any
    ) -> TitleRecord:
        return TitleRecord(id=1, name=title)

    async def lookup_by_id(
        self, tmdb_id: int, collection_type: CollectionType = CollectionType.MOVIE
    ) -> TitleRecord:
        return TitleRecord(id=tmdb_id, name="x")

    async def lookup_episode(
        self, show_id: int, season: str | int, episode: str | int
    ) -> EpisodeRecord:
        return EpisodeRecord()


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://example.invalid/")
    return httpx.HTTPStatusError(
        f"HTTP {status}", request=request, response=httpx.Response(status, request=request)
    )


def test_provider_requires_api_key_from_environment() -> None:
    with patch.dict(os.environ, {}, clear=True):
        with pytest.raises(ConfigurationError, match="API key.*environment"):
            _ConcreteProvider(provider_name="test", api_key_env_var="NONEXISTENT_KEY")


def test_provider_without_key_requirement() -> None:
    provider = _ConcreteProvider(provider_name="open")

    assert provider.api_key is None
    assert str(provider) == "openProvider(no_auth_required)"


def test_provider_never_exposes_api_key() -> None:
    with patch.dict(os.environ, {"TEST_API_KEY": "secret_key_12345"}):
        provider = _ConcreteProvider(provider_name="test", api_key_env_var="TEST_API_KEY")

    assert "secret_key_12345" not in str(provider)
    assert "secret_key_12345" not in repr(provider)
    assert "***" in str(provider)


def test_provider_enforces_rate_limiting() -> None:
    provider = _ConcreteProvider(provider_name="test", rate_limit_per_minute=2)

    assert provider.check_rate_limit()
    assert provider.check_rate_limit()
    assert not provider.check_rate_limit()


@pytest.mark.asyncio
async def test_wait_for_rate_limit_sleeps_until_window_frees() -> None:
    provider = _ConcreteProvider(provider_name="test", rate_limit_per_minute=1)
    provider.check_rate_limit()

    async def fake_sleep(delay: float) -> None:
        provider._request_times.clear()

    with patch(
        "medialedger.metadata.providers.base.anyio.sleep", side_effect=fake_sleep
    ) as sleep:
        await provider.wait_for_rate_limit()

    sleep.assert_called_once()
    assert len(provider._request_times) == 1


def test_backoff_is_exponential_and_capped() -> None:
    provider = _ConcreteProvider(provider_name="test")

    assert [provider.calculate_backoff_delay(n) for n in (1, 2, 3, 4)] == [1, 2, 4, 8]
    assert provider.calculate_backoff_delay(10) == 60.0


# ============================================================================
# Retry wrapper
# ============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
async def test_retry_recovers_from_transient_status(status: int) -> None:
    provider = _ConcreteProvider(provider_name="test", max_retries=3)
    func = AsyncMock(side_effect=[_status_error(status), {"ok": True}])

    with patch("medialedger.metadata.providers.base.anyio.sleep", AsyncMock()) as sleep:
        result = await provider._execute_with_retry(func, "search")

    assert result == {"ok": True}
    assert func.await_count == 2
    sleep.assert_awaited_once_with(1.0)


@pytest.mark.asyncio
async def test_retry_does_not_repeat_client_errors() -> None:
    provider = _ConcreteProvider(provider_name="test")
    func = AsyncMock(side_effect=_status_error(401))

    with pytest.raises(ProviderError, match="HTTP 401"):
        await provider._execute_with_retry(func, "search")

    assert func.await_count == 1


@pytest.mark.asyncio
async def test_retry_gives_up_on_persistent_rate_limit() -> None:
    provider = _ConcreteProvider(provider_name="test", max_retries=3)
    func = AsyncMock(side_effect=_status_error(429))

    with patch("medialedger.metadata.providers.base.anyio.sleep", AsyncMock()):
        with pytest.raises(RateLimitError) as exc_info:
            await provider._execute_with_retry(func, "search")

    assert func.await_count == 3
    assert isinstance(exc_info.value, LookupFailure)


@pytest.mark.asyncio
async def test_retry_on_timeouts_then_fails() -> None:
    provider = _ConcreteProvider(provider_name="test", max_retries=2)
    func = AsyncMock(side_effect=httpx.ReadTimeout("slow"))

    with patch("medialedger.metadata.providers.base.anyio.sleep", AsyncMock()):
        with pytest.raises(ProviderError, match="timed out"):
            await provider._execute_with_retry(func, "search")

    assert func.await_count == 2


@pytest.mark.asyncio
async def test_connection_errors_fail_immediately() -> None:
    provider = _ConcreteProvider(provider_name="test")
    func = AsyncMock(side_effect=httpx.ConnectError("refused"))

    with pytest.raises(ProviderError, match="unreachable"):
        await provider._execute_with_retry(func, "search")

    assert func.await_count == 1
