"""TMDB (The Movie Database) provider with dual auth.

Security:
- Supports both API key (query param) and Bearer token (header)
- Auto-detects auth method by token format
- Never exposes keys in logs/errors

Features:
- Movie and TV title search, optionally filtered by year
- TV search confirms the parsed episode exists before accepting a show
- Automatic retry/backoff via BaseProvider
"""

import os
from typing import Any

import httpx
import structlog

from medialedger.core.constants import (
    MAX_PROVIDER_RETRIES,
    PROVIDER_TIMEOUT,
    TMDB_API_URI,
    TMDB_RATE_LIMIT_PER_MINUTE,
)
from medialedger.core.schemas import CollectionType, EpisodeRecord, TitleRecord
from medialedger.metadata.providers.base import BaseProvider, ProviderError

logger = structlog.get_logger(__name__)


class TMDBProvider(BaseProvider):
    """TMDB provider for movies and TV with dual authentication support."""

    def __init__(self, base_url: str | None = None) -> None:
        """Initialize TMDB provider with auto-detected auth method.

        Args:
            base_url: API root; defaults to ``TMDB_API_URI`` from the
                environment, then the public endpoint
        """
        super().__init__(
            provider_name="TMDB",
            api_key_env_var="TMDB_API_KEY",
            rate_limit_per_minute=TMDB_RATE_LIMIT_PER_MINUTE,
            max_retries=MAX_PROVIDER_RETRIES,
        )
        self.base_url = (base_url or os.getenv("TMDB_API_URI") or TMDB_API_URI).rstrip(
            "/"
        )

        self._client: httpx.AsyncClient = httpx.AsyncClient(timeout=PROVIDER_TIMEOUT)

    def _get_auth(self) -> tuple[dict[str, str], dict[str, Any]]:
        """Get auth headers and params based on key format.

        Returns:
            (headers, params) tuple for httpx request
        """
        api_key = self.api_key
        if not api_key:
            raise ProviderError("auth", "TMDB API key not configured")

        # Detect Bearer token: starts with "eyJ" and length > 100
        is_bearer = api_key.startswith("eyJ") and len(api_key) > 100

        if is_bearer:
            return {"Authorization": f"Bearer {api_key}"}, {"language": "en-US"}
        return {}, {"api_key": api_key, "language": "en-US"}

    async def _get_json(
        self, path: str, operation: str, extra_params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """GET ``path`` and decode the JSON body.

        Returns:
            The payload, or None when TMDB answers 404
        """
        headers, params = self._get_auth()
        if extra_params:
            params.update(extra_params)

        await self.wait_for_rate_limit()

        async def _do_get() -> dict[str, Any] | None:
            try:
                response = await self._client.get(
                    f"{self.base_url}{path}", headers=headers, params=params
                )
                response.raise_for_status()
                data: dict[str, Any] = response.json()
                return data
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 404:
                    return None
                raise  # Let retry wrapper handle it

        return await self._execute_with_retry(_do_get, operation)

    async def search_movie(
        self, title: str, year: int | None = None
    ) -> list[dict[str, Any]]:
        """Search for movies by title and optional year."""
        params: dict[str, Any] = {"query": title}
        if year is not None:
            params["year"] = year

        data = await self._get_json("/search/movie", "search_movie", params)
        results = (data or {}).get("results", [])
        if not isinstance(results, list):
            return []
        return [dict(item) for item in results]

    async def search_tv(
        self, title: str, year: int | None = None
    ) -> list[dict[str, Any]]:
        """Search for television series by title and optional year."""
        params: dict[str, Any] = {"query": title}
        if year is not None:
            params["first_air_date_year"] = year

        data = await self._get_json("/search/tv", "search_tv", params)
        results = (data or {}).get("results", [])
        if not isinstance(results, list):
            return []
        return [dict(item) for item in results]

    async def get_episode(
        self, show_id: int, season: str | int, episode: str | int
    ) -> dict[str, Any] | None:
        """Fetch raw episode details, None when the episode does not exist."""
        return await self._get_json(
            f"/tv/{show_id}/season/{int(season)}/episode/{int(episode)}",
            "get_episode",
        )

    @staticmethod
    def _title_record(
        payload: dict[str, Any], collection_type: CollectionType
    ) -> TitleRecord:
        if collection_type == CollectionType.MOVIE:
            name = payload.get("title") or payload.get("name") or ""
            release_date = payload.get("release_date")
        else:
            name = payload.get("name") or payload.get("title") or ""
            release_date = payload.get("first_air_date")
        return TitleRecord(
            id=int(payload["id"]),
            name=name,
            release_date=release_date or None,
            description=payload.get("overview") or None,
        )

    async def lookup_by_title(
        self,
        collection_type: CollectionType,
        title: str,
        year: int | None = None,
        *,
        season: str | None = None,
        episode: str | None = None,
    ) -> TitleRecord:
        """Find the best TMDB match for a parsed title.

        Movies take the first search result. Shows take the first candidate
        that actually has the requested episode (when one is given).

        Raises:
            ProviderError: On API failure or when nothing matches
        """
        query = f"{title} ({year})" if year else title
        if collection_type == CollectionType.MOVIE:
            results = await self.search_movie(title, year)
            if not results:
                raise ProviderError(query, "no TMDB movie found", not_found=True)
            record = self._title_record(results[0], collection_type)
            logger.info("tmdb.movie_found", query=query, tmdb_id=record.id)
            return record

        results = await self.search_tv(title, year)
        if not results:
            raise ProviderError(query, "no TMDB show found", not_found=True)

        if season is None or episode is None:
            return self._title_record(results[0], collection_type)

        for candidate in results:
            show_id = int(candidate["id"])
            if await self.get_episode(show_id, season, episode) is not None:
                record = self._title_record(candidate, collection_type)
                logger.info("tmdb.show_found", query=query, tmdb_id=record.id)
                return record
            logger.debug("tmdb.episode_missing", show_id=show_id, season=season)

        raise ProviderError(
            f"{query} S{season}E{episode}",
            "no TMDB show has this episode",
            not_found=True,
        )

    async def lookup_by_id(
        self, tmdb_id: int, collection_type: CollectionType = CollectionType.MOVIE
    ) -> TitleRecord:
        """Fetch a movie (or show) directly by TMDB id."""
        kind = "movie" if collection_type == CollectionType.MOVIE else "tv"
        payload = await self._get_json(f"/{kind}/{tmdb_id}", f"get_{kind}")
        if payload is None:
            raise ProviderError(f"tmdb-{tmdb_id}", f"no TMDB {kind}", not_found=True)
        return self._title_record(payload, collection_type)

    async def lookup_episode(
        self, show_id: int, season: str | int, episode: str | int
    ) -> EpisodeRecord:
        """Fetch name and overview of one episode."""
        payload = await self.get_episode(show_id, season, episode)
        if payload is None:
            raise ProviderError(
                f"tv-{show_id} S{season}E{episode}", "episode not found", not_found=True
            )
        return EpisodeRecord(
            name=payload.get("name") or None,
            overview=payload.get("overview") or None,
            air_date=payload.get("air_date") or None,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "TMDBProvider":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit - close client."""
        await self.aclose()
