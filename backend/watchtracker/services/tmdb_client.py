"""
TMDB client for watchtracker.
- Async httpx client, one short-lived connection per request.
- Auth: v4 read token from settings, else the v3 API key stored in Redis.
- Every request draws from the shared Redis quota and backs off on 429.
- No in-module caching; change feeds must always be fresh.
"""
import logging
from typing import Dict, Optional, Protocol

import httpx

from watchtracker.core.config import settings
from watchtracker.core.redis_client import get_redis
from watchtracker.schemas import ChangesResponse
from watchtracker.services.rate_limit import with_backoff

logger = logging.getLogger(__name__)

TMDB_QUOTA_SERVICE = "tmdb_api"


class ChangeCatalog(Protocol):
    """What the change checkers need from the external catalog."""

    async def get_show_changes(self, show_id: int, start_date: str, end_date: str) -> ChangesResponse: ...

    async def get_movie_changes(self, movie_id: int, start_date: str, end_date: str) -> ChangesResponse: ...

    async def get_season_changes(self, season_id: int, start_date: str, end_date: str) -> ChangesResponse: ...

    async def get_show_details(self, show_id: int) -> Dict: ...

    async def get_movie_details(self, movie_id: int) -> Dict: ...

    async def get_season_details(self, show_id: int, season_number: int) -> Dict: ...


async def get_tmdb_api_key() -> Optional[str]:
    """Read TMDB API key from Redis-backed settings."""
    r = get_redis()
    return await r.get("settings:global:tmdb_api_key")


class TMDBClient:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: int = 4,
        quota_service: Optional[str] = TMDB_QUOTA_SERVICE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token if token is not None else settings.tmdb_token
        self.base_url = (base_url or settings.tmdb_base_url).rstrip("/")
        self.timeout = timeout or settings.tmdb_timeout_seconds
        self.max_retries = max_retries
        self.quota_service = quota_service
        self._transport = transport

    async def _auth(self) -> tuple[Dict[str, str], Dict[str, str]]:
        headers = {"accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
            return headers, {}
        api_key = await get_tmdb_api_key()
        if not api_key:
            raise RuntimeError("TMDB API key not configured")
        return headers, {"api_key": api_key}

    async def _get(self, path: str, params: Optional[Dict] = None) -> Dict:
        headers, auth_params = await self._auth()
        query = {**auth_params, **(params or {})}
        url = f"{self.base_url}/{path.lstrip('/')}"

        async def make_request():
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url, params=query, headers=headers)
                resp.raise_for_status()
                return resp.json()

        return await with_backoff(make_request, max_retries=self.max_retries, service=self.quota_service)

    async def _changes(self, path: str, start_date: str, end_date: str) -> ChangesResponse:
        data = await self._get(path, {"start_date": start_date, "end_date": end_date})
        return ChangesResponse.model_validate(data or {})

    async def get_show_changes(self, show_id: int, start_date: str, end_date: str) -> ChangesResponse:
        return await self._changes(f"tv/{show_id}/changes", start_date, end_date)

    async def get_movie_changes(self, movie_id: int, start_date: str, end_date: str) -> ChangesResponse:
        return await self._changes(f"movie/{movie_id}/changes", start_date, end_date)

    async def get_season_changes(self, season_id: int, start_date: str, end_date: str) -> ChangesResponse:
        return await self._changes(f"tv/season/{season_id}/changes", start_date, end_date)

    async def get_show_details(self, show_id: int) -> Dict:
        return await self._get(f"tv/{show_id}", {"append_to_response": "content_ratings,watch/providers"})

    async def get_movie_details(self, movie_id: int) -> Dict:
        return await self._get(
            f"movie/{movie_id}",
            {"append_to_response": "release_dates,watch/providers", "language": "en-US"},
        )

    async def get_season_details(self, show_id: int, season_number: int) -> Dict:
        return await self._get(f"tv/{show_id}/season/{season_number}")
