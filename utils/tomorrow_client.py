import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from cache_utils import WeatherCache, make_cache_key
from config import (
    TOMORROW_API_KEY, TOMORROW_BASE_URL, WEATHER_CACHE_TTL_SECONDS, WEATHER_MAX_RETRIES,
    WEATHER_BACKOFF_SECONDS, HTTP_TIMEOUT_PRIMARY, HTTP_USER_AGENT, DEFAULT_UNITS
)
from exceptions import ConfigurationError, UpstreamError, UpstreamUnavailable
from utils.http_client import get_json

logger = logging.getLogger(__name__)

REALTIME_PATH = "/v4/weather/realtime"
FORECAST_PATH = "/v4/weather/forecast"


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, UpstreamError) and exc.retryable


class TomorrowClient:
    """Primary weather provider client with caching, single-flight and bounded retries."""

    def __init__(
        self,
        cache: WeatherCache,
        api_key: Optional[str] = TOMORROW_API_KEY,
        base_url: str = TOMORROW_BASE_URL,
        ttl: float = WEATHER_CACHE_TTL_SECONDS,
        max_retries: int = WEATHER_MAX_RETRIES,
        backoff: float = WEATHER_BACKOFF_SECONDS,
        timeout: float = HTTP_TIMEOUT_PRIMARY,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.cache = cache
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.ttl = ttl
        self.max_retries = max(1, max_retries)
        self.backoff = backoff
        self.timeout = timeout
        self._client = http_client
        self._client_lock = asyncio.Lock()
        self._sleep = sleep

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None and not self._client.is_closed:
            return self._client
        async with self._client_lock:
            if self._client is None or self._client.is_closed:
                self._client = httpx.AsyncClient(
                    base_url=self.base_url,
                    timeout=self.timeout,
                    headers={"Accept-Encoding": "gzip, deflate", "User-Agent": HTTP_USER_AGENT},
                )
            return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def fetch_primary(self, path: str, params: Dict[str, Any], cache_key: str) -> Any:
        """Fetch a primary provider payload through the cache.

        A fresh cached payload is returned without an upstream call; concurrent
        callers for the same key share one fetch. When every retry fails with a
        retryable error, a stale cached payload is served if one exists.
        """
        return await self.cache.get_or_fetch(
            cache_key,
            lambda: self._fetch_with_retry(path, params),
            ttl=self.ttl,
            serve_stale_on=_is_retryable,
        )

    async def _fetch_with_retry(self, path: str, params: Dict[str, Any]) -> Any:
        last_error: Optional[UpstreamError] = None
        for attempt in range(self.max_retries):
            if not self.api_key:
                raise ConfigurationError("TOMORROW_API_KEY is not configured")
            client = await self._get_client()
            try:
                return await get_json(client, path, {**params, "apikey": self.api_key}, "Tomorrow.io")
            except UpstreamError as exc:
                if not exc.retryable:
                    raise
                last_error = exc
                if attempt + 1 >= self.max_retries:
                    break
                if exc.retry_after is not None:
                    delay = exc.retry_after
                else:
                    delay = self.backoff * (2 ** attempt)
                logger.warning(
                    f"Tomorrow.io {path} attempt {attempt + 1}/{self.max_retries} failed "
                    f"({exc.code}) – retrying in {delay:.2f}s"
                )
                await self._sleep(delay)

        logger.error(f"Tomorrow.io {path} failed after {self.max_retries} attempts: {last_error}")
        raise last_error or UpstreamUnavailable(f"Tomorrow.io {path} failed")

    async def get_realtime_raw(self, lat: float, lon: float, units: str = DEFAULT_UNITS) -> Any:
        key = make_cache_key("realtime", lat, lon, units)
        params = {"location": f"{lat},{lon}", "units": units}
        return await self.fetch_primary(REALTIME_PATH, params, key)

    async def get_forecast_raw(
        self,
        lat: float,
        lon: float,
        units: str = DEFAULT_UNITS,
        timesteps: str = "1h",
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
    ) -> Any:
        key = make_cache_key("forecast", lat, lon, units, timesteps, start_time, end_time)
        params = {"location": f"{lat},{lon}", "units": units, "timesteps": timesteps}
        if start_time:
            params["startTime"] = start_time
        if end_time:
            params["endTime"] = end_time
        return await self.fetch_primary(FORECAST_PATH, params, key)
