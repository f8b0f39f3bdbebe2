"""Open-Meteo fallback client (no credential, different native schema)."""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional

import httpx

from config import (
    OPEN_METEO_BASE_URL, HTTP_TIMEOUT_SECONDARY_REALTIME, HTTP_TIMEOUT_SECONDARY_FORECAST, HTTP_USER_AGENT
)
from models import CanonicalHourlySample, SecondaryHourlyResponse, SecondaryRealtimeResponse
from utils.http_client import get_json
from utils.weather import normalize_forecast

logger = logging.getLogger(__name__)

CURRENT_FIELDS = [
    "temperature_2m", "apparent_temperature", "relative_humidity_2m",
    "wind_speed_10m", "wind_gusts_10m", "wind_direction_10m",
    "uv_index", "visibility", "precipitation",
]
HOURLY_FIELDS = [
    "temperature_2m", "apparent_temperature", "relative_humidity_2m",
    "wind_speed_10m", "wind_gusts_10m", "wind_direction_10m",
    "uv_index", "visibility", "precipitation_probability",
    "rain", "precipitation",
]


class OpenMeteoClient:
    """Secondary weather provider, queried only after the primary path fails."""

    def __init__(
        self,
        base_url: str = OPEN_METEO_BASE_URL,
        realtime_timeout: float = HTTP_TIMEOUT_SECONDARY_REALTIME,
        forecast_timeout: float = HTTP_TIMEOUT_SECONDARY_FORECAST,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url
        self.realtime_timeout = realtime_timeout
        self.forecast_timeout = forecast_timeout
        self._client = http_client
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None and not self._client.is_closed:
            return self._client
        async with self._client_lock:
            if self._client is None or self._client.is_closed:
                self._client = httpx.AsyncClient(
                    timeout=self.forecast_timeout,
                    headers={"User-Agent": HTTP_USER_AGENT},
                )
            return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def get_current(self, lat: float, lon: float) -> SecondaryRealtimeResponse:
        """Fetch current conditions (wind in m/s, visibility in meters)."""
        client = await self._get_client()
        params = {
            "latitude": lat,
            "longitude": lon,
            "current": ",".join(CURRENT_FIELDS),
            "wind_speed_unit": "ms",
            "timezone": "auto",
        }
        data = await get_json(client, self.base_url, params, "Open-Meteo", timeout=self.realtime_timeout)
        return SecondaryRealtimeResponse.model_validate(data)

    async def get_hourly(self, lat: float, lon: float, start_day: str, end_day: str, tz_name: str) -> SecondaryHourlyResponse:
        """Fetch the hourly series for the local days start_day..end_day (YYYY-MM-DD) in tz_name."""
        client = await self._get_client()
        params = {
            "latitude": lat,
            "longitude": lon,
            "timezone": tz_name,
            "hourly": ",".join(HOURLY_FIELDS),
            "start_date": start_day,
            "end_date": end_day,
            "wind_speed_unit": "ms",
        }
        data = await get_json(client, self.base_url, params, "Open-Meteo")
        return SecondaryHourlyResponse.model_validate(data)

    async def get_forecast_window(
        self, lat: float, lon: float, start_local: datetime, end_local: datetime, tz_name: str
    ) -> List[CanonicalHourlySample]:
        """Fetch canonical hourly samples covering the local start and end days.

        Both calendar days are requested so a window crossing midnight is
        covered; rows are merged by UTC time.
        """
        days = sorted({start_local.date().isoformat(), end_local.date().isoformat()})
        raw = await self.get_hourly(lat, lon, days[0], days[-1], tz_name)
        merged = {}
        for sample in normalize_forecast(raw, tz_name):
            merged[sample.time] = sample
        logger.info(f"Open-Meteo returned {len(merged)} hourly rows for {days[0]}..{days[-1]} ({tz_name})")
        return [merged[t] for t in sorted(merged)]
