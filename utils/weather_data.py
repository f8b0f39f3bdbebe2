"""Weather data fetching: primary provider first, secondary provider on exhaustion."""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from pydantic import ValidationError

from cache_utils import WeatherCache
from config import DEFAULT_UNITS, FALLBACK_TIMEZONE, WEATHER_CACHE_TTL_SECONDS
from exceptions import AllProvidersExhausted, ConfigurationError, UpstreamError
from models import (
    CanonicalHourlySample, CanonicalObservation, ForecastFacts, PrimaryForecastResponse,
    PrimaryRealtimeResponse, Schedule,
)
from utils.aggregation import hourly_points_around, summarize_forecast_window
from utils.open_meteo_client import OpenMeteoClient
from utils.timezones import TimezoneResolver, normalize_utc_iso, to_utc_iso, utc_window_to_local
from utils.tomorrow_client import TomorrowClient
from utils.validation import validate_coordinates
from utils.weather import denormalize_to_primary, normalize_forecast, normalize_realtime, normalize_secondary_realtime

logger = logging.getLogger(__name__)

# Errors from the primary path that send a request to the secondary provider
PRIMARY_FAILURES = (UpstreamError, ConfigurationError, ValidationError)

POINTS_AROUND_START_HOURS = 3


class WeatherService:
    """Entry point for realtime and forecast data, shared by every caller."""

    def __init__(self, primary: TomorrowClient, secondary: OpenMeteoClient, resolver: TimezoneResolver):
        self.primary = primary
        self.secondary = secondary
        self.resolver = resolver

    async def close(self) -> None:
        await self.primary.close()
        await self.secondary.close()

    async def get_realtime(self, lat, lon, units: str = DEFAULT_UNITS) -> PrimaryRealtimeResponse:
        """Realtime conditions in the primary provider's shape.

        Falls back to the secondary provider when the primary path raises,
        wrapping its result in the primary shape.

        Raises:
            InvalidInput: Bad coordinates (no upstream call is made)
            AllProvidersExhausted: Both providers failed
        """
        lat, lon = validate_coordinates(lat, lon)
        try:
            raw = await self.primary.get_realtime_raw(lat, lon, units)
            return PrimaryRealtimeResponse.model_validate(raw)
        except PRIMARY_FAILURES as e:
            logger.warning(f"⚠️  Primary realtime failed for {lat},{lon} ({type(e).__name__}: {e}) – using Open-Meteo")

        try:
            fallback = await self.secondary.get_current(lat, lon)
        except (UpstreamError, ValidationError) as e:
            logger.error(f"❌ Open-Meteo realtime failed for {lat},{lon}: {e}")
            raise AllProvidersExhausted(f"No realtime weather available for {lat},{lon}") from e
        return denormalize_to_primary(normalize_secondary_realtime(fallback))

    async def get_realtime_observation(self, lat, lon, units: str = DEFAULT_UNITS) -> CanonicalObservation:
        return normalize_realtime(await self.get_realtime(lat, lon, units))

    async def get_forecast(
        self,
        lat,
        lon,
        units: str = DEFAULT_UNITS,
        timesteps: str = "1h",
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
    ) -> List[CanonicalHourlySample]:
        """Hourly forecast samples, optionally bounded by UTC start/end times.

        The secondary fallback reads the window in UTC; without explicit
        bounds it covers the next 24 hours.
        """
        lat, lon = validate_coordinates(lat, lon)
        if start_time:
            start_time = normalize_utc_iso(start_time)
        if end_time:
            end_time = normalize_utc_iso(end_time)

        try:
            return await self._primary_forecast(lat, lon, units, timesteps, start_time, end_time)
        except PRIMARY_FAILURES as e:
            logger.warning(f"⚠️  Primary forecast failed for {lat},{lon} ({type(e).__name__}: {e}) – using Open-Meteo")

        now = datetime.now(timezone.utc)
        start_time = start_time or to_utc_iso(now)
        end_time = end_time or to_utc_iso(now + timedelta(hours=24))
        start_local, end_local = utc_window_to_local(start_time, end_time, FALLBACK_TIMEZONE)
        return await self._secondary_forecast(lat, lon, start_local, end_local, FALLBACK_TIMEZONE)

    async def forecast_facts_for_schedule(self, lat, lon, schedule: Optional[Schedule] = None,
                                          units: str = DEFAULT_UNITS) -> ForecastFacts:
        """Resolve the schedule's UTC window, fetch the forecast and summarize it.

        The secondary fallback is queried in the schedule's own timezone so
        both local days of a window crossing midnight are covered.
        """
        lat, lon = validate_coordinates(lat, lon)
        window = self.resolver.local_window_to_utc(schedule or Schedule(), lat, lon)

        source = "primary"
        try:
            samples = await self._primary_forecast(lat, lon, units, "1h", window.start_utc, window.end_utc)
        except PRIMARY_FAILURES as e:
            logger.warning(f"⚠️  Primary forecast failed for schedule window ({type(e).__name__}: {e}) – using Open-Meteo")
            samples = await self._secondary_forecast(lat, lon, window.start_local, window.end_local, window.timezone)
            source = "secondary"

        summary = summarize_forecast_window(samples, window.start_utc, window.end_utc)
        logger.info(
            f"Forecast facts for {lat},{lon} {window.start_utc}..{window.end_utc} ({window.timezone}): "
            f"{summary.hours} hours from {source}"
        )
        return ForecastFacts(
            timezone=window.timezone,
            window=window,
            summary=summary,
            source=source,
            points=hourly_points_around(samples, window.start_utc, POINTS_AROUND_START_HOURS),
        )

    async def _primary_forecast(self, lat: float, lon: float, units: str, timesteps: str,
                                start_time: Optional[str], end_time: Optional[str]) -> List[CanonicalHourlySample]:
        raw = await self.primary.get_forecast_raw(lat, lon, units, timesteps, start_time, end_time)
        return normalize_forecast(PrimaryForecastResponse.model_validate(raw))

    async def _secondary_forecast(self, lat: float, lon: float, start_local: datetime, end_local: datetime,
                                  tz_name: str) -> List[CanonicalHourlySample]:
        try:
            return await self.secondary.get_forecast_window(lat, lon, start_local, end_local, tz_name)
        except (UpstreamError, ValidationError) as e:
            logger.error(f"❌ Open-Meteo forecast failed for {lat},{lon}: {e}")
            raise AllProvidersExhausted(f"No forecast available for {lat},{lon}") from e


def create_weather_service(cache: Optional[WeatherCache] = None) -> Tuple[WeatherService, WeatherCache]:
    """Build a WeatherService and the WeatherCache it uses, from config defaults."""
    cache = cache if cache is not None else WeatherCache(default_ttl=WEATHER_CACHE_TTL_SECONDS)
    service = WeatherService(
        primary=TomorrowClient(cache),
        secondary=OpenMeteoClient(),
        resolver=TimezoneResolver(),
    )
    return service, cache
