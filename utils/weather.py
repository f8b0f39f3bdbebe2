"""Weather payload normalization between provider-native and canonical shapes."""
import logging
from datetime import datetime
from typing import List, Optional, Sequence, TypeVar

from exceptions import InvalidInput
from models import (
    CanonicalHourlySample, CanonicalObservation, HourlyValues,
    PrimaryDataPoint, PrimaryForecastResponse, PrimaryLocation, PrimaryRealtimeResponse,
    PrimaryValues, RawForecastResponse, RawRealtimeResponse,
    SecondaryHourlyResponse, SecondaryRealtimeResponse,
)
from utils.timezones import get_zone, normalize_utc_iso, to_utc_iso

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNKNOWN_WEATHER_TEXT = "Unknown"

# Primary provider weather codes
WEATHER_CODES = {
    1000: "Clear",
    1100: "Mostly Clear",
    1101: "Partly Cloudy",
    1102: "Mostly Cloudy",
    1001: "Cloudy",
    2000: "Fog",
    2100: "Light Fog",
    3000: "Light Wind",
    3001: "Wind",
    3002: "Strong Wind",
    4000: "Drizzle",
    4200: "Light Rain",
    4001: "Rain",
    4201: "Heavy Rain",
    5000: "Snow",
    5100: "Light Snow",
    5001: "Flurries",
    5101: "Heavy Snow",
    6000: "Freezing Drizzle",
    6200: "Light Freezing Drizzle",
    6001: "Freezing Rain",
    7000: "Ice Pellets",
    7102: "Light Ice Pellets",
    7101: "Heavy Ice Pellets",
    8000: "Thunderstorm",
}


def code_to_text(code: Optional[int]) -> str:
    """Describe a primary provider weather code, or UNKNOWN_WEATHER_TEXT if unmapped."""
    return WEATHER_CODES.get(code, UNKNOWN_WEATHER_TEXT)


def meters_to_km(value: Optional[float]) -> Optional[float]:
    """Convert meters to kilometers rounded to one decimal; None stays None."""
    if value is None:
        return None
    return round(value / 1000, 1)


def _first_present(*values: Optional[T]) -> Optional[T]:
    for value in values:
        if value is not None:
            return value
    return None


def _at(seq: Sequence[Optional[T]], index: int) -> Optional[T]:
    return seq[index] if index < len(seq) else None


# Realtime

def normalize_primary_realtime(raw: PrimaryRealtimeResponse) -> CanonicalObservation:
    v = raw.data.values
    return CanonicalObservation(
        observed_at=raw.data.time,
        lat=raw.location.lat,
        lon=raw.location.lon,
        name=raw.location.name,
        temperature=v.temperature,
        apparent_temperature=v.temperature_apparent,
        humidity=v.humidity,
        wind_speed=v.wind_speed,
        wind_gust=v.wind_gust,
        wind_direction=v.wind_direction,
        pressure=v.pressure_surface_level,
        visibility_km=v.visibility,
        uv_index=v.uv_index,
        uv_health_concern=v.uv_health_concern,
        precipitation_intensity=_first_present(v.rain_intensity, v.precipitation_intensity, 0.0),
        precipitation_probability=v.precipitation_probability,
        cloud_cover=v.cloud_cover,
        weather_code=v.weather_code,
        weather_text=code_to_text(v.weather_code),
    )


def normalize_secondary_realtime(raw: SecondaryRealtimeResponse) -> CanonicalObservation:
    # Secondary weather codes use a different table, so no code is carried over
    c = raw.current
    return CanonicalObservation(
        observed_at=c.time,
        lat=raw.latitude,
        lon=raw.longitude,
        temperature=c.temperature_2m,
        apparent_temperature=c.apparent_temperature,
        humidity=c.relative_humidity_2m,
        wind_speed=c.wind_speed_10m,
        wind_gust=c.wind_gusts_10m,
        wind_direction=c.wind_direction_10m,
        visibility_km=meters_to_km(c.visibility),
        uv_index=c.uv_index,
        precipitation_intensity=_first_present(c.precipitation, 0.0),
        weather_text=code_to_text(None),
    )


def normalize_realtime(raw: RawRealtimeResponse) -> CanonicalObservation:
    """Map either provider's realtime response into a CanonicalObservation."""
    if isinstance(raw, PrimaryRealtimeResponse):
        return normalize_primary_realtime(raw)
    if isinstance(raw, SecondaryRealtimeResponse):
        return normalize_secondary_realtime(raw)
    raise TypeError(f"Unsupported realtime response: {type(raw).__name__}")


def denormalize_to_primary(obs: CanonicalObservation) -> PrimaryRealtimeResponse:
    """Wrap a canonical observation in the primary provider's realtime shape."""
    return PrimaryRealtimeResponse(
        data=PrimaryDataPoint(
            time=obs.observed_at,
            values=PrimaryValues(
                temperature=obs.temperature,
                temperature_apparent=obs.apparent_temperature,
                humidity=obs.humidity,
                wind_speed=obs.wind_speed,
                wind_gust=obs.wind_gust,
                wind_direction=obs.wind_direction,
                pressure_surface_level=obs.pressure,
                visibility=obs.visibility_km,
                uv_index=obs.uv_index,
                uv_health_concern=obs.uv_health_concern,
                precipitation_probability=obs.precipitation_probability,
                rain_intensity=obs.precipitation_intensity,
                cloud_cover=obs.cloud_cover,
                weather_code=obs.weather_code,
            ),
        ),
        location=PrimaryLocation(lat=obs.lat, lon=obs.lon, name=obs.name),
    )


# Hourly forecast

def normalize_primary_hourly(raw: PrimaryForecastResponse) -> List[CanonicalHourlySample]:
    samples = []
    for point in raw.timelines.hourly:
        if not point.time:
            continue
        try:
            time_utc = normalize_utc_iso(point.time)
        except InvalidInput:
            logger.warning(f"Skipping hourly row with unparsable time: {point.time!r}")
            continue
        v = point.values
        samples.append(CanonicalHourlySample(
            time=time_utc,
            values=HourlyValues(
                temperature=v.temperature,
                apparent_temperature=v.temperature_apparent,
                humidity=v.humidity,
                wind_speed=v.wind_speed,
                wind_gust=v.wind_gust,
                wind_direction=v.wind_direction,
                uv_index=v.uv_index,
                visibility_km=v.visibility,
                precipitation_probability=v.precipitation_probability,
                precipitation_mm=v.rain_accumulation,
                weather_code=v.weather_code,
            ),
        ))
    return samples


def normalize_secondary_hourly(raw: SecondaryHourlyResponse, tz_name: Optional[str] = None) -> List[CanonicalHourlySample]:
    """Build canonical samples from the secondary provider's column-oriented hourly series.

    Times arrive as local wall-clock in tz_name (or the response's own zone)
    and are converted to UTC. Missing precipitation means none fell and
    becomes 0; other missing fields stay None.
    """
    zone = get_zone(tz_name or raw.timezone or "UTC")
    h = raw.hourly
    samples = []
    for i, local_text in enumerate(h.time):
        try:
            local_time = datetime.fromisoformat(local_text)
        except ValueError:
            logger.warning(f"Skipping hourly row with unparsable time: {local_text!r}")
            continue
        if local_time.tzinfo is None:
            local_time = local_time.replace(tzinfo=zone)
        samples.append(CanonicalHourlySample(
            time=to_utc_iso(local_time),
            values=HourlyValues(
                temperature=_at(h.temperature_2m, i),
                apparent_temperature=_at(h.apparent_temperature, i),
                humidity=_at(h.relative_humidity_2m, i),
                wind_speed=_at(h.wind_speed_10m, i),
                wind_gust=_at(h.wind_gusts_10m, i),
                wind_direction=_at(h.wind_direction_10m, i),
                uv_index=_at(h.uv_index, i),
                visibility_km=meters_to_km(_at(h.visibility, i)),
                precipitation_probability=_first_present(_at(h.precipitation_probability, i), 0.0),
                precipitation_mm=_first_present(_at(h.rain, i), _at(h.precipitation, i), 0.0),
            ),
        ))
    return samples


def normalize_forecast(raw: RawForecastResponse, tz_name: Optional[str] = None) -> List[CanonicalHourlySample]:
    """Map either provider's forecast response into canonical hourly samples."""
    if isinstance(raw, PrimaryForecastResponse):
        return normalize_primary_hourly(raw)
    if isinstance(raw, SecondaryHourlyResponse):
        return normalize_secondary_hourly(raw, tz_name)
    raise TypeError(f"Unsupported forecast response: {type(raw).__name__}")
