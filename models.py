"""Pydantic models for weather payloads, canonical shapes and API responses."""
from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# Canonical shapes shared by every provider
class CanonicalObservation(BaseModel):
    """Single-instant weather snapshot. None means the provider did not report the field."""
    observed_at: Optional[str] = Field(None, description="Observation time as reported by the provider")
    lat: Optional[float] = Field(None, description="Latitude")
    lon: Optional[float] = Field(None, description="Longitude")
    name: Optional[str] = Field(None, description="Location name, if the provider resolved one")
    temperature: Optional[float] = Field(None, description="Air temperature")
    apparent_temperature: Optional[float] = Field(None, description="Feels-like temperature")
    humidity: Optional[float] = Field(None, description="Relative humidity (%)")
    wind_speed: Optional[float] = Field(None, description="Wind speed (m/s)")
    wind_gust: Optional[float] = Field(None, description="Wind gust (m/s)")
    wind_direction: Optional[float] = Field(None, description="Wind direction (degrees)")
    pressure: Optional[float] = Field(None, description="Surface pressure (hPa)")
    visibility_km: Optional[float] = Field(None, description="Visibility (km)")
    uv_index: Optional[float] = Field(None, description="UV index")
    uv_health_concern: Optional[float] = Field(None, description="UV health concern level")
    precipitation_intensity: Optional[float] = Field(None, description="Precipitation intensity (mm/h)")
    precipitation_probability: Optional[float] = Field(None, description="Precipitation probability (%)")
    cloud_cover: Optional[float] = Field(None, description="Cloud cover (%)")
    weather_code: Optional[int] = Field(None, description="Primary provider weather code")
    weather_text: Optional[str] = Field(None, description="Human-readable weather description")


class HourlyValues(BaseModel):
    """Per-hour subset of the canonical observation fields."""
    temperature: Optional[float] = None
    apparent_temperature: Optional[float] = None
    humidity: Optional[float] = None
    wind_speed: Optional[float] = None
    wind_gust: Optional[float] = None
    wind_direction: Optional[float] = None
    uv_index: Optional[float] = None
    visibility_km: Optional[float] = None
    precipitation_probability: Optional[float] = None
    precipitation_mm: Optional[float] = None
    weather_code: Optional[int] = None


class CanonicalHourlySample(BaseModel):
    """One hourly forecast row keyed by a fixed-format UTC timestamp (YYYY-MM-DDTHH:MM:SSZ)."""
    time: str = Field(..., description="UTC timestamp")
    values: HourlyValues = Field(default_factory=HourlyValues)


class ForecastWindowSummary(BaseModel):
    """Summary statistics over a forecast window. hours == 0 means no samples fell in range."""
    hours: int = Field(0, description="Number of hourly samples in the window")
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    wind_max_ms: Optional[float] = None
    wind_max_kmh: Optional[float] = None
    gust_max_ms: Optional[float] = None
    gust_max_kmh: Optional[float] = None
    uv_max: Optional[float] = None
    vis_min_km: Optional[float] = None
    precip_prob_max: Optional[float] = None
    precip_mm_total: Optional[float] = None
    codes: Optional[List[int]] = Field(None, description="Distinct weather codes seen in the window")


# Schedules and windows
class Schedule(BaseModel):
    """Work schedule produced by the schedule-extraction service. Empty fields fall back to defaults."""
    activity: Optional[str] = Field(None, description="Activity label")
    date: Optional[str] = Field(None, description="Local date in YYYY-MM-DD format")
    start_local: Optional[str] = Field(None, description="Local start time HH:MM")
    end_local: Optional[str] = Field(None, description="Local end time HH:MM")
    timezone_override: Optional[str] = Field(None, description="IANA timezone that wins over coordinate lookup")


class ResolvedWindow(BaseModel):
    """A local schedule converted into absolute UTC instants."""
    timezone: str = Field(..., description="IANA timezone used for the conversion")
    start_utc: str = Field(..., description="Window start, UTC")
    end_utc: str = Field(..., description="Window end, UTC")
    start_local: datetime = Field(..., description="Window start in the local timezone")
    end_local: datetime = Field(..., description="Window end in the local timezone")


class ForecastFacts(BaseModel):
    """Aggregated forecast facts for a schedule, handed to the recommendation service."""
    timezone: str
    window: ResolvedWindow
    summary: ForecastWindowSummary
    source: Literal["primary", "secondary"] = "primary"
    points: List[CanonicalHourlySample] = Field(default_factory=list, description="Hourly samples around the window start")


# Primary provider (Tomorrow.io) native shapes
class PrimaryValues(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    temperature: Optional[float] = None
    temperature_apparent: Optional[float] = Field(None, alias="temperatureApparent")
    humidity: Optional[float] = None
    wind_speed: Optional[float] = Field(None, alias="windSpeed")
    wind_gust: Optional[float] = Field(None, alias="windGust")
    wind_direction: Optional[float] = Field(None, alias="windDirection")
    pressure_surface_level: Optional[float] = Field(None, alias="pressureSurfaceLevel")
    visibility: Optional[float] = None
    uv_index: Optional[float] = Field(None, alias="uvIndex")
    uv_health_concern: Optional[float] = Field(None, alias="uvHealthConcern")
    rain_intensity: Optional[float] = Field(None, alias="rainIntensity")
    precipitation_intensity: Optional[float] = Field(None, alias="precipitationIntensity")
    precipitation_probability: Optional[float] = Field(None, alias="precipitationProbability")
    rain_accumulation: Optional[float] = Field(None, alias="rainAccumulation")
    cloud_cover: Optional[float] = Field(None, alias="cloudCover")
    weather_code: Optional[int] = Field(None, alias="weatherCode")


class PrimaryLocation(BaseModel):
    lat: Optional[float] = None
    lon: Optional[float] = None
    name: Optional[str] = None


class PrimaryDataPoint(BaseModel):
    time: Optional[str] = None
    values: PrimaryValues = Field(default_factory=PrimaryValues)


class PrimaryRealtimeResponse(BaseModel):
    provider: Literal["primary"] = "primary"
    data: PrimaryDataPoint = Field(default_factory=PrimaryDataPoint)
    location: PrimaryLocation = Field(default_factory=PrimaryLocation)


class PrimaryTimelines(BaseModel):
    hourly: List[PrimaryDataPoint] = Field(default_factory=list)


class PrimaryForecastResponse(BaseModel):
    provider: Literal["primary"] = "primary"
    timelines: PrimaryTimelines = Field(default_factory=PrimaryTimelines)
    location: PrimaryLocation = Field(default_factory=PrimaryLocation)


# Secondary provider (Open-Meteo) native shapes
class SecondaryCurrent(BaseModel):
    time: Optional[str] = None
    temperature_2m: Optional[float] = None
    apparent_temperature: Optional[float] = None
    relative_humidity_2m: Optional[float] = None
    wind_speed_10m: Optional[float] = None
    wind_gusts_10m: Optional[float] = None
    wind_direction_10m: Optional[float] = None
    uv_index: Optional[float] = None
    visibility: Optional[float] = Field(None, description="Visibility in meters")
    precipitation: Optional[float] = None
    weather_code: Optional[int] = None


class SecondaryRealtimeResponse(BaseModel):
    provider: Literal["secondary"] = "secondary"
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    current: SecondaryCurrent = Field(default_factory=SecondaryCurrent)


class SecondaryHourly(BaseModel):
    time: List[str] = Field(default_factory=list)
    temperature_2m: List[Optional[float]] = Field(default_factory=list)
    apparent_temperature: List[Optional[float]] = Field(default_factory=list)
    relative_humidity_2m: List[Optional[float]] = Field(default_factory=list)
    wind_speed_10m: List[Optional[float]] = Field(default_factory=list)
    wind_gusts_10m: List[Optional[float]] = Field(default_factory=list)
    wind_direction_10m: List[Optional[float]] = Field(default_factory=list)
    uv_index: List[Optional[float]] = Field(default_factory=list)
    visibility: List[Optional[float]] = Field(default_factory=list)
    precipitation_probability: List[Optional[float]] = Field(default_factory=list)
    rain: List[Optional[float]] = Field(default_factory=list)
    precipitation: List[Optional[float]] = Field(default_factory=list)


class SecondaryHourlyResponse(BaseModel):
    provider: Literal["secondary"] = "secondary"
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None
    hourly: SecondaryHourly = Field(default_factory=SecondaryHourly)


RawRealtimeResponse = Annotated[
    Union[PrimaryRealtimeResponse, SecondaryRealtimeResponse],
    Field(discriminator="provider"),
]
RawForecastResponse = Annotated[
    Union[PrimaryForecastResponse, SecondaryHourlyResponse],
    Field(discriminator="provider"),
]


# API request/response models
class FactsRequest(BaseModel):
    """Request body for schedule forecast facts."""
    lat: float = Field(..., description="Latitude")
    lon: float = Field(..., description="Longitude")
    schedule: Schedule = Field(default_factory=Schedule)
    units: Literal["metric", "imperial"] = Field("metric", description="Unit system")


class ErrorResponse(BaseModel):
    """Standardized error response format for consistent API error handling."""
    error: str = Field(..., description="Error type or code")
    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Error code for programmatic handling")
    details: Optional[Union[List[Dict], Dict, str]] = Field(None, description="Additional error details")
    path: Optional[str] = Field(None, description="Request path where error occurred")
    method: Optional[str] = Field(None, description="HTTP method")
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat(),
                           description="Error timestamp")
