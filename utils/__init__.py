"""Utility functions and weather clients for the application."""
from .sanitization import sanitize_url, sanitize_params, sanitize_for_logging
from .validation import validate_coordinates, validate_date_format, validate_local_time
from .timezones import TimezoneResolver, to_utc_iso, parse_utc_iso, normalize_utc_iso, utc_window_to_local
from .weather import (
    code_to_text, normalize_realtime, normalize_primary_realtime, normalize_secondary_realtime,
    denormalize_to_primary, normalize_forecast, normalize_primary_hourly, normalize_secondary_hourly
)
from .aggregation import summarize_forecast_window, select_window, hourly_points_around
from .tomorrow_client import TomorrowClient
from .open_meteo_client import OpenMeteoClient
from .weather_data import WeatherService, create_weather_service

__all__ = [
    "sanitize_url",
    "sanitize_params",
    "sanitize_for_logging",
    "validate_coordinates",
    "validate_date_format",
    "validate_local_time",
    "TimezoneResolver",
    "to_utc_iso",
    "parse_utc_iso",
    "normalize_utc_iso",
    "utc_window_to_local",
    "code_to_text",
    "normalize_realtime",
    "normalize_primary_realtime",
    "normalize_secondary_realtime",
    "denormalize_to_primary",
    "normalize_forecast",
    "normalize_primary_hourly",
    "normalize_secondary_hourly",
    "summarize_forecast_window",
    "select_window",
    "hourly_points_around",
    "TomorrowClient",
    "OpenMeteoClient",
    "WeatherService",
    "create_weather_service",
]
