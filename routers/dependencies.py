"""Shared dependencies for routers."""
from typing import Optional
from cache_utils import WeatherCache
from utils.weather_data import WeatherService

# Global instances - will be set by main.py during app initialization
_weather_service: Optional[WeatherService] = None
_weather_cache: Optional[WeatherCache] = None


def get_weather_service() -> WeatherService:
    """Dependency to get the weather service."""
    if _weather_service is None:
        raise RuntimeError("Weather service not initialized. Ensure app is properly started.")
    return _weather_service


def get_weather_cache() -> WeatherCache:
    """Dependency to get the weather cache."""
    if _weather_cache is None:
        raise RuntimeError("Weather cache not initialized. Ensure app is properly started.")
    return _weather_cache


def initialize_dependencies(weather_service: WeatherService, weather_cache: WeatherCache):
    """Initialize shared dependencies. Called from main.py during app startup."""
    global _weather_service, _weather_cache
    _weather_service = weather_service
    _weather_cache = weather_cache
