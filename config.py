"""Application configuration and environment variables."""
import os
import logging
from dotenv import load_dotenv

load_dotenv()

# Environment variables - strip whitespace/newlines from API keys
TOMORROW_API_KEY = os.getenv("TOMORROW_API_KEY", "").strip()
TOMORROW_BASE_URL = os.getenv("TOMORROW_BASE_URL", "https://api.tomorrow.io").strip()
OPEN_METEO_BASE_URL = os.getenv("OPEN_METEO_BASE_URL", "https://api.open-meteo.com/v1/forecast").strip()

# Environment and debug settings
ENVIRONMENT = os.getenv("ENVIRONMENT", os.getenv("ENV", "development")).lower()
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Prevent DEBUG mode in production
if ENVIRONMENT == "production" and DEBUG:
    logging.basicConfig(level=logging.INFO)
    logging.getLogger(__name__).error("❌ DEBUG mode cannot be enabled in production environment")
    raise ValueError("DEBUG=true is forbidden in production. Set ENVIRONMENT=production and DEBUG=false")

# Logging configuration
LOG_VERBOSITY = os.getenv("LOG_VERBOSITY", "normal").lower()  # "minimal", "normal", "verbose"

# Weather cache and retry configuration
WEATHER_CACHE_TTL_SECONDS = float(os.getenv("WEATHER_CACHE_TTL_SECONDS", "300"))  # 5 minutes
WEATHER_MAX_RETRIES = int(os.getenv("WEATHER_MAX_RETRIES", "3"))
WEATHER_BACKOFF_SECONDS = float(os.getenv("WEATHER_BACKOFF_SECONDS", "0.75"))
DEFAULT_UNITS = os.getenv("WEATHER_DEFAULT_UNITS", "metric").strip()

# HTTP timeout configuration
HTTP_TIMEOUT_PRIMARY = float(os.getenv("HTTP_TIMEOUT_PRIMARY", "10.0"))
HTTP_TIMEOUT_SECONDARY_REALTIME = float(os.getenv("HTTP_TIMEOUT_SECONDARY_REALTIME", "8.0"))
HTTP_TIMEOUT_SECONDARY_FORECAST = float(os.getenv("HTTP_TIMEOUT_SECONDARY_FORECAST", "10.0"))
HTTP_USER_AGENT = "skycare-weather"

# Schedule defaults used when the extracted schedule leaves fields empty
DEFAULT_START_LOCAL = "08:00"
DEFAULT_END_LOCAL = "17:00"
FALLBACK_TIMEZONE = "UTC"


def get_log_level() -> int:
    """Pick a logging level from DEBUG and LOG_VERBOSITY."""
    if LOG_VERBOSITY == "minimal":
        return logging.WARNING
    if DEBUG or LOG_VERBOSITY == "verbose":
        return logging.DEBUG
    return logging.INFO
