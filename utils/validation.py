"""Input validation for coordinates, dates and local times."""
import math
import re
from datetime import datetime
from typing import Any, Tuple

from exceptions import InvalidInput


def validate_coordinates(lat: Any, lon: Any) -> Tuple[float, float]:
    """Validate a latitude/longitude pair before any upstream call.

    Args:
        lat: Latitude (number or numeric string)
        lon: Longitude (number or numeric string)

    Returns:
        (lat, lon) as floats

    Raises:
        InvalidInput: If either value is non-numeric, non-finite or out of range
    """
    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError):
        raise InvalidInput(f"Coordinates must be numeric, got lat={lat!r} lon={lon!r}")

    if not (math.isfinite(lat_f) and math.isfinite(lon_f)):
        raise InvalidInput("Coordinates must be finite numbers")
    if not -90.0 <= lat_f <= 90.0:
        raise InvalidInput(f"Latitude out of range: {lat_f}")
    if not -180.0 <= lon_f <= 180.0:
        raise InvalidInput(f"Longitude out of range: {lon_f}")
    return lat_f, lon_f


def validate_date_format(date: str) -> str:
    """Validate a YYYY-MM-DD date string.

    Raises:
        InvalidInput: If the format or the calendar date is invalid
    """
    if not date or not isinstance(date, str):
        raise InvalidInput("Date must be a non-empty string")
    if not re.match(r'^\d{4}-\d{2}-\d{2}$', date):
        raise InvalidInput(f"Invalid date format. Must be YYYY-MM-DD, got: {date}")
    try:
        datetime.strptime(date, "%Y-%m-%d")
    except ValueError:
        raise InvalidInput(f"Invalid date: {date}")
    return date


def validate_local_time(value: str) -> str:
    """Validate an HH:MM wall-clock time string.

    Raises:
        InvalidInput: If the value is not a 24-hour HH:MM time
    """
    if not value or not isinstance(value, str) or not re.match(r'^\d{2}:\d{2}$', value):
        raise InvalidInput(f"Invalid time format. Must be HH:MM, got: {value}")
    hours, minutes = map(int, value.split(':'))
    if hours > 23 or minutes > 59:
        raise InvalidInput(f"Time out of range: {value}")
    return value
