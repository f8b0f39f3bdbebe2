"""Timezone resolution and local schedule -> UTC window conversion."""
import logging
from datetime import date as dt_date, datetime, time as dt_time, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from timezonefinder import TimezoneFinder

from config import DEFAULT_START_LOCAL, DEFAULT_END_LOCAL, FALLBACK_TIMEZONE
from exceptions import InvalidInput
from models import ResolvedWindow, Schedule
from utils.validation import validate_date_format, validate_local_time

logger = logging.getLogger(__name__)

UTC_ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def to_utc_iso(value: datetime) -> str:
    """Format an aware datetime as fixed-width UTC (YYYY-MM-DDTHH:MM:SSZ). Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(UTC_ISO_FORMAT)


def parse_utc_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing 'Z', explicit offsets, or no offset (read as UTC).

    Raises:
        InvalidInput: If the string is not ISO-8601
    """
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise InvalidInput(f"Invalid ISO-8601 timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_utc_iso(value: str) -> str:
    """Rewrite any ISO-8601 timestamp into the fixed UTC format."""
    return to_utc_iso(parse_utc_iso(value))


def get_zone(tz_name: str) -> ZoneInfo:
    """Load an IANA zone.

    Raises:
        InvalidInput: If the zone name is unknown
    """
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidInput(f"Unknown timezone: {tz_name}")


class TimezoneResolver:
    """Resolve IANA zones from coordinates, preferring an explicit zone."""

    def __init__(self, finder: Optional[TimezoneFinder] = None, fallback: str = FALLBACK_TIMEZONE):
        self._finder = finder
        self.fallback = fallback

    @property
    def finder(self) -> TimezoneFinder:
        # TimezoneFinder loads its polygon data on construction
        if self._finder is None:
            self._finder = TimezoneFinder()
        return self._finder

    def resolve(self, lat: float, lon: float, explicit_zone: Optional[str] = None) -> str:
        """Return a zone id for the coordinates. Never raises.

        The explicit zone wins when given; otherwise the zone containing the
        coordinates is used, falling back to UTC when none is found.
        """
        if explicit_zone:
            return explicit_zone
        try:
            zone = self.finder.timezone_at(lng=float(lon), lat=float(lat))
        except Exception as e:
            logger.warning(f"Timezone lookup failed for {lat},{lon}: {e}")
            return self.fallback
        if not zone:
            logger.debug(f"No timezone found for {lat},{lon}, using {self.fallback}")
            return self.fallback
        return zone

    def local_window_to_utc(self, schedule: Schedule, lat: float, lon: float,
                            today: Optional[dt_date] = None) -> ResolvedWindow:
        """Convert a schedule's local wall-clock window into UTC instants.

        Empty schedule fields use the defaults (08:00-17:00, today in the
        resolved zone). A window whose UTC end precedes its start is returned
        as-is.

        Raises:
            InvalidInput: If the date, times or explicit zone are invalid
        """
        tz_name = self.resolve(lat, lon, schedule.timezone_override)
        zone = get_zone(tz_name)

        start_text = validate_local_time(schedule.start_local or DEFAULT_START_LOCAL)
        end_text = validate_local_time(schedule.end_local or DEFAULT_END_LOCAL)
        if schedule.date:
            day = datetime.strptime(validate_date_format(schedule.date), "%Y-%m-%d").date()
        else:
            day = today or datetime.now(zone).date()

        start_local = datetime.combine(day, _parse_hhmm(start_text), tzinfo=zone)
        end_local = datetime.combine(day, _parse_hhmm(end_text), tzinfo=zone)

        window = ResolvedWindow(
            timezone=tz_name,
            start_utc=to_utc_iso(start_local),
            end_utc=to_utc_iso(end_local),
            start_local=start_local,
            end_local=end_local,
        )
        if window.end_utc < window.start_utc:
            logger.warning(
                f"Resolved window ends before it starts ({window.start_utc} > {window.end_utc}) in {tz_name}"
            )
        return window


def utc_window_to_local(start_iso: str, end_iso: str, tz_name: str) -> Tuple[datetime, datetime]:
    """Express a UTC window in a local zone."""
    zone = get_zone(tz_name)
    return parse_utc_iso(start_iso).astimezone(zone), parse_utc_iso(end_iso).astimezone(zone)


def _parse_hhmm(value: str) -> dt_time:
    hours, minutes = map(int, value.split(":"))
    return dt_time(hours, minutes)
