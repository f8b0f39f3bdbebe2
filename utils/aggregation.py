"""Forecast window aggregation and hourly sample selection."""
import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from models import CanonicalHourlySample, ForecastWindowSummary
from utils.timezones import parse_utc_iso

logger = logging.getLogger(__name__)

MS_TO_KMH = 3.6


def _ms_to_kmh(value: float) -> Optional[float]:
    """Convert m/s to km/h rounded to 1 decimal; zero means no wind was reported."""
    return round(value * MS_TO_KMH, 1) if value else None


def select_window(samples: Iterable[CanonicalHourlySample], start_iso: str, end_iso: str) -> List[CanonicalHourlySample]:
    """Return the samples whose time falls in [start_iso, end_iso], inclusive.

    Timestamps are compared as instants, so mixed offsets or suffixes are
    handled and provider ordering is not relied on. The result is sorted by time.
    """
    start = parse_utc_iso(start_iso)
    end = parse_utc_iso(end_iso)
    selected = []
    for sample in samples:
        t = parse_utc_iso(sample.time)
        if start <= t <= end:
            selected.append((t, sample))
    selected.sort(key=lambda pair: pair[0])
    return [sample for _, sample in selected]


def summarize_forecast_window(samples: Iterable[CanonicalHourlySample], start_iso: str, end_iso: str) -> ForecastWindowSummary:
    """Summarize hourly samples within [start_iso, end_iso].

    Returns ForecastWindowSummary(hours=0) with every other field None when no
    sample falls in range, including a reversed window (end before start).
    Missing values are skipped, never counted as zero.
    """
    selected = select_window(samples, start_iso, end_iso)
    if not selected:
        return ForecastWindowSummary(hours=0)

    temps = []
    visibilities = []
    wind_max = 0.0
    gust_max = 0.0
    uv_max = 0.0
    precip_prob_max = 0.0
    precip_total = 0.0
    codes = set()

    for sample in selected:
        v = sample.values
        if v.temperature is not None:
            temps.append(v.temperature)
        if v.wind_speed is not None:
            wind_max = max(wind_max, v.wind_speed)
        if v.wind_gust is not None:
            gust_max = max(gust_max, v.wind_gust)
        if v.uv_index is not None:
            uv_max = max(uv_max, v.uv_index)
        if v.visibility_km is not None:
            visibilities.append(v.visibility_km)
        if v.precipitation_probability is not None:
            precip_prob_max = max(precip_prob_max, v.precipitation_probability)
        if v.precipitation_mm is not None:
            precip_total += v.precipitation_mm
        if v.weather_code is not None:
            codes.add(v.weather_code)

    return ForecastWindowSummary(
        hours=len(selected),
        temp_min=min(temps) if temps else None,
        temp_max=max(temps) if temps else None,
        wind_max_ms=wind_max,
        wind_max_kmh=_ms_to_kmh(wind_max),
        gust_max_ms=gust_max,
        gust_max_kmh=_ms_to_kmh(gust_max),
        uv_max=uv_max,
        vis_min_km=min(visibilities) if visibilities else None,
        precip_prob_max=precip_prob_max,
        precip_mm_total=precip_total,
        codes=sorted(codes),
    )


def hourly_points_around(samples: Iterable[CanonicalHourlySample], target_iso: str, hours: int = 3) -> List[CanonicalHourlySample]:
    """Return the samples within +/- hours of target_iso, sorted by time."""
    target = parse_utc_iso(target_iso)
    span = timedelta(hours=hours)
    return select_window(samples, (target - span).isoformat(), (target + span).isoformat())
