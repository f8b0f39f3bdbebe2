"""Weather endpoints."""
import logging
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from models import CanonicalHourlySample, CanonicalObservation, FactsRequest, ForecastFacts, ForecastWindowSummary
from routers.dependencies import get_weather_service
from utils.aggregation import summarize_forecast_window
from utils.sanitization import sanitize_for_logging
from utils.weather_data import WeatherService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/weather", tags=["weather"])


class ForecastResponse(BaseModel):
    """Hourly forecast samples with an optional window summary."""
    hourly: List[CanonicalHourlySample] = Field(default_factory=list)
    summary: Optional[ForecastWindowSummary] = Field(None, description="Present when start and end are given")


@router.get("/realtime", response_model=CanonicalObservation)
async def get_realtime(
    lat: float = Query(..., description="Latitude"),
    lon: float = Query(..., description="Longitude"),
    units: Literal["metric", "imperial"] = Query("metric", description="Unit system"),
    service: WeatherService = Depends(get_weather_service),
):
    """Current conditions in the canonical shape."""
    return await service.get_realtime_observation(lat, lon, units)


@router.get("/forecast", response_model=ForecastResponse)
async def get_forecast(
    lat: float = Query(..., description="Latitude"),
    lon: float = Query(..., description="Longitude"),
    start: Optional[str] = Query(None, description="Window start, ISO-8601 UTC"),
    end: Optional[str] = Query(None, description="Window end, ISO-8601 UTC"),
    units: Literal["metric", "imperial"] = Query("metric", description="Unit system"),
    service: WeatherService = Depends(get_weather_service),
):
    """Hourly forecast, summarized when a full window is given."""
    logger.debug(f"Forecast requested for {lat},{lon} start={sanitize_for_logging(start)} end={sanitize_for_logging(end)}")
    samples = await service.get_forecast(lat, lon, units, "1h", start, end)
    summary = summarize_forecast_window(samples, start, end) if start and end else None
    return ForecastResponse(hourly=samples, summary=summary)


@router.post("/facts", response_model=ForecastFacts)
async def get_forecast_facts(
    request: FactsRequest,
    service: WeatherService = Depends(get_weather_service),
):
    """Forecast facts for a local work schedule."""
    return await service.forecast_facts_for_schedule(request.lat, request.lon, request.schedule, request.units)
