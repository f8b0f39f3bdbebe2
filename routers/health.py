"""Health check and status endpoints."""
from datetime import datetime
from fastapi import APIRouter, Depends
from cache_utils import WeatherCache
from config import TOMORROW_API_KEY
from routers.dependencies import get_weather_cache

router = APIRouter()


@router.get("/health")
async def health_check():
    """Simple health check endpoint for load balancers."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@router.get("/health/detailed")
async def detailed_health_check(cache: WeatherCache = Depends(get_weather_cache)):
    """Cache metrics and provider configuration status."""
    return {
        "status": "healthy" if TOMORROW_API_KEY else "degraded",
        "timestamp": datetime.now().isoformat(),
        "checks": {
            "primary_credential": "configured" if TOMORROW_API_KEY else "missing",
            "cache": cache.get_metrics(),
        },
    }
