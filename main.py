# Standard library imports
import logging
from contextlib import asynccontextmanager

# Third-party imports
from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables before importing routers
load_dotenv()

from config import DEBUG, TOMORROW_API_KEY, get_log_level
from exceptions import register_exception_handlers
from routers.dependencies import initialize_dependencies
from routers.health import router as health_router
from routers.weather import router as weather_router
from utils.weather_data import create_weather_service

logging.basicConfig(
    level=get_log_level(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),  # Console output
        logging.FileHandler('weather.log') if DEBUG else logging.NullHandler()
    ]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    # Startup
    weather_service, weather_cache = create_weather_service()
    initialize_dependencies(weather_service, weather_cache)
    if not TOMORROW_API_KEY:
        logger.warning("⚠️  TOMORROW_API_KEY not set – realtime and forecast requests will use Open-Meteo")
    logger.info("🚀 Weather service started")

    yield

    # Shutdown
    await weather_service.close()
    logger.info("🛑 Weather service stopped")


app = FastAPI(title="Weather Acquisition API", lifespan=lifespan)

# Register exception handlers from exceptions module
register_exception_handlers(app)

# Include all routers
app.include_router(health_router)
app.include_router(weather_router)


# For local testing
if __name__ == "__main__":
    import os
    import uvicorn
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("main:app", host="0.0.0.0", port=port)
