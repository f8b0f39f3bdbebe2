import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import httpx
import pytest

from cache_utils import CacheStore, WeatherCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays and advances a FakeClock."""

    def __init__(self, clock: FakeClock = None):
        self.delays = []
        self.clock = clock

    async def __call__(self, seconds: float):
        self.delays.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)


class RoutedTransport:
    """httpx.MockTransport wrapper that replays queued responses and records requests.

    Entries may be responses, exceptions to raise, or zero-argument callables
    building a fresh response per request.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.clock = None
        self.request_times = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.clock is not None:
            self.request_times.append(self.clock())
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if callable(response):
            response = response()
        if isinstance(response, Exception):
            raise response
        return response

    def client(self, base_url: str = "") -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), base_url=base_url)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def weather_cache(clock):
    return WeatherCache(default_ttl=300, store=CacheStore(clock=clock))


@pytest.fixture
def tomorrow_realtime_payload():
    return {
        "data": {
            "time": "2024-06-10T12:00:00Z",
            "values": {
                "temperature": 21.5,
                "temperatureApparent": 20.9,
                "humidity": 64,
                "windSpeed": 4.2,
                "windGust": 7.9,
                "windDirection": 230,
                "pressureSurfaceLevel": 1012.3,
                "visibility": 16,
                "uvIndex": 5,
                "uvHealthConcern": 1,
                "precipitationIntensity": 0.4,
                "precipitationProbability": 35,
                "cloudCover": 48,
                "weatherCode": 1101,
            },
        },
        "location": {"lat": 19.43, "lon": -99.13, "name": "Mexico City"},
    }


@pytest.fixture
def tomorrow_forecast_payload():
    return {
        "timelines": {
            "hourly": [
                {"time": "2024-06-10T09:00:00Z", "values": {"temperature": 12, "windSpeed": 3, "weatherCode": 1001, "rainAccumulation": 0.2}},
                {"time": "2024-06-10T07:00:00Z", "values": {"temperature": 10, "windSpeed": 2, "weatherCode": 1000, "rainAccumulation": 0}},
                {"time": "2024-06-10T08:00:00Z", "values": {"temperature": 15, "windSpeed": 6, "weatherCode": 1000, "rainAccumulation": 0.5}},
                {"time": "2024-06-10T20:00:00Z", "values": {"temperature": 30, "windSpeed": 20, "weatherCode": 8000}},
            ]
        },
        "location": {"lat": 19.43, "lon": -99.13},
    }


@pytest.fixture
def open_meteo_current_payload():
    return {
        "latitude": 19.42,
        "longitude": -99.12,
        "timezone": "America/Mexico_City",
        "current": {
            "time": "2024-06-10T06:00",
            "temperature_2m": 18.2,
            "apparent_temperature": 17.5,
            "relative_humidity_2m": 71,
            "wind_speed_10m": 2.5,
            "wind_gusts_10m": 5.1,
            "wind_direction_10m": 180,
            "uv_index": 0.0,
            "visibility": 24140.0,
            "precipitation": None,
        },
    }


@pytest.fixture
def open_meteo_hourly_payload():
    return {
        "latitude": 35.7,
        "longitude": 139.7,
        "timezone": "Asia/Tokyo",
        "hourly": {
            "time": ["2024-06-10T08:00", "2024-06-10T09:00", "2024-06-10T10:00"],
            "temperature_2m": [20.1, 22.4, None],
            "apparent_temperature": [19.8, 22.0, 23.1],
            "relative_humidity_2m": [80, 75, 70],
            "wind_speed_10m": [1.2, 3.4, 2.2],
            "wind_gusts_10m": [2.0, 6.1, 4.4],
            "wind_direction_10m": [90, 100, 110],
            "uv_index": [1.5, 3.0, 4.5],
            "visibility": [10000.0, 12345.0, None],
            "precipitation_probability": [10, None, 40],
            "rain": [None, 0.3, None],
            "precipitation": [None, 0.4, 1.1],
        },
    }


def corrupt_gzip_response() -> httpx.Response:
    """A 200 whose body does not match its gzip content-encoding."""
    return httpx.Response(
        200, headers={"content-encoding": "gzip"}, stream=httpx.ByteStream(b"not-gzip")
    )
