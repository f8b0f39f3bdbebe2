"""
Tests for WeatherService.

Tests cover:
- Coordinate rejection before any network call
- Primary -> secondary fallback for realtime and forecast
- Both providers failing
- Forecast facts for a local schedule
"""

from unittest.mock import AsyncMock

import httpx
import pytest

from exceptions import AllProvidersExhausted, InvalidInput, UpstreamServerError
from models import (
    CanonicalHourlySample, HourlyValues, PrimaryRealtimeResponse, Schedule,
    SecondaryRealtimeResponse,
)
from utils.open_meteo_client import OpenMeteoClient
from utils.timezones import TimezoneResolver
from utils.tomorrow_client import TomorrowClient
from utils.weather_data import WeatherService
from conftest import RecordingSleep, RoutedTransport, corrupt_gzip_response


class FixedFinder:
    def __init__(self, zone):
        self.zone = zone

    def timezone_at(self, lng, lat):
        return self.zone


def make_service(primary=None, secondary=None, zone="UTC"):
    if primary is None:
        primary = AsyncMock()
    if secondary is None:
        secondary = AsyncMock()
    return WeatherService(primary, secondary, TimezoneResolver(finder=FixedFinder(zone)))


def failing_tomorrow_client(weather_cache, status=503):
    transport = RoutedTransport(httpx.Response(status))
    client = TomorrowClient(
        weather_cache,
        api_key="test_key",
        base_url="https://api.tomorrow.io",
        max_retries=3,
        backoff=0.75,
        http_client=transport.client("https://api.tomorrow.io"),
        sleep=RecordingSleep(),
    )
    return client, transport


class TestCoordinateValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("lat,lon", [(91, 0), (0, 181), (-90.5, 10), ("abc", 0), (float("nan"), 0)])
    async def test_rejected_before_any_call(self, lat, lon):
        primary, secondary = AsyncMock(), AsyncMock()
        service = make_service(primary, secondary)

        with pytest.raises(InvalidInput):
            await service.get_realtime(lat, lon)
        with pytest.raises(InvalidInput):
            await service.get_forecast(lat, lon)
        with pytest.raises(InvalidInput):
            await service.forecast_facts_for_schedule(lat, lon, Schedule(date="2024-06-10"))

        primary.get_realtime_raw.assert_not_called()
        primary.get_forecast_raw.assert_not_called()
        secondary.get_current.assert_not_called()
        secondary.get_forecast_window.assert_not_called()

    @pytest.mark.asyncio
    async def test_boundary_values_accepted(self, tomorrow_realtime_payload):
        primary = AsyncMock()
        primary.get_realtime_raw.return_value = tomorrow_realtime_payload
        service = make_service(primary)

        await service.get_realtime(90, -180)

        primary.get_realtime_raw.assert_awaited_once_with(90.0, -180.0, "metric")


class TestRealtime:
    @pytest.mark.asyncio
    async def test_primary_success_skips_secondary(self, tomorrow_realtime_payload):
        primary, secondary = AsyncMock(), AsyncMock()
        primary.get_realtime_raw.return_value = tomorrow_realtime_payload
        service = make_service(primary, secondary)

        result = await service.get_realtime(19.43, -99.13)

        assert isinstance(result, PrimaryRealtimeResponse)
        assert result.data.values.temperature == 21.5
        secondary.get_current.assert_not_called()

    @pytest.mark.asyncio
    async def test_exhausted_primary_queries_secondary_once(self, weather_cache, open_meteo_current_payload):
        primary, transport = failing_tomorrow_client(weather_cache)
        secondary = AsyncMock()
        secondary.get_current.return_value = SecondaryRealtimeResponse.model_validate(open_meteo_current_payload)
        service = make_service(primary, secondary)

        result = await service.get_realtime(19.42, -99.12)

        assert len(transport.requests) == 3
        secondary.get_current.assert_awaited_once_with(19.42, -99.12)
        # Wrapped in the primary shape
        assert isinstance(result, PrimaryRealtimeResponse)
        assert result.data.values.temperature == 18.2
        assert result.data.values.visibility == 24.1

        observation = await service.get_realtime_observation(19.42, -99.12)
        assert observation.temperature == 18.2
        assert observation.precipitation_intensity == 0

    @pytest.mark.asyncio
    async def test_missing_credential_uses_secondary(self, weather_cache, open_meteo_current_payload):
        transport = RoutedTransport(httpx.Response(200, json={}))
        primary = TomorrowClient(weather_cache, api_key="", http_client=transport.client())
        secondary = AsyncMock()
        secondary.get_current.return_value = SecondaryRealtimeResponse.model_validate(open_meteo_current_payload)
        service = make_service(primary, secondary)

        result = await service.get_realtime(19.42, -99.12)

        assert transport.requests == []
        assert result.data.values.humidity == 71

    @pytest.mark.asyncio
    async def test_both_providers_failing(self, weather_cache):
        primary, _ = failing_tomorrow_client(weather_cache)
        secondary = AsyncMock()
        secondary.get_current.side_effect = UpstreamServerError("down", status=500)
        service = make_service(primary, secondary)

        with pytest.raises(AllProvidersExhausted) as exc_info:
            await service.get_realtime(19.42, -99.12)

        assert exc_info.value.status_code == 503
        secondary.get_current.assert_awaited_once()


class TestForecast:
    @pytest.mark.asyncio
    async def test_primary_forecast_normalized(self, tomorrow_forecast_payload):
        primary = AsyncMock()
        primary.get_forecast_raw.return_value = tomorrow_forecast_payload
        service = make_service(primary)

        samples = await service.get_forecast(19.43, -99.13, start_time="2024-06-10T09:00:00+02:00")

        primary.get_forecast_raw.assert_awaited_once_with(
            19.43, -99.13, "metric", "1h", "2024-06-10T07:00:00Z", None
        )
        assert len(samples) == 4
        assert all(s.time.endswith("Z") for s in samples)

    @pytest.mark.asyncio
    async def test_fallback_reads_window_in_utc(self):
        primary, secondary = AsyncMock(), AsyncMock()
        primary.get_forecast_raw.side_effect = UpstreamServerError("down", status=503)
        secondary.get_forecast_window.return_value = []
        service = make_service(primary, secondary)

        await service.get_forecast(10, 10, start_time="2024-06-10T22:00:00Z", end_time="2024-06-11T02:00:00Z")

        args = secondary.get_forecast_window.await_args.args
        assert args[0:2] == (10.0, 10.0)
        assert args[2].isoformat() == "2024-06-10T22:00:00+00:00"
        assert args[3].isoformat() == "2024-06-11T02:00:00+00:00"
        assert args[4] == "UTC"

    @pytest.mark.asyncio
    async def test_fallback_failure_raises_exhausted(self):
        primary, secondary = AsyncMock(), AsyncMock()
        primary.get_forecast_raw.side_effect = UpstreamServerError("down", status=503)
        secondary.get_forecast_window.side_effect = UpstreamServerError("also down", status=502)
        service = make_service(primary, secondary)

        with pytest.raises(AllProvidersExhausted):
            await service.get_forecast(10, 10)


class TestForecastFacts:
    @pytest.mark.asyncio
    async def test_facts_from_primary(self, tomorrow_forecast_payload):
        primary = AsyncMock()
        primary.get_forecast_raw.return_value = tomorrow_forecast_payload
        service = make_service(primary, zone="UTC")

        facts = await service.forecast_facts_for_schedule(
            19.43, -99.13, Schedule(date="2024-06-10", start_local="07:00", end_local="09:00")
        )

        primary.get_forecast_raw.assert_awaited_once_with(
            19.43, -99.13, "metric", "1h", "2024-06-10T07:00:00Z", "2024-06-10T09:00:00Z"
        )
        assert facts.source == "primary"
        assert facts.timezone == "UTC"
        assert facts.summary.hours == 3
        assert facts.summary.temp_min == 10
        assert facts.summary.temp_max == 15
        assert facts.summary.wind_max_kmh == 21.6
        assert facts.summary.precip_mm_total == pytest.approx(0.7)
        assert facts.summary.codes == [1000, 1001]
        assert [p.time for p in facts.points][0] == "2024-06-10T07:00:00Z"

    @pytest.mark.asyncio
    async def test_facts_via_secondary_in_local_zone(self):
        primary, secondary = AsyncMock(), AsyncMock()
        primary.get_forecast_raw.side_effect = UpstreamServerError("down", status=500)
        secondary.get_forecast_window.return_value = [
            CanonicalHourlySample(time="2024-06-09T23:00:00Z", values=HourlyValues(temperature=20, wind_speed=1)),
            CanonicalHourlySample(time="2024-06-10T03:00:00Z", values=HourlyValues(temperature=26, wind_speed=4)),
            CanonicalHourlySample(time="2024-06-10T09:00:00Z", values=HourlyValues(temperature=30, wind_speed=9)),
        ]
        service = make_service(primary, secondary, zone="Asia/Tokyo")

        facts = await service.forecast_facts_for_schedule(
            35.68, 139.69, Schedule(date="2024-06-10", start_local="08:00", end_local="17:00")
        )

        args = secondary.get_forecast_window.await_args.args
        assert args[4] == "Asia/Tokyo"
        assert args[2].hour == 8
        assert facts.source == "secondary"
        assert facts.window.start_utc == "2024-06-09T23:00:00Z"
        assert facts.summary.hours == 2
        assert facts.summary.temp_max == 26

    @pytest.mark.asyncio
    async def test_facts_when_both_fail(self):
        primary, secondary = AsyncMock(), AsyncMock()
        primary.get_forecast_raw.side_effect = UpstreamServerError("down", status=500)
        secondary.get_forecast_window.side_effect = UpstreamServerError("down", status=500)
        service = make_service(primary, secondary)

        with pytest.raises(AllProvidersExhausted):
            await service.forecast_facts_for_schedule(1, 1, Schedule(date="2024-06-10"))


class TestRequestErrors:
    @pytest.mark.asyncio
    async def test_corrupt_primary_body_falls_back(self, weather_cache, open_meteo_current_payload):
        primary_transport = RoutedTransport(corrupt_gzip_response)
        primary = TomorrowClient(
            weather_cache,
            api_key="test_key",
            base_url="https://api.tomorrow.io",
            http_client=primary_transport.client("https://api.tomorrow.io"),
            sleep=RecordingSleep(),
        )
        secondary_transport = RoutedTransport(httpx.Response(200, json=open_meteo_current_payload))
        secondary = OpenMeteoClient(http_client=secondary_transport.client())
        service = make_service(primary, secondary)

        observation = await service.get_realtime_observation(1, 2)

        assert len(primary_transport.requests) == 3
        assert len(secondary_transport.requests) == 1
        assert observation.temperature == 18.2

    @pytest.mark.asyncio
    async def test_corrupt_secondary_body_is_exhaustion(self, weather_cache):
        primary, _ = failing_tomorrow_client(weather_cache)
        secondary_transport = RoutedTransport(corrupt_gzip_response)
        secondary = OpenMeteoClient(http_client=secondary_transport.client())
        service = make_service(primary, secondary)

        with pytest.raises(AllProvidersExhausted):
            await service.get_realtime(1, 2)

    @pytest.mark.asyncio
    async def test_redirect_loop_in_forecast_fallback_is_exhaustion(self):
        primary = AsyncMock()
        primary.get_forecast_raw.side_effect = UpstreamServerError("down", status=503)
        secondary_transport = RoutedTransport(httpx.TooManyRedirects("redirect loop"))
        secondary = OpenMeteoClient(http_client=secondary_transport.client())
        service = make_service(primary, secondary)

        with pytest.raises(AllProvidersExhausted):
            await service.forecast_facts_for_schedule(1, 2, Schedule(date="2024-06-10"))
