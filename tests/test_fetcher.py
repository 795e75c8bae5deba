"""
Unit tests for the daily series fetcher.

Tests cover:
- Request construction and default date range
- Date ordering of series values
- Splitting mixed parameter sets across relay endpoints
- Relay failures, malformed payloads and transport errors
"""
from datetime import date

import httpx
import pytest
import respx
from unittest.mock import AsyncMock

from bloom_maps.bloom.errors import InvalidInput, NetworkError, UpstreamError
from bloom_maps.bloom.fetcher import DailySeriesFetcher, default_date_range, relay_path
from bloom_maps.bloom.models import Coordinate, ParamId

from conftest import power_payload

RELAY = "http://relay.test"
CLIMATE_URL = f"{RELAY}/fetch_climate"
NDVI_URL = f"{RELAY}/fetch_ndvi"

KYIV = Coordinate(latitude=50.45, longitude=30.52)


# ============================================================
# Helper Tests
# ============================================================

class TestHelpers:
    """Tests for module-level helpers."""

    def test_default_date_range(self):
        assert default_date_range(2023) == (date(2023, 1, 1), date(2023, 10, 4))

    def test_relay_path(self):
        assert relay_path(ParamId.NDVI) == "/fetch_ndvi"
        for param in [ParamId.T2M, ParamId.RH2M, ParamId.PRECTOTCORR, ParamId.WS10M]:
            assert relay_path(param) == "/fetch_climate"


# ============================================================
# Successful Fetch Tests
# ============================================================

class TestFetchDaily:
    """Tests for DailySeriesFetcher.fetch_daily."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_request_uses_default_range(self):
        route = respx.get(NDVI_URL).mock(
            return_value=httpx.Response(200, json=power_payload(NDVI=[0.1, 0.2]))
        )

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            await fetcher.fetch_daily(KYIV, [ParamId.NDVI])

        params = route.calls.last.request.url.params
        assert params["lat"] == "50.45"
        assert params["lon"] == "30.52"
        assert params["start"] == "20240101"
        assert params["end"] == "20241004"

    @pytest.mark.asyncio
    @respx.mock
    async def test_explicit_range(self):
        route = respx.get(NDVI_URL).mock(
            return_value=httpx.Response(200, json=power_payload(NDVI=[0.1]))
        )

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            await fetcher.fetch_daily(KYIV, [ParamId.NDVI], date(2022, 3, 1), date(2022, 3, 31))

        params = route.calls.last.request.url.params
        assert params["start"] == "20220301"
        assert params["end"] == "20220331"

    @pytest.mark.asyncio
    @respx.mock
    async def test_values_ordered_by_date(self):
        payload = {"properties": {"parameter": {"T2M": {
            "20240103": 3.0, "20240101": 1.0, "20240102": 2.0
        }}}}
        respx.get(CLIMATE_URL).mock(return_value=httpx.Response(200, json=payload))

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            series = await fetcher.fetch_daily(KYIV, [ParamId.T2M])

        assert series == {ParamId.T2M: [1.0, 2.0, 3.0]}

    @pytest.mark.asyncio
    @respx.mock
    async def test_sentinels_are_passed_through(self):
        respx.get(NDVI_URL).mock(
            return_value=httpx.Response(200, json=power_payload(NDVI=[0.4, -9999, None]))
        )

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            series = await fetcher.fetch_daily(KYIV, [ParamId.NDVI])

        assert series[ParamId.NDVI] == [0.4, -9999, None]

    @pytest.mark.asyncio
    @respx.mock
    async def test_climate_parameters_share_one_request(self, climate_payload):
        route = respx.get(CLIMATE_URL).mock(return_value=httpx.Response(200, json=climate_payload))

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            series = await fetcher.fetch_daily(
                KYIV, [ParamId.T2M, ParamId.RH2M, ParamId.PRECTOTCORR, ParamId.WS10M]
            )

        assert route.call_count == 1
        assert set(series) == {ParamId.T2M, ParamId.RH2M, ParamId.PRECTOTCORR, ParamId.WS10M}
        assert len(series[ParamId.WS10M]) == 100

    @pytest.mark.asyncio
    @respx.mock
    async def test_mixed_parameters_split_by_endpoint(self, climate_payload, ndvi_payload):
        climate_route = respx.get(CLIMATE_URL).mock(return_value=httpx.Response(200, json=climate_payload))
        ndvi_route = respx.get(NDVI_URL).mock(return_value=httpx.Response(200, json=ndvi_payload))

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            series = await fetcher.fetch_daily(KYIV, [ParamId.T2M, ParamId.NDVI])

        assert climate_route.call_count == 1
        assert ndvi_route.call_count == 1
        assert set(series) == {ParamId.T2M, ParamId.NDVI}

    @pytest.mark.asyncio
    @respx.mock
    async def test_accepts_parameter_names(self):
        respx.get(NDVI_URL).mock(return_value=httpx.Response(200, json=power_payload(NDVI=[0.3])))

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            series = await fetcher.fetch_daily(KYIV, ["NDVI"])

        assert series == {ParamId.NDVI: [0.3]}


# ============================================================
# Input Validation Tests
# ============================================================

class TestFetchDailyValidation:
    """Tests for arguments rejected before any request."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_start_after_end(self):
        route = respx.get(NDVI_URL)

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            with pytest.raises(InvalidInput):
                await fetcher.fetch_daily(KYIV, [ParamId.NDVI], date(2024, 5, 1), date(2024, 4, 1))

        assert not route.called

    @pytest.mark.asyncio
    async def test_no_parameters(self):
        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            with pytest.raises(InvalidInput):
                await fetcher.fetch_daily(KYIV, [])

    @pytest.mark.asyncio
    async def test_unknown_parameter(self):
        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            with pytest.raises(ValueError):
                await fetcher.fetch_daily(KYIV, ["EVI"])


# ============================================================
# Failure Tests
# ============================================================

class TestFetchDailyFailures:
    """Tests for relay and transport failures."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_relay_error_message_is_surfaced(self):
        respx.get(NDVI_URL).mock(
            return_value=httpx.Response(504, json={"error": "NASA POWER API timed out"})
        )

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            with pytest.raises(UpstreamError) as exc_info:
                await fetcher.fetch_daily(KYIV, [ParamId.NDVI])

        assert str(exc_info.value) == "NASA POWER API timed out"
        assert exc_info.value.status_code == 504

    @pytest.mark.asyncio
    @respx.mock
    async def test_error_without_json_body(self):
        respx.get(NDVI_URL).mock(return_value=httpx.Response(500, text="oops"))

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            with pytest.raises(UpstreamError) as exc_info:
                await fetcher.fetch_daily(KYIV, [ParamId.NDVI])

        assert str(exc_info.value) == "Relay error 500"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    @respx.mock
    @pytest.mark.parametrize("response", [
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
    ])
    async def test_malformed_payload(self, response):
        respx.get(NDVI_URL).mock(return_value=response)

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            with pytest.raises(UpstreamError, match="Malformed payload"):
                await fetcher.fetch_daily(KYIV, [ParamId.NDVI])

    @pytest.mark.asyncio
    @respx.mock
    @pytest.mark.parametrize("payload", [
        {},
        {"properties": None},
        {"properties": {"parameter": None}},
    ])
    async def test_missing_parameter_block(self, payload):
        respx.get(NDVI_URL).mock(return_value=httpx.Response(200, json=payload))

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            with pytest.raises(UpstreamError, match="No data available"):
                await fetcher.fetch_daily(KYIV, [ParamId.NDVI])

    @pytest.mark.asyncio
    @respx.mock
    async def test_requested_parameter_absent(self):
        respx.get(CLIMATE_URL).mock(
            return_value=httpx.Response(200, json=power_payload(T2M=[1.0]))
        )

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            with pytest.raises(UpstreamError, match="No RH2M data"):
                await fetcher.fetch_daily(KYIV, [ParamId.T2M, ParamId.RH2M])

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_is_network_error(self):
        respx.get(NDVI_URL).mock(side_effect=httpx.ConnectError)

        async with DailySeriesFetcher(base_url=RELAY) as fetcher:
            with pytest.raises(NetworkError) as exc_info:
                await fetcher.fetch_daily(KYIV, [ParamId.NDVI])

        assert not isinstance(exc_info.value, UpstreamError)

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self):
        fetcher = DailySeriesFetcher(base_url=RELAY)
        fetcher.aclose = AsyncMock()

        async with fetcher as ctx_fetcher:
            assert ctx_fetcher is fetcher

        fetcher.aclose.assert_awaited_once()
