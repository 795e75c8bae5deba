"""Same-origin relay endpoints forwarding to NASA POWER."""

import logging
from datetime import datetime
from typing import Iterable

from fastapi import APIRouter, Query
from fastapi_cache.decorator import cache

from bloom_maps.bloom.errors import InvalidInput
from bloom_maps.bloom.models import CLIMATE_PARAMS, VEGETATION_PARAMS, Coordinate, ParamId
from bloom_maps.config import CACHE_EXPIRE_SECONDS, DEFAULT_END, DEFAULT_START
from bloom_maps.relay.client import PowerClient, RelayError
from bloom_maps.relay.models import RelayErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])

DATE_FORMAT = "%Y%m%d"

ERROR_RESPONSES = {
    400: {"model": RelayErrorResponse, "description": "Invalid coordinates or dates"},
    502: {"model": RelayErrorResponse, "description": "Upstream failure"},
    504: {"model": RelayErrorResponse, "description": "Upstream timeout"},
}


def get_power_client() -> PowerClient:
    """Dependency to get a POWER client instance."""
    return PowerClient()


def validate_relay_parameters(lat: float, lon: float, start: str, end: str) -> Coordinate:
    """
    Validate relay query parameters before contacting upstream.

    Args:
        lat: Latitude in decimal degrees
        lon: Longitude in decimal degrees
        start: First day, YYYYMMDD
        end: Last day, YYYYMMDD

    Returns:
        Validated coordinate

    Raises:
        RelayError: With status 400 if any parameter is invalid
    """
    try:
        coordinate = Coordinate.from_values(lat, lon)
    except InvalidInput:
        raise RelayError("Invalid coordinates", status_code=400)

    try:
        start_date = datetime.strptime(start, DATE_FORMAT)
        end_date = datetime.strptime(end, DATE_FORMAT)
    except ValueError:
        raise RelayError("Invalid date, expected YYYYMMDD", status_code=400)

    if start_date > end_date:
        raise RelayError("Start date must not be after end date", status_code=400)

    return coordinate


async def relay_daily(
    lat: float,
    lon: float,
    start: str,
    end: str,
    parameters: Iterable[ParamId]
) -> dict:
    """Validate, then forward to POWER."""
    coordinate = validate_relay_parameters(lat, lon, start, end)

    async with get_power_client() as client:
        payload = await client.get_daily_point(
            coordinate.latitude,
            coordinate.longitude,
            start,
            end,
            [param.value for param in parameters]
        )

    return payload


@router.get("/fetch_climate", responses=ERROR_RESPONSES)
@cache(expire=CACHE_EXPIRE_SECONDS)
async def fetch_climate(
    lat: float = Query(..., description="Latitude in decimal degrees"),
    lon: float = Query(..., description="Longitude in decimal degrees"),
    start: str = Query(DEFAULT_START, description="First day, YYYYMMDD"),
    end: str = Query(DEFAULT_END, description="Last day (inclusive), YYYYMMDD")
) -> dict:
    """Relay daily temperature, humidity, precipitation and wind series.

    Returns:
        Upstream POWER payload

    Raises:
        RelayError: Rendered as `{"error": ...}` with a non-2xx status
    """
    return await relay_daily(lat, lon, start, end, CLIMATE_PARAMS)


@router.get("/fetch_ndvi", responses=ERROR_RESPONSES)
@cache(expire=CACHE_EXPIRE_SECONDS)
async def fetch_ndvi(
    lat: float = Query(..., description="Latitude in decimal degrees"),
    lon: float = Query(..., description="Longitude in decimal degrees"),
    start: str = Query(DEFAULT_START, description="First day, YYYYMMDD"),
    end: str = Query(DEFAULT_END, description="Last day (inclusive), YYYYMMDD")
) -> dict:
    """Relay the daily NDVI series."""
    return await relay_daily(lat, lon, start, end, VEGETATION_PARAMS)
