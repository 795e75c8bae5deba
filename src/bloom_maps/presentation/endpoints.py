"""API endpoints driving the map page."""

import logging
from typing import AsyncGenerator, Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from bloom_maps.bloom.geocoding import GeocodingService
from bloom_maps.bloom.fetcher import DailySeriesFetcher
from bloom_maps.bloom.models import Season
from bloom_maps.bloom.service import BloomService
from bloom_maps.presentation.commands import (
    AddLocation, CommandResult, DeleteLocation, ExportCsv, SelectLocation,
    ShowClimate, ShowMap, dispatch
)
from bloom_maps.presentation.render import ClimateTable, CsvExport, MapView
from bloom_maps.presentation.state import LocationStore, get_location_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["bloom"])

# In-process origin for relay calls made through the ASGI transport
SAME_ORIGIN = "http://bloom-maps.local"

_geocoding_service: Optional[GeocodingService] = None


def get_geocoding_service() -> GeocodingService:
    """Dependency returning a shared geocoding service so lookups stay memoized."""
    global _geocoding_service
    if _geocoding_service is None:
        _geocoding_service = GeocodingService()
    return _geocoding_service


async def get_bloom_service(
    request: Request,
    geocoding_service: GeocodingService = Depends(get_geocoding_service)
) -> AsyncGenerator[BloomService, None]:
    """Dependency building a bloom service whose fetcher calls this app's relay."""
    fetcher = DailySeriesFetcher(
        base_url=SAME_ORIGIN,
        transport=httpx.ASGITransport(app=request.app)
    )
    async with BloomService(fetcher=fetcher, geocoding_service=geocoding_service) as service:
        yield service


async def run_command(store: LocationStore, command, service: BloomService) -> CommandResult:
    async with store.lock:
        result = await dispatch(store.state, command, service)
        store.commit(result.state)
    return result


@router.get("/locations", response_model=MapView)
async def list_locations(
    store: LocationStore = Depends(get_location_store),
    service: BloomService = Depends(get_bloom_service)
):
    """Render all saved locations as map markers."""
    result = await run_command(store, ShowMap(), service)
    return result.render


@router.post("/locations", response_model=MapView)
async def add_location(
    command: AddLocation,
    store: LocationStore = Depends(get_location_store),
    service: BloomService = Depends(get_bloom_service)
):
    """Add a location and fetch its NDVI series (demo data on upstream failure).

    Raises:
        InvalidInput: If coordinates are missing or out of range
    """
    result = await run_command(store, command, service)
    return result.render


@router.get("/locations/export.csv")
async def export_locations(
    store: LocationStore = Depends(get_location_store),
    service: BloomService = Depends(get_bloom_service)
) -> Response:
    """Download every saved location's monthly NDVI as CSV."""
    result = await run_command(store, ExportCsv(), service)
    export: CsvExport = result.render
    return Response(
        content=export.content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'}
    )


@router.delete("/locations/{index}", response_model=MapView)
async def delete_location(
    index: int,
    store: LocationStore = Depends(get_location_store),
    service: BloomService = Depends(get_bloom_service)
):
    """Remove the saved location at a position."""
    result = await run_command(store, DeleteLocation(index=index), service)
    return result.render


@router.get("/locations/{index}/chart", response_model=MapView)
async def select_location(
    index: int,
    store: LocationStore = Depends(get_location_store),
    service: BloomService = Depends(get_bloom_service)
):
    """Render the map with the chart switched to one location."""
    result = await run_command(store, SelectLocation(index=index), service)
    return result.render


@router.get("/climate", response_model=ClimateTable)
async def climate(
    location: str = Query(..., description="Place name to geocode"),
    season: Season = Query(Season.SPRING, description="Season to average over"),
    store: LocationStore = Depends(get_location_store),
    service: BloomService = Depends(get_bloom_service)
):
    """Seasonal climate averages for a place.

    Raises:
        InvalidInput: If the place name is empty
        NotFound: If the place cannot be geocoded
    """
    result = await run_command(store, ShowClimate(location=location, season=season), service)
    logger.info(f"Climate for '{location}' in {season.value}: {result.render.status.provenance} data")
    return result.render
