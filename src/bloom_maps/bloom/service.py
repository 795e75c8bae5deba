"""Bloom service: geocode, fetch and aggregate with demo fallback."""

import logging
from typing import Iterable, List, Optional, Tuple

from bloom_maps.bloom.aggregator import count_valid, seasonal_averages, synthesize_demo, to_monthly
from bloom_maps.bloom.errors import EmptySeries, InvalidInput, NetworkError
from bloom_maps.bloom.fetcher import DailySeriesFetcher
from bloom_maps.bloom.geocoding import GeocodingService
from bloom_maps.bloom.models import (
    CLIMATE_PARAMS, VEGETATION_PARAMS, ClimateSummary, Coordinate, Demo, Live,
    ParamId, Season, SeriesResult
)
from bloom_maps.config import DEMO_FALLBACK_LATITUDE

logger = logging.getLogger(__name__)


class BloomService:
    """Service tying the geocoder, the daily fetcher and the aggregator together."""

    def __init__(
        self,
        fetcher: Optional[DailySeriesFetcher] = None,
        geocoding_service: Optional[GeocodingService] = None
    ):
        """Initialize the bloom service.

        Args:
            fetcher: Daily series fetcher (creates default if None)
            geocoding_service: Geocoding service (creates default if None)
        """
        self.fetcher = fetcher or DailySeriesFetcher()
        self.geocoding_service = geocoding_service or GeocodingService()

    async def monthly_series(
        self,
        coordinate: Coordinate,
        parameters: Iterable[ParamId]
    ) -> SeriesResult:
        """
        Fetch daily series and reduce them to monthly buckets.

        Network, upstream and empty-series failures are not raised: the
        result degrades to demo data and carries the reason.

        Args:
            coordinate: Validated coordinate
            parameters: Parameters to fetch

        Returns:
            Live result, or Demo result with the failure reason
        """
        params: List[ParamId] = [ParamId(param) for param in parameters]
        try:
            daily = await self.fetcher.fetch_daily(coordinate, params)

            monthly = {}
            for param, values in daily.items():
                if count_valid(values) == 0:
                    raise EmptySeries(f"All {param.value} values invalid")
                monthly[param] = to_monthly(values, param)

            logger.info(f"Aggregated live series for {[p.value for p in params]}")
            return Live(data=monthly)

        except (NetworkError, EmptySeries) as e:
            logger.warning(f"Using demo data for ({coordinate.latitude}, {coordinate.longitude}): {e}")
            return Demo(data=synthesize_demo(coordinate.latitude, params), reason=str(e))

    async def ndvi_for_coordinate(self, lat: float, lon: float) -> Tuple[Coordinate, SeriesResult]:
        """
        Get monthly NDVI for raw coordinates.

        Args:
            lat: Latitude in decimal degrees
            lon: Longitude in decimal degrees

        Returns:
            Tuple of (validated coordinate, NDVI result)

        Raises:
            InvalidInput: If coordinates are out of range; nothing is fetched
        """
        coordinate = Coordinate.from_values(lat, lon)
        return coordinate, await self.monthly_series(coordinate, VEGETATION_PARAMS)

    async def climate_for_location(self, location: str, season: Season) -> ClimateSummary:
        """
        Get seasonal climate averages for a place name.

        Args:
            location: Free-text place name
            season: Season to average over

        Returns:
            ClimateSummary with averages and data provenance

        Raises:
            InvalidInput: If the name or season is invalid
            NotFound: If the place cannot be geocoded
        """
        try:
            season = Season(season)
        except ValueError:
            raise InvalidInput(f"Unknown season: {season}")

        try:
            coordinate = self.geocoding_service.geocode(location)
        except NetworkError as e:
            logger.warning(f"Geocoding failed for '{location}', using demo climate: {e}")
            result = Demo(
                data=synthesize_demo(DEMO_FALLBACK_LATITUDE, CLIMATE_PARAMS),
                reason=str(e)
            )
            return ClimateSummary(
                location=location,
                season=season,
                coordinate=None,
                averages=seasonal_averages(result.data, season),
                result=result
            )

        result = await self.monthly_series(coordinate, CLIMATE_PARAMS)
        return ClimateSummary(
            location=location,
            season=season,
            coordinate=coordinate,
            averages=seasonal_averages(result.data, season),
            result=result
        )

    async def aclose(self):
        """Close the fetcher."""
        if self.fetcher:
            try:
                await self.fetcher.aclose()
            except Exception as e:
                logger.error(f"Error closing daily series fetcher: {e}")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
