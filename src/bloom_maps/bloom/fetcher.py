"""Daily series fetcher talking to the same-origin relay."""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

import httpx

from bloom_maps.bloom.errors import InvalidInput, NetworkError, UpstreamError
from bloom_maps.bloom.models import Coordinate, ParamId
from bloom_maps.config import DATA_YEAR, RELAY_BASE_URL

logger = logging.getLogger(__name__)

CLIMATE_PATH = "/fetch_climate"
NDVI_PATH = "/fetch_ndvi"

DailySeries = List[Optional[float]]


def default_date_range(year: int = DATA_YEAR) -> tuple[date, date]:
    """Return the Jan 1 - Oct 4 window used for every series."""
    return date(year, 1, 1), date(year, 10, 4)


def relay_path(parameter: ParamId) -> str:
    return NDVI_PATH if parameter.is_vegetation_index else CLIMATE_PATH


class DailySeriesFetcher:
    """Async client for daily series served by the relay endpoints."""

    def __init__(
        self,
        base_url: str = RELAY_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize the fetcher.

        Args:
            base_url: Origin the relay is served from
            transport: Optional httpx transport, e.g. an ASGI transport when
                the relay lives in the same process
        """
        self.base_url = base_url
        # The relay enforces the upstream timeout
        self.client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=None)

    async def fetch_daily(
        self,
        coordinate: Coordinate,
        parameters: Iterable[ParamId],
        start: Optional[date] = None,
        end: Optional[date] = None
    ) -> Dict[ParamId, DailySeries]:
        """Fetch daily series for a set of parameters.

        Parameters served by different relay endpoints are requested one
        endpoint at a time.

        Args:
            coordinate: Validated coordinate
            parameters: Parameters to fetch
            start: First day (defaults to Jan 1 of the data year)
            end: Last day, inclusive (defaults to Oct 4 of the data year)

        Returns:
            Mapping of parameter to daily values in date order

        Raises:
            InvalidInput: If start is after end or no parameters are given
            NetworkError: If the relay cannot be reached
            UpstreamError: If the relay reports a failure or a series is missing
        """
        default_start, default_end = default_date_range()
        start = start or default_start
        end = end or default_end
        if start > end:
            raise InvalidInput(f"Start date {start} is after end date {end}")

        requested = [ParamId(param) for param in parameters]
        if not requested:
            raise InvalidInput("At least one parameter is required")

        by_path: Dict[str, List[ParamId]] = {}
        for param in requested:
            by_path.setdefault(relay_path(param), []).append(param)

        series: Dict[ParamId, DailySeries] = {}
        for path, params in by_path.items():
            payload = await self._get(path, coordinate, start, end)
            series.update(self._extract_series(payload, params))
        return series

    async def _get(self, path: str, coordinate: Coordinate, start: date, end: date) -> dict:
        params = {
            "lat": coordinate.latitude,
            "lon": coordinate.longitude,
            "start": start.strftime("%Y%m%d"),
            "end": end.strftime("%Y%m%d"),
        }
        logger.info(f"Requesting {path} for lat={coordinate.latitude}, lon={coordinate.longitude}")

        try:
            response = await self.client.get(path, params=params)
        except httpx.RequestError as e:
            logger.error(f"Request error to relay {path}: {e}")
            raise NetworkError(f"Could not reach relay: {e}")

        if not response.is_success:
            message = self._error_message(response)
            logger.error(f"Relay {path} returned {response.status_code}: {message}")
            raise UpstreamError(message, status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Malformed relay payload from {path}: {e}")
            raise UpstreamError("Malformed payload from relay")

        if not isinstance(payload, dict):
            raise UpstreamError("Malformed payload from relay")
        return payload

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"Relay error {response.status_code}"
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"Relay error {response.status_code}"

    @staticmethod
    def _extract_series(payload: dict, params: List[ParamId]) -> Dict[ParamId, DailySeries]:
        properties = payload.get("properties")
        parameter_block = properties.get("parameter") if isinstance(properties, dict) else None
        if not isinstance(parameter_block, dict):
            raise UpstreamError("No data available")

        series = {}
        for param in params:
            by_day = parameter_block.get(param.value)
            if not isinstance(by_day, dict):
                raise UpstreamError(f"No {param.value} data")
            # YYYYMMDD keys sort chronologically
            series[param] = [by_day[day] for day in sorted(by_day)]
        return series

    async def aclose(self):
        """Close the async HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
