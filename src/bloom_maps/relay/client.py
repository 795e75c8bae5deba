"""HTTP client for the NASA POWER daily point API."""

import logging
from typing import Any, Dict, Iterable

import httpx
from pydantic import ValidationError

from bloom_maps.config import POWER_API_BASE_URL, POWER_COMMUNITY, RELAY_TIMEOUT_SECONDS
from bloom_maps.relay.models import PowerDailyResponse

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Raised when a relay request cannot be served.

    Carries the HTTP status the relay answers with.
    """

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PowerClient:
    """Async client for fetching daily series from NASA POWER."""

    def __init__(
        self,
        base_url: str = POWER_API_BASE_URL,
        timeout: float = RELAY_TIMEOUT_SECONDS,
        community: str = POWER_COMMUNITY
    ):
        """Initialize the POWER client.

        Args:
            base_url: POWER daily point endpoint
            timeout: Upstream timeout in seconds
            community: POWER user community
        """
        self.base_url = base_url
        self.community = community
        self.client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def get_daily_point(
        self,
        lat: float,
        lon: float,
        start: str,
        end: str,
        parameters: Iterable[str]
    ) -> Dict[str, Any]:
        """Fetch a daily point series.

        Args:
            lat: Latitude in decimal degrees
            lon: Longitude in decimal degrees
            start: First day, YYYYMMDD
            end: Last day (inclusive), YYYYMMDD
            parameters: POWER parameter names

        Returns:
            Raw POWER payload

        Raises:
            RelayError: If the upstream call fails or the payload is malformed
        """
        params = {
            "parameters": ",".join(parameters),
            "community": self.community,
            "latitude": lat,
            "longitude": lon,
            "start": start,
            "end": end,
            "format": "JSON",
        }

        logger.info(f"Fetching POWER {params['parameters']} for lat={lat}, lon={lon}, {start}-{end}")

        try:
            response = await self.client.get(self.base_url, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout calling NASA POWER API: {e}")
            raise RelayError("NASA POWER API timed out", status_code=504)
        except httpx.RequestError as e:
            logger.error(f"Request error to NASA POWER API: {e}")
            raise RelayError("Failed to fetch data from NASA POWER API", status_code=502)

        if response.status_code != 200:
            logger.error(f"HTTP error from NASA POWER API: {response.status_code} - {response.text[:200]}")
            raise RelayError("Failed to fetch data from NASA POWER API", status_code=response.status_code)

        try:
            data = response.json()
            PowerDailyResponse(**data)
        except (ValueError, TypeError, ValidationError) as e:
            logger.error(f"Invalid NASA POWER response format: {e}")
            raise RelayError("Invalid response from NASA POWER API", status_code=502)

        return data

    async def aclose(self):
        """Close the async HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
