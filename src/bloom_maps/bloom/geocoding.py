"""Geocoding service for place name lookups."""

import logging
from functools import lru_cache
from typing import Optional

from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeocoderUnavailable, GeopyError
from geopy.geocoders import Nominatim

from bloom_maps.bloom.errors import InvalidInput, NetworkError, NotFound
from bloom_maps.bloom.models import Coordinate
from bloom_maps.config import GEOCODING_TIMEOUT_SECONDS, GEOCODING_USER_AGENT

logger = logging.getLogger(__name__)


class GeocodingService:
    """Resolves free-text place names to coordinates via Nominatim."""

    def __init__(self, geolocator: Optional[Nominatim] = None):
        """Initialize the geocoding service.

        Args:
            geolocator: geopy geocoder instance (creates Nominatim if None)
        """
        # Reuse instance for performance
        self.geolocator = geolocator or Nominatim(
            user_agent=GEOCODING_USER_AGENT,
            timeout=GEOCODING_TIMEOUT_SECONDS
        )
        logger.info("GeocodingService initialized with Nominatim")

    def geocode(self, name: str) -> Coordinate:
        """Convert a place name to coordinates.

        Only the first match is used.

        Args:
            name: Free-text place name

        Returns:
            Coordinate of the first match

        Raises:
            InvalidInput: If the name is empty
            NotFound: If the lookup returns no match
            NetworkError: If the lookup service fails or returns garbage
        """
        if name is None or not name.strip():
            raise InvalidInput("Select a location from the list")
        return self._geocode(name.strip())

    @lru_cache(maxsize=1000)
    def _geocode(self, name: str) -> Coordinate:
        try:
            logger.info(f"Geocoding location: {name}")
            location = self.geolocator.geocode(name, exactly_one=True)
        except (GeocoderUnavailable, GeocoderTimedOut) as e:
            logger.error(f"Geocoding service unavailable for '{name}': {e}")
            raise NetworkError("Geocoding service temporarily unavailable")
        except (GeocoderServiceError, GeopyError) as e:
            logger.error(f"Geocoding failed for '{name}': {e}")
            raise NetworkError(f"Failed to geocode location: {e}")

        if not location:
            logger.info(f"No geocoding match for '{name}'")
            raise NotFound(f"Could not find the location '{name}'")

        try:
            coordinate = Coordinate.from_values(location.latitude, location.longitude)
        except InvalidInput as e:
            logger.error(f"Geocoder returned unusable coordinates for '{name}': {e}")
            raise NetworkError(f"Geocoder returned invalid coordinates for '{name}'")

        logger.info(f"Successfully geocoded '{name}' to ({coordinate.latitude}, {coordinate.longitude})")
        return coordinate
