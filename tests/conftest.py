"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- Sample POWER payloads
- Saved-location state on a temporary file
- Fake geocoding service
- FastAPI test client wired to the fakes
"""
import os

# Must be set before bloom_maps.config is imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("DATA_YEAR", "2024")

from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from fastapi_cache import FastAPICache
from fastapi_cache.backends.inmemory import InMemoryBackend

from bloom_maps.bloom.geocoding import GeocodingService
from bloom_maps.bloom.models import Coordinate, SavedLocation
from bloom_maps.config import POWER_API_BASE_URL
from bloom_maps.main import app
from bloom_maps.presentation.endpoints import get_geocoding_service
from bloom_maps.presentation.state import LocationStorage, LocationStore, get_location_store

POWER_URL = POWER_API_BASE_URL


# ============================================================
# Sample Data Helpers
# ============================================================

def daily_dict(values, start: date = date(2024, 1, 1)) -> dict:
    """Key a list of daily values by consecutive YYYYMMDD dates."""
    return {
        (start + timedelta(days=offset)).strftime("%Y%m%d"): value
        for offset, value in enumerate(values)
    }


def power_payload(**series) -> dict:
    """Build a POWER-shaped payload from parameter -> list of daily values."""
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [0, 0, 0]},
        "properties": {
            "parameter": {name: daily_dict(values) for name, values in series.items()}
        },
    }


@pytest.fixture
def ndvi_payload() -> dict:
    """100 valid NDVI days rising by bucket (0.05, 0.10, ... 0.50) plus sentinels."""
    values = []
    for bucket in range(10):
        values.extend([0.05 * (bucket + 1)] * 10)
    values.extend([-9999, None])
    return power_payload(NDVI=values)


@pytest.fixture
def climate_payload() -> dict:
    """Constant climate series, 10 valid days per bucket."""
    return power_payload(
        T2M=[10.0] * 100,
        RH2M=[60.0] * 100,
        PRECTOTCORR=[2.5] * 100,
        WS10M=[4.0] * 100,
    )


@pytest.fixture
def saved_location() -> SavedLocation:
    return SavedLocation(
        name="Kyiv",
        lat=50.45,
        lon=30.52,
        ndvi=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.65, 0.5, 0.45],
    )


# ============================================================
# Cache and State Fixtures
# ============================================================

@pytest.fixture(autouse=True)
def disabled_relay_cache():
    """Run relay endpoints without caching unless a test enables it."""
    FastAPICache.reset()
    FastAPICache.init(InMemoryBackend(), prefix="bloom-maps-test", enable=False)
    yield


@pytest.fixture
def storage(tmp_path) -> LocationStorage:
    return LocationStorage(tmp_path / "locations.json")


@pytest.fixture
def store(storage) -> LocationStore:
    return LocationStore(storage)


@pytest.fixture
def fake_geocoder() -> MagicMock:
    """Geocoding service resolving every name to Paris."""
    geocoder = MagicMock(spec=GeocodingService)
    geocoder.geocode.return_value = Coordinate(latitude=48.8566, longitude=2.3522)
    return geocoder


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client(store, fake_geocoder):
    """Test client with saved locations on a temp file and a fake geocoder."""
    app.dependency_overrides[get_location_store] = lambda: store
    app.dependency_overrides[get_geocoding_service] = lambda: fake_geocoder
    yield TestClient(app)
    app.dependency_overrides.clear()
