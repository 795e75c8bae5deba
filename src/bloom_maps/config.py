"""Configuration settings for the bloom maps service."""

import os
from typing import Final
from dotenv import load_dotenv

load_dotenv()

# NASA POWER upstream
POWER_API_BASE_URL: Final[str] = os.getenv(
    "POWER_API_BASE_URL", "https://power.larc.nasa.gov/api/temporal/daily/point"
)
POWER_COMMUNITY: Final[str] = os.getenv("POWER_COMMUNITY", "AG")
RELAY_TIMEOUT_SECONDS: float = float(os.getenv("RELAY_TIMEOUT_SECONDS", "10"))

# Daily series window (Jan 1 - Oct 4)
DATA_YEAR: int = int(os.getenv("DATA_YEAR", "2024"))
DEFAULT_START: str = f"{DATA_YEAR}0101"
DEFAULT_END: str = f"{DATA_YEAR}1004"

# Relay base URL used by the fetcher when it runs outside the app process
RELAY_BASE_URL: str = os.getenv("RELAY_BASE_URL", "http://127.0.0.1:8000")

# Geocoding
GEOCODING_USER_AGENT: Final[str] = os.getenv("GEOCODING_USER_AGENT", "BloomMaps/0.1 (user@example.com)")
GEOCODING_TIMEOUT_SECONDS: int = int(os.getenv("GEOCODING_TIMEOUT_SECONDS", "10"))

# Latitude used for demo data when a place could not be geocoded at all
DEMO_FALLBACK_LATITUDE: float = float(os.getenv("DEMO_FALLBACK_LATITUDE", "0"))

# Saved locations
LOCATIONS_FILE: str = os.getenv("LOCATIONS_FILE", "ndvi_locations.json")

# Server configuration
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "8000"))
DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO")

# Relay cache configuration (Redis)
CACHE_ENABLED: bool = os.getenv("CACHE_ENABLED", "true").lower() == "true"
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")
CACHE_EXPIRE_SECONDS: int = int(os.getenv("CACHE_EXPIRE_SECONDS", "3600"))
CACHE_PREFIX: str = os.getenv("CACHE_PREFIX", "bloom-maps")

# Rate limiting configuration (relay paths only)
RATE_LIMIT_REQUESTS_PER_SECOND: int = int(os.getenv("RATE_LIMIT_REQUESTS_PER_SECOND", "5"))
RATE_LIMIT_REDIS_KEY_PREFIX: str = os.getenv("RATE_LIMIT_REDIS_KEY_PREFIX", "relay_rate_limit")
RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
