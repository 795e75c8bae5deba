"""Data models for climate and vegetation series."""

import math
from enum import Enum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from bloom_maps.bloom.errors import InvalidInput

MONTHS_PER_SERIES = 10
MONTH_LABELS: List[str] = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct"]

MonthlySeries = List[float]


class ParamId(str, Enum):
    """NASA POWER parameters served by the relay."""
    T2M = "T2M"
    RH2M = "RH2M"
    PRECTOTCORR = "PRECTOTCORR"
    WS10M = "WS10M"
    NDVI = "NDVI"

    @property
    def is_vegetation_index(self) -> bool:
        return self is ParamId.NDVI


CLIMATE_PARAMS: List[ParamId] = [ParamId.T2M, ParamId.RH2M, ParamId.PRECTOTCORR, ParamId.WS10M]
VEGETATION_PARAMS: List[ParamId] = [ParamId.NDVI]

PARAM_LABELS: Dict[ParamId, str] = {
    ParamId.T2M: "Average Temperature (°C)",
    ParamId.RH2M: "Average Humidity (%)",
    ParamId.PRECTOTCORR: "Average Precipitation (mm/day)",
    ParamId.WS10M: "Average Wind Speed (m/s)",
    ParamId.NDVI: "NDVI",
}


class Season(str, Enum):
    """Named seasons over the ten monthly buckets."""
    WINTER = "winter"
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"

    @property
    def indices(self) -> List[int]:
        return SEASON_INDICES[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


SEASON_INDICES: Dict[Season, List[int]] = {
    Season.WINTER: [0, 1],
    Season.SPRING: [2, 3, 4],
    Season.SUMMER: [5, 6, 7],
    Season.AUTUMN: [8, 9],
}


class Coordinate(BaseModel):
    """Validated latitude/longitude pair."""
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")

    @classmethod
    def from_values(cls, lat: Optional[float], lon: Optional[float]) -> "Coordinate":
        """Build a coordinate, raising InvalidInput instead of a validation error.

        Args:
            lat: Latitude in decimal degrees
            lon: Longitude in decimal degrees

        Returns:
            Coordinate instance

        Raises:
            InvalidInput: If either value is missing, not finite or out of range
        """
        if lat is None or lon is None:
            raise InvalidInput("Both latitude and longitude are required")
        try:
            lat = float(lat)
            lon = float(lon)
        except (TypeError, ValueError):
            raise InvalidInput(f"Invalid coordinates: lat={lat}, lon={lon}")
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise InvalidInput(f"Invalid coordinates: lat={lat}, lon={lon}")
        if not (-90 <= lat <= 90) or not (-180 <= lon <= 180):
            raise InvalidInput(
                "Enter valid coordinates (lat: -90..90, lon: -180..180)"
            )
        return cls(latitude=lat, longitude=lon)


class SavedLocation(BaseModel):
    """A location the user added to the map."""
    name: str = Field(..., description="Display name")
    lat: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    lon: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")
    ndvi: MonthlySeries = Field(
        ...,
        min_length=MONTHS_PER_SERIES,
        max_length=MONTHS_PER_SERIES,
        description="Monthly NDVI buckets (Jan-Oct)"
    )

    @property
    def latest_ndvi(self) -> float:
        return self.ndvi[-1]


class Live(BaseModel):
    """Series computed from real upstream data."""
    kind: Literal["live"] = "live"
    data: Dict[ParamId, MonthlySeries]


class Demo(BaseModel):
    """Synthetic series substituted after a soft failure."""
    kind: Literal["demo"] = "demo"
    data: Dict[ParamId, MonthlySeries]
    reason: str = Field(..., description="Why live data was not used")


SeriesResult = Union[Live, Demo]


class ClimateSummary(BaseModel):
    """Seasonal climate averages for a named place."""
    location: str
    season: Season
    coordinate: Optional[Coordinate] = None
    averages: Dict[ParamId, float]
    result: SeriesResult = Field(..., discriminator="kind")
