"""Aggregation of daily POWER series into monthly and seasonal values.

All functions here are pure. The monthly partition is ten equal slices of
the *valid* daily readings, not calendar months. When the number of valid
readings is not a multiple of ten the trailing remainder is dropped.
"""

import math
from typing import Dict, Iterable, List, Optional, Sequence

from bloom_maps.bloom.models import (
    MONTHS_PER_SERIES, MonthlySeries, ParamId, Season
)

MISSING_VALUE = -9999

# Demo shape tables, one entry per monthly bucket
DEMO_TEMPERATURE_SHAPE = [0, 2, 10, 15, 20, 25, 28, 25, 18, 10]
DEMO_HUMIDITY = [70, 65, 60, 55, 50, 55, 60, 65, 70, 75]
DEMO_PRECIPITATION = [50, 40, 60, 70, 80, 90, 100, 90, 70, 60]
DEMO_WIND = [3, 4, 5, 4, 3, 3, 4, 5, 4, 3]
DEMO_NDVI_SHAPE = [0.2, 0.25, 0.4, 0.6, 0.8, 0.85, 0.8, 0.7, 0.5, 0.3]
SOUTHERN_HEMISPHERE_FACTOR = 0.9


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def is_missing(value: Optional[float]) -> bool:
    """Return True for sentinel readings: None, NaN or exactly -9999."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return value == MISSING_VALUE


def valid_values(daily: Iterable[Optional[float]]) -> List[float]:
    return [value for value in daily if not is_missing(value)]


def count_valid(daily: Iterable[Optional[float]]) -> int:
    return len(valid_values(daily))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def to_monthly(
    daily: Iterable[Optional[float]],
    parameter: Optional[ParamId] = None
) -> MonthlySeries:
    """Reduce a daily series to ten monthly buckets.

    Args:
        daily: Daily readings in date order, sentinels allowed
        parameter: Parameter the series belongs to; vegetation indices are
            clamped to [0, 1] after averaging

    Returns:
        List of exactly ten bucket means. A series without valid readings
        yields ten zeros.
    """
    valid = valid_values(daily)
    bucket_size = len(valid) // MONTHS_PER_SERIES
    clamp_to_unit = parameter is not None and parameter.is_vegetation_index

    monthly = []
    for i in range(MONTHS_PER_SERIES):
        bucket = valid[i * bucket_size:(i + 1) * bucket_size]
        avg = _mean(bucket)
        if clamp_to_unit:
            avg = clamp(avg, 0, 1)
        monthly.append(avg)
    return monthly


def to_seasonal(monthly: MonthlySeries, season: Season) -> float:
    """Average the monthly buckets that belong to a season."""
    if len(monthly) != MONTHS_PER_SERIES:
        raise ValueError(f"Monthly series must have {MONTHS_PER_SERIES} entries, got {len(monthly)}")
    return _mean([monthly[i] for i in season.indices])


def seasonal_averages(
    monthly_by_param: Dict[ParamId, MonthlySeries],
    season: Season
) -> Dict[ParamId, float]:
    return {
        param: to_seasonal(monthly, season)
        for param, monthly in monthly_by_param.items()
    }


def _demo_ndvi(latitude: float) -> MonthlySeries:
    base = clamp(0.8 - abs(latitude - 45) / 30, 0.1, 1)
    hemisphere = 1 if latitude > 0 else SOUTHERN_HEMISPHERE_FACTOR
    return [clamp(v * base * hemisphere, 0, 1) for v in DEMO_NDVI_SHAPE]


def synthesize_demo(
    latitude: float,
    parameters: Iterable[ParamId]
) -> Dict[ParamId, MonthlySeries]:
    """Build deterministic stand-in monthly series for a latitude.

    The shapes are a rough seasonal heuristic used when live data is
    unavailable; they are not a climate model.

    Args:
        latitude: Latitude in decimal degrees
        parameters: Parameters to synthesize

    Returns:
        Mapping of parameter to a ten-entry monthly series
    """
    base_temp = 15 - abs(latitude) / 3
    demo = {}
    for param in parameters:
        param = ParamId(param)
        if param is ParamId.T2M:
            demo[param] = [v + base_temp for v in DEMO_TEMPERATURE_SHAPE]
        elif param is ParamId.RH2M:
            demo[param] = [float(v) for v in DEMO_HUMIDITY]
        elif param is ParamId.PRECTOTCORR:
            demo[param] = [float(v) for v in DEMO_PRECIPITATION]
        elif param is ParamId.WS10M:
            demo[param] = [float(v) for v in DEMO_WIND]
        elif param is ParamId.NDVI:
            demo[param] = _demo_ndvi(latitude)
    return demo
