"""Rendering instructions for the map, chart, climate table and CSV export."""

import csv
import io
from html import escape
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from bloom_maps.bloom.models import (
    MONTH_LABELS, PARAM_LABELS, ClimateSummary, MonthlySeries, SavedLocation
)

CSV_HEADER = ["Location", "Lat", "Lon", "Date", "NDVI"]
CSV_FILENAME = "nasa_ndvi.csv"

LOW_NDVI_THRESHOLD = 0.3
HIGH_NDVI_THRESHOLD = 0.6
WORLD_VIEW = ([0.0, 0.0], 2)
LOCATION_ZOOM = 5

Level = Literal["info", "success", "warning", "error"]
Provenance = Literal["live", "demo"]


class Status(BaseModel):
    """Status line shown under the controls."""
    message: str
    level: Level = "info"
    provenance: Optional[Provenance] = None


class Marker(BaseModel):
    """Circle marker for a saved location."""
    index: int
    name: str
    lat: float
    lon: float
    latest_ndvi: float
    tier: Literal["low", "medium", "high"]
    color: str
    popup_html: str


class ChartView(BaseModel):
    """Line chart of one location's monthly NDVI."""
    location_name: str
    labels: List[str]
    values: MonthlySeries
    config: Dict[str, Any] = Field(..., description="Chart.js configuration")


class MapView(BaseModel):
    kind: Literal["map"] = "map"
    markers: List[Marker]
    center: List[float]
    zoom: int
    chart: Optional[ChartView] = None
    status: Optional[Status] = None


class ClimateTable(BaseModel):
    kind: Literal["climate_table"] = "climate_table"
    summary: ClimateSummary
    html: str
    status: Status


class CsvExport(BaseModel):
    kind: Literal["csv"] = "csv"
    filename: str = CSV_FILENAME
    content: str
    row_count: int
    status: Optional[Status] = None


Render = Union[MapView, ClimateTable, CsvExport]


def ndvi_tier(ndvi: float) -> str:
    if ndvi < LOW_NDVI_THRESHOLD:
        return "low"
    if ndvi < HIGH_NDVI_THRESHOLD:
        return "medium"
    return "high"


TIER_COLORS = {"low": "red", "medium": "yellow", "high": "green"}


def marker_color(ndvi: float) -> str:
    """Map the latest NDVI bucket to a marker fill color."""
    return TIER_COLORS[ndvi_tier(ndvi)]


def popup_html(location: SavedLocation, index: int) -> str:
    latest = location.latest_ndvi
    bloom_peak = "Summer (NDVI >0.6)" if latest > HIGH_NDVI_THRESHOLD else "Spring"
    return (
        f"<b>{escape(location.name)}</b><br>"
        f"NDVI: {latest:.2f}<br>"
        f"<em>Bloom peak: {bloom_peak}</em><br>"
        f'<button class="delete-btn" data-index="{index}">Delete</button>'
    )


def render_marker(location: SavedLocation, index: int) -> Marker:
    latest = location.latest_ndvi
    tier = ndvi_tier(latest)
    return Marker(
        index=index,
        name=location.name,
        lat=location.lat,
        lon=location.lon,
        latest_ndvi=latest,
        tier=tier,
        color=TIER_COLORS[tier],
        popup_html=popup_html(location, index)
    )


def render_chart(location: SavedLocation) -> ChartView:
    """Build a Chart.js line chart for one location."""
    config = {
        "type": "line",
        "data": {
            "labels": MONTH_LABELS,
            "datasets": [{
                "label": f"NDVI ({location.name})",
                "data": location.ndvi,
                "borderColor": "#333",
                "backgroundColor": "rgba(51, 51, 51, 0.1)",
                "fill": True,
                "tension": 0.3,
            }],
        },
        "options": {
            "responsive": True,
            "scales": {
                "y": {"min": 0, "max": 1, "title": {"display": True, "text": "NDVI"}},
                "x": {"title": {"display": True, "text": "Date"}},
            },
            "plugins": {"legend": {"display": False}, "tooltip": {"enabled": True}},
        },
    }
    return ChartView(
        location_name=location.name,
        labels=list(MONTH_LABELS),
        values=list(location.ndvi),
        config=config
    )


def render_map(
    locations: List[SavedLocation],
    status: Optional[Status] = None,
    chart_index: int = 0
) -> MapView:
    """Render markers for every location.

    The view centers on the most recently added location and charts the one
    at `chart_index`.
    """
    markers = [render_marker(location, index) for index, location in enumerate(locations)]
    if not locations:
        center, zoom = WORLD_VIEW
        return MapView(markers=markers, center=list(center), zoom=zoom, status=status)

    last = locations[-1]
    return MapView(
        markers=markers,
        center=[last.lat, last.lon],
        zoom=LOCATION_ZOOM,
        chart=render_chart(locations[chart_index]),
        status=status
    )


def climate_table_html(summary: ClimateSummary) -> str:
    rows = "".join(
        f"<tr><td>{escape(PARAM_LABELS[param])}</td><td>{value:.2f}</td></tr>"
        for param, value in summary.averages.items()
    )
    return (
        f"<h3>Climate for {escape(summary.location)} in {summary.season.label}</h3>"
        f'<table id="climateTable"><tr><th>Parameter</th><th>Value</th></tr>{rows}</table>'
    )


def render_climate(summary: ClimateSummary) -> ClimateTable:
    if summary.result.kind == "demo":
        status = Status(message="API Error: Using demo data", level="warning", provenance="demo")
    else:
        status = Status(message="Data loaded!", level="success", provenance="live")
    return ClimateTable(summary=summary, html=climate_table_html(summary), status=status)


def export_csv(locations: List[SavedLocation]) -> CsvExport:
    """Write one CSV row per (location, month) pair."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    row_count = 0
    for location in locations:
        for label, value in zip(MONTH_LABELS, location.ndvi):
            writer.writerow([location.name, location.lat, location.lon, label, f"{value:.4f}"])
            row_count += 1

    return CsvExport(content=buffer.getvalue(), row_count=row_count)
