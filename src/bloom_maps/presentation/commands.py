"""Command handlers for the saved-location map and the climate table.

Each handler takes the current state and returns the next state together
with a render instruction. Handlers never touch storage; the caller decides
when to persist.
"""

import logging
from typing import Awaitable, Callable, Dict, Optional, Type

from pydantic import BaseModel, Field

from bloom_maps.bloom.errors import InvalidInput
from bloom_maps.bloom.models import Coordinate, ParamId, SavedLocation, Season
from bloom_maps.bloom.service import BloomService
from bloom_maps.presentation.render import (
    Render, Status, export_csv, render_climate, render_map
)
from bloom_maps.presentation.state import LocationState

logger = logging.getLogger(__name__)

DEFAULT_LOCATION_NAME = "New location"


class AddLocation(BaseModel):
    name: Optional[str] = Field(None, description="Display name")
    lat: Optional[float] = Field(None, description="Latitude in decimal degrees")
    lon: Optional[float] = Field(None, description="Longitude in decimal degrees")


class DeleteLocation(BaseModel):
    index: int


class SelectLocation(BaseModel):
    index: int


class ShowMap(BaseModel):
    pass


class ExportCsv(BaseModel):
    pass


class ShowClimate(BaseModel):
    location: str
    season: Season = Season.SPRING


class CommandResult(BaseModel):
    state: LocationState
    render: Render = Field(..., discriminator="kind")


Handler = Callable[[LocationState, BaseModel, BloomService], Awaitable[CommandResult]]


async def handle_add(state: LocationState, command: AddLocation, service: BloomService) -> CommandResult:
    name = (command.name or "").strip() or DEFAULT_LOCATION_NAME
    coordinate = Coordinate.from_values(command.lat, command.lon)

    existing = state.find(name, coordinate.latitude, coordinate.longitude)
    if existing is not None:
        logger.info(f"Location '{name}' already saved at index {existing}")
        status = Status(message="Location already saved", level="info")
        return CommandResult(state=state, render=render_map(state.locations, status, chart_index=existing))

    coordinate, result = await service.ndvi_for_coordinate(coordinate.latitude, coordinate.longitude)
    location = SavedLocation(
        name=name,
        lat=coordinate.latitude,
        lon=coordinate.longitude,
        ndvi=result.data[ParamId.NDVI]
    )

    new_state = state.add(location)
    if result.kind == "demo":
        status = Status(message="API error: Using demo NDVI data", level="warning", provenance="demo")
    else:
        status = Status(message="Location added!", level="success", provenance="live")
    logger.info(f"Added location '{name}' ({result.kind} data), {len(new_state)} saved")
    return CommandResult(state=new_state, render=render_map(new_state.locations, status))


async def handle_delete(state: LocationState, command: DeleteLocation, service: BloomService) -> CommandResult:
    new_state = state.delete(command.index)
    logger.info(f"Removed location at index {command.index}, {len(new_state)} saved")
    status = Status(message="Location removed!", level="success")
    return CommandResult(state=new_state, render=render_map(new_state.locations, status))


async def handle_select(state: LocationState, command: SelectLocation, service: BloomService) -> CommandResult:
    state.get(command.index)
    return CommandResult(state=state, render=render_map(state.locations, chart_index=command.index))


async def handle_show_map(state: LocationState, command: ShowMap, service: BloomService) -> CommandResult:
    return CommandResult(state=state, render=render_map(state.locations))


async def handle_export(state: LocationState, command: ExportCsv, service: BloomService) -> CommandResult:
    export = export_csv(state.locations)
    if not state.locations:
        export.status = Status(message="Add locations", level="info")
    return CommandResult(state=state, render=export)


async def handle_climate(state: LocationState, command: ShowClimate, service: BloomService) -> CommandResult:
    summary = await service.climate_for_location(command.location, command.season)
    return CommandResult(state=state, render=render_climate(summary))


HANDLERS: Dict[Type[BaseModel], Handler] = {
    AddLocation: handle_add,
    DeleteLocation: handle_delete,
    SelectLocation: handle_select,
    ShowMap: handle_show_map,
    ExportCsv: handle_export,
    ShowClimate: handle_climate,
}


async def dispatch(state: LocationState, command: BaseModel, service: BloomService) -> CommandResult:
    """
    Route a command to its handler.

    Args:
        state: Current saved-location state
        command: One of the command models above
        service: Bloom service used by handlers that need data

    Returns:
        CommandResult with the next state and what to render

    Raises:
        InvalidInput: For unknown commands or invalid command arguments
        NotFound: If a climate lookup names an unknown place
    """
    handler = HANDLERS.get(type(command))
    if handler is None:
        raise InvalidInput(f"Unknown command: {type(command).__name__}")
    return await handler(state, command, service)
