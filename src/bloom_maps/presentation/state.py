"""Saved-location state container and its JSON persistence."""

import asyncio
import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from bloom_maps.bloom.errors import InvalidInput
from bloom_maps.bloom.models import SavedLocation
from bloom_maps.config import LOCATIONS_FILE

logger = logging.getLogger(__name__)


class LocationState(BaseModel):
    """Ordered list of saved locations.

    Instances are treated as immutable: operations return a new state.
    """
    locations: List[SavedLocation] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.locations)

    def find(self, name: str, lat: float, lon: float) -> Optional[int]:
        """Return the index of a saved location with this name and position."""
        for index, saved in enumerate(self.locations):
            if (saved.name, saved.lat, saved.lon) == (name, lat, lon):
                return index
        return None

    def get(self, index: int) -> SavedLocation:
        if not 0 <= index < len(self.locations):
            raise InvalidInput(f"No saved location at index {index}")
        return self.locations[index]

    def add(self, location: SavedLocation) -> "LocationState":
        return LocationState(locations=[*self.locations, location])

    def delete(self, index: int) -> "LocationState":
        self.get(index)
        return LocationState(locations=self.locations[:index] + self.locations[index + 1:])


class LocationStorage:
    """Reads and writes LocationState as a JSON file."""

    def __init__(self, path: Union[str, Path] = LOCATIONS_FILE):
        self.path = Path(path)

    def load(self) -> LocationState:
        """Load saved locations, starting empty if the file is missing or unreadable."""
        if not self.path.exists():
            logger.info(f"No saved locations at {self.path}, starting empty")
            return LocationState()
        try:
            state = LocationState.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable saved locations file {self.path}: {e}")
            return LocationState()
        logger.info(f"Loaded {len(state)} saved locations from {self.path}")
        return state

    def save(self, state: LocationState) -> None:
        """Rewrite the file with the given state."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)
        logger.debug(f"Saved {len(state)} locations to {self.path}")


class LocationStore:
    """Holds the current state and persists it on every change.

    Commands read the state, may await remote data, then commit; `lock` must
    be held across that whole sequence so a commit never overwrites a newer
    state.
    """

    def __init__(self, storage: LocationStorage):
        self.storage = storage
        self.state = storage.load()
        self.lock = asyncio.Lock()

    def commit(self, state: LocationState) -> None:
        if state is self.state:
            return
        self.state = state
        self.storage.save(state)


# Singleton instance
_location_store: Optional[LocationStore] = None


def get_location_store() -> LocationStore:
    """
    Get or create the singleton location store, loading it on first use.

    Returns:
        LocationStore instance
    """
    global _location_store
    if _location_store is None:
        _location_store = LocationStore(LocationStorage())
    return _location_store
