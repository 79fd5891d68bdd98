"""
===============================================================================
COSMOGEN - Location Store
===============================================================================
In-memory collaborator that enumerates the existing children of a node and
fetches nodes by id.  The generator only reads from it (reconciling
existing children, resolving orbited bodies); callers add the results they
decide to keep.
===============================================================================
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from generation.location import CosmicLocation

logger = logging.getLogger(__name__)


class LocationStore:
    """Dictionary-backed store of CosmicLocation nodes, in insertion order."""

    def __init__(self, locations: Optional[Iterable[CosmicLocation]] = None):
        self._locations: Dict[str, CosmicLocation] = {}
        if locations is not None:
            self.add_all(locations)

    def add(self, location: CosmicLocation) -> None:
        """Insert or replace a node."""
        self._locations[location.id] = location

    def add_all(self, locations: Iterable[CosmicLocation]) -> None:
        for location in locations:
            self.add(location)

    def get(self, location_id: str) -> Optional[CosmicLocation]:
        """Node with the given id, or None."""
        return self._locations.get(location_id)

    def remove(self, location_id: str) -> Optional[CosmicLocation]:
        """Remove and return a node; unknown ids return None."""
        removed = self._locations.pop(location_id, None)
        if removed is None:
            logger.debug("remove(): no location with id %s", location_id)
        return removed

    def children_of(self, parent_id: Optional[str]) -> List[CosmicLocation]:
        """Direct children of *parent_id*, in insertion order."""
        if parent_id is None:
            return []
        return [loc for loc in self._locations.values() if loc.parent_id == parent_id]

    def __len__(self) -> int:
        return len(self._locations)

    def __contains__(self, location_id: object) -> bool:
        return location_id in self._locations

    def __iter__(self) -> Iterator[CosmicLocation]:
        return iter(self._locations.values())
