"""
===============================================================================
COSMOGEN - Generation Context and Result
===============================================================================
Inputs and outputs of one configuration call.  A strategy receives a
GenerationContext (what to build, where, from which seed, inside which
parent) and returns a GenerationResult holding the configured node and any
sub-children created along with it.
===============================================================================
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

import numpy as np

from core.randomizer import Randomizer
from dynamics.orbit import OrbitalParameters
from generation.location import CosmicLocation
from generation.structure_kind import StructureKind


@dataclass
class GenerationContext:
    """
    Attributes
    ----------
    structure_kind : StructureKind
        Requested kind; composites (GALAXY, ANY_NEBULA) are resolved by the
        strategy.
    seed : int
        Seed of the new node's own random stream.
    parent : CosmicLocation, optional
        Containing node; None for a root.
    position : np.ndarray
        Position of the new node in the parent frame (m).
    orbit : OrbitalParameters, optional
        Explicit orbit request; overrides the parent's default child orbit.
    ambient_temperature : float, optional
        Temperature of the surrounding medium (K).
    supermassive : bool
        Selects the supermassive mass range for black holes.
    central : CosmicLocation, optional
        Existing node to put at the new node's centre in place of the one
        the strategy would generate there (a star system's primary, a
        galaxy's core).  The strategy builds around a re-parented copy.
    """
    structure_kind: StructureKind
    seed: int
    parent: Optional[CosmicLocation] = None
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    orbit: Optional[OrbitalParameters] = None
    ambient_temperature: Optional[float] = None
    supermassive: bool = False
    central: Optional[CosmicLocation] = None

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64)
        if self.ambient_temperature is None and self.parent is not None:
            self.ambient_temperature = self.parent.temperature

    @property
    def parent_id(self) -> Optional[str]:
        return self.parent.id if self.parent is not None else None

    def randomizer(self) -> Randomizer:
        """Fresh stream for this node, identical on every replay of the seed."""
        return Randomizer(self.seed)


@dataclass
class GenerationResult:
    """A configured node plus the sub-children produced with it."""
    primary: Optional[CosmicLocation]
    children: List[CosmicLocation] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.primary is not None

    def __iter__(self) -> Iterator:
        # Unpacks as (primary, children)
        yield self.primary
        yield self.children

    def locations(self) -> List[CosmicLocation]:
        """Primary followed by its sub-children."""
        if self.primary is None:
            return list(self.children)
        return [self.primary] + list(self.children)
