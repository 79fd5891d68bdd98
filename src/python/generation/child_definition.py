"""
===============================================================================
COSMOGEN - Child Definitions
===============================================================================
A ChildDefinition declares one type of child a region may contain: the
structure kind, the radius of free space each child needs, and the density
(expected number of children per cubic meter of the parent's volume).

    expected count  = parent volume * density
    selection weight = 1 / density

Scarce kinds carry the larger weight on each draw.
===============================================================================
"""

import math
from dataclasses import dataclass

from generation.structure_kind import StructureKind


@dataclass(frozen=True)
class ChildDefinition:
    """
    One candidate child type of a region.

    Attributes
    ----------
    clearance_space : float
        Radius of free space a child of this type requires (m).
    density : float
        Expected children per m^3 of parent volume; 0 never yields children.
    structure_kind : StructureKind
        Kind (possibly composite) produced for this definition.
    """
    clearance_space: float
    density: float
    structure_kind: StructureKind = StructureKind.NONE

    def __post_init__(self):
        if not self.density >= 0.0:
            raise ValueError(f"Child density must be non-negative, got {self.density}")
        if not self.clearance_space >= 0.0:
            raise ValueError(
                f"Child clearance space must be non-negative, got {self.clearance_space}"
            )

    @property
    def weight(self) -> float:
        """Selection weight, 1 / density (infinite for density 0)."""
        if self.density == 0.0:
            return math.inf
        return 1.0 / self.density

    def expected_count(self, volume: float) -> float:
        """Continuous expected number of children in *volume* m^3."""
        if self.density == 0.0:
            return 0.0
        return volume * self.density

    def is_satisfied_by(self, other: 'ChildDefinition') -> bool:
        """True when the two definitions share at least one structure kind."""
        return bool(self.structure_kind & other.structure_kind)

    def matches(self, location) -> bool:
        """True when *location*'s kind is included in this definition's kind."""
        kind = location.structure_kind
        return (self.structure_kind & kind) == kind
