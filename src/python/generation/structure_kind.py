"""
===============================================================================
COSMOGEN - Structure Kinds
===============================================================================
Flag enumeration of every cosmic structure the generator can produce.
Composite members (GALAXY, ANY_NEBULA) stand for "any of" their parts and
are used by child definitions and compatibility checks; a generated
location always carries exactly one concrete kind.
===============================================================================
"""

from enum import Flag, auto


class StructureKind(Flag):
    NONE = 0
    UNIVERSE = auto()
    SUPERCLUSTER = auto()
    GALAXY_CLUSTER = auto()
    GALAXY_GROUP = auto()
    GALAXY_SUBGROUP = auto()
    SPIRAL_GALAXY = auto()
    ELLIPTICAL_GALAXY = auto()
    DWARF_GALAXY = auto()
    GLOBULAR_CLUSTER = auto()
    NEBULA = auto()
    HII_REGION = auto()
    PLANETARY_NEBULA = auto()
    STAR_SYSTEM = auto()
    ASTEROID_FIELD = auto()
    OORT_CLOUD = auto()
    BLACK_HOLE = auto()
    STAR = auto()
    PLANETOID = auto()

    GALAXY = SPIRAL_GALAXY | ELLIPTICAL_GALAXY | DWARF_GALAXY
    ANY_NEBULA = NEBULA | HII_REGION | PLANETARY_NEBULA

    @property
    def is_concrete(self) -> bool:
        """True for a single, non-empty kind."""
        value = self.value
        return value != 0 and value & (value - 1) == 0

    @property
    def label(self) -> str:
        """Human-readable name, e.g. ``'Globular Cluster'``."""
        if self.name not in type(self).__members__:
            return ' | '.join(member.label for member in _members_of(self))
        if self is StructureKind.HII_REGION:
            return 'HII Region'
        return self.name.replace('_', ' ').title()

    @classmethod
    def parse(cls, text: str) -> 'StructureKind':
        """Look up a kind by name, case-insensitive (``'star-system'`` works)."""
        key = text.strip().upper().replace('-', '_').replace(' ', '_')
        try:
            return cls[key]
        except KeyError:
            raise ValueError(
                f"Unknown structure kind '{text}'. Valid kinds: "
                f"{', '.join(name.lower() for name in cls.__members__)}"
            ) from None


def _members_of(kind: StructureKind):
    return [member for member in StructureKind.__members__.values()
            if member.is_concrete and member & kind]
