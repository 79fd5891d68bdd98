"""
===============================================================================
COSMOGEN - Structure Catalog
===============================================================================
Static tables describing each structure kind:

    * the radius of free space a child of that kind requires
    * the density-weighted child definitions a region of that kind holds

Densities are per cubic meter of the parent's volume.  Kinds that build
their contents directly (star systems, galaxy groups, planetary nebulae)
have no density-driven children.
===============================================================================
"""

from typing import Dict, List, Tuple

from core.constants import (
    ASTEROID_FIELD_PLANETOID_DENSITY,
    ASTEROID_FIELD_SPACE,
    BLACK_HOLE_SPACE,
    CLUSTER_GROUP_DENSITY,
    DWARF_GALAXY_DENSITY,
    DWARF_GALAXY_SPACE,
    GALAXY_CLUSTER_DENSITY,
    GALAXY_CLUSTER_SPACE,
    GALAXY_GROUP_SPACE,
    GALAXY_SPACE,
    GALAXY_STAR_SYSTEM_DENSITY,
    GALAXY_SUBGROUP_SPACE,
    GLOBULAR_CLUSTER_SPACE,
    GLOBULAR_CLUSTER_STAR_SYSTEM_DENSITY,
    HII_REGION_STAR_SYSTEM_DENSITY,
    NEBULA_SPACE,
    OORT_CLOUD_PLANETOID_DENSITY,
    OORT_CLOUD_SPACE,
    PLANETARY_NEBULA_SPACE,
    PLANETOID_SPACE,
    STAR_SPACE,
    STAR_SYSTEM_SPACE,
    SUBGROUP_GLOBULAR_CLUSTER_DENSITY,
    SUPERCLUSTER_DENSITY,
    SUPERCLUSTER_GROUP_DENSITY,
    SUPERCLUSTER_SPACE,
    UNIVERSE_RADIUS,
)
from generation.child_definition import ChildDefinition
from generation.structure_kind import StructureKind as K

# =============================================================================
# CLEARANCE SPACE PER KIND (m)
# =============================================================================
CLEARANCE_SPACE: Dict[K, float] = {
    K.UNIVERSE: UNIVERSE_RADIUS,
    K.SUPERCLUSTER: SUPERCLUSTER_SPACE,
    K.GALAXY_CLUSTER: GALAXY_CLUSTER_SPACE,
    K.GALAXY_GROUP: GALAXY_GROUP_SPACE,
    K.GALAXY_SUBGROUP: GALAXY_SUBGROUP_SPACE,
    K.SPIRAL_GALAXY: GALAXY_SPACE,
    K.ELLIPTICAL_GALAXY: GALAXY_SPACE,
    K.DWARF_GALAXY: DWARF_GALAXY_SPACE,
    K.GALAXY: GALAXY_SPACE,
    K.GLOBULAR_CLUSTER: GLOBULAR_CLUSTER_SPACE,
    K.NEBULA: NEBULA_SPACE,
    K.HII_REGION: NEBULA_SPACE,
    K.PLANETARY_NEBULA: PLANETARY_NEBULA_SPACE,
    K.ANY_NEBULA: NEBULA_SPACE,
    K.STAR_SYSTEM: STAR_SYSTEM_SPACE,
    K.ASTEROID_FIELD: ASTEROID_FIELD_SPACE,
    K.OORT_CLOUD: OORT_CLOUD_SPACE,
    K.BLACK_HOLE: BLACK_HOLE_SPACE,
    K.STAR: STAR_SPACE,
    K.PLANETOID: PLANETOID_SPACE,
}

# Shares of a galaxy's star-system density taken by other child kinds
ROGUE_PLANET_RATIO = 3.0
BLACK_HOLE_RATIO = 4.0e-4
PLANETARY_NEBULA_RATIO = 1.5e-8
NEBULA_RATIO = 4.0e-10


def _galaxy_children(star_system_density: float,
                     with_nebulae: bool) -> Tuple[ChildDefinition, ...]:
    definitions = [
        ChildDefinition(PLANETOID_SPACE, star_system_density * ROGUE_PLANET_RATIO, K.PLANETOID),
        ChildDefinition(STAR_SYSTEM_SPACE, star_system_density, K.STAR_SYSTEM),
        ChildDefinition(BLACK_HOLE_SPACE, star_system_density * BLACK_HOLE_RATIO, K.BLACK_HOLE),
        ChildDefinition(PLANETARY_NEBULA_SPACE, star_system_density * PLANETARY_NEBULA_RATIO,
                        K.PLANETARY_NEBULA),
    ]
    if with_nebulae:
        definitions += [
            ChildDefinition(NEBULA_SPACE, star_system_density * NEBULA_RATIO, K.NEBULA),
            ChildDefinition(NEBULA_SPACE, star_system_density * NEBULA_RATIO, K.HII_REGION),
        ]
    return tuple(definitions)


# =============================================================================
# CHILD DEFINITIONS PER KIND
# =============================================================================
CHILD_DEFINITIONS: Dict[K, Tuple[ChildDefinition, ...]] = {
    K.UNIVERSE: (
        ChildDefinition(SUPERCLUSTER_SPACE, SUPERCLUSTER_DENSITY, K.SUPERCLUSTER),
    ),
    K.SUPERCLUSTER: (
        ChildDefinition(GALAXY_CLUSTER_SPACE, GALAXY_CLUSTER_DENSITY, K.GALAXY_CLUSTER),
        ChildDefinition(GALAXY_GROUP_SPACE, SUPERCLUSTER_GROUP_DENSITY, K.GALAXY_GROUP),
    ),
    K.GALAXY_CLUSTER: (
        ChildDefinition(GALAXY_GROUP_SPACE, CLUSTER_GROUP_DENSITY, K.GALAXY_GROUP),
    ),
    K.GALAXY_SUBGROUP: (
        ChildDefinition(DWARF_GALAXY_SPACE, DWARF_GALAXY_DENSITY, K.DWARF_GALAXY),
        ChildDefinition(GLOBULAR_CLUSTER_SPACE, SUBGROUP_GLOBULAR_CLUSTER_DENSITY,
                        K.GLOBULAR_CLUSTER),
    ),
    K.SPIRAL_GALAXY: _galaxy_children(GALAXY_STAR_SYSTEM_DENSITY, with_nebulae=True),
    K.ELLIPTICAL_GALAXY: _galaxy_children(GALAXY_STAR_SYSTEM_DENSITY, with_nebulae=False),
    K.DWARF_GALAXY: _galaxy_children(GALAXY_STAR_SYSTEM_DENSITY, with_nebulae=False),
    K.GLOBULAR_CLUSTER: (
        ChildDefinition(STAR_SYSTEM_SPACE, GLOBULAR_CLUSTER_STAR_SYSTEM_DENSITY, K.STAR_SYSTEM),
        ChildDefinition(BLACK_HOLE_SPACE,
                        GLOBULAR_CLUSTER_STAR_SYSTEM_DENSITY * BLACK_HOLE_RATIO,
                        K.BLACK_HOLE),
    ),
    K.HII_REGION: (
        ChildDefinition(STAR_SYSTEM_SPACE, HII_REGION_STAR_SYSTEM_DENSITY, K.STAR_SYSTEM),
    ),
    K.ASTEROID_FIELD: (
        ChildDefinition(PLANETOID_SPACE, ASTEROID_FIELD_PLANETOID_DENSITY, K.PLANETOID),
    ),
    K.OORT_CLOUD: (
        ChildDefinition(PLANETOID_SPACE, OORT_CLOUD_PLANETOID_DENSITY, K.PLANETOID),
    ),
}


def space_for(kind: K) -> float:
    """Clearance radius a child of *kind* requires (0 for unknown kinds)."""
    return CLEARANCE_SPACE.get(kind, 0.0)


def child_definitions(kind: K) -> List[ChildDefinition]:
    """Density-weighted child definitions of a region of *kind*."""
    return list(CHILD_DEFINITIONS.get(kind, ()))
