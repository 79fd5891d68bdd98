"""
===============================================================================
COSMOGEN - Structure Configuration Strategies
===============================================================================
One strategy per StructureKind turns a GenerationContext into a configured
CosmicLocation (shape, mass, temperature) plus the sub-children it creates
along the way: a galaxy's central black hole, a subgroup's main galaxy, the
stars, planets and Oort cloud of a star system.

Each node draws from its own Randomizer(context.seed), so configuring the
same kind from the same seed reproduces the node exactly.  Sub-children get
seeds drawn from the node's stream.

Child orbit policy (applied when the context carries no explicit orbit and
the child is not at the parent's centre):

    galaxies, subgroups, globular clusters   e ~ U(0, 0.1) about the centre
    star systems                             e ~ |N(0, 0.05)| about the centre
    asteroid fields, Oort clouds             the field's own orbit, shifted
                                             into the field's frame
    superclusters, clusters, groups          no orbit (free motion)

Two entry points:

    configure_location(context)               build a child inside a parent
    configure_parent_for_child(context, c)    build a parent around a child
===============================================================================
"""

import copy
import logging
import math
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

import numpy as np

from core.constants import (
    ASTEROID_FIELD_SPACE,
    AU,
    EARTH_MASS,
    FOUR_THIRDS_PI,
    GALAXY_CLUSTER_SPACE,
    GALAXY_GROUP_MASS,
    GALAXY_GROUP_SPACE,
    GALAXY_MEAN_STELLAR_MASS,
    GALAXY_STAR_SYSTEM_DENSITY,
    GALAXY_SUBGROUP_MASS,
    GALAXY_SUBGROUP_SPACE,
    GLOBULAR_CLUSTER_SPACE,
    GLOBULAR_CLUSTER_STAR_SYSTEM_DENSITY,
    GRAVITATIONAL_CONSTANT,
    HAWKING_COEFFICIENT,
    NEBULA_SPACE,
    OORT_CLOUD_INNER_RADIUS,
    OORT_CLOUD_MASS,
    OORT_CLOUD_SPACE,
    PLANETARY_NEBULA_SPACE,
    SOLAR_MASS,
    SOLAR_RADIUS,
    SPEED_OF_LIGHT,
    STAR_SYSTEM_MASS_MARGIN,
    SUPERCLUSTER_SPACE,
    SUPERMASSIVE_BLACK_HOLE_THRESHOLD,
    TWO_PI,
    UNIVERSE_AMBIENT_TEMPERATURE,
    UNIVERSE_RADIUS,
)
from core.randomizer import Randomizer
from core.shapes import Ellipsoid, HollowSphere, Sphere
from dynamics.orbit import OrbitalParameters
from dynamics.orbit_assigner import OrbitAssigner
from dynamics.orbital_mechanics import mutual_hill_sphere_radius
from generation.catalog import space_for
from generation.context import GenerationContext, GenerationResult
from generation.location import CosmicLocation
from generation.open_space import OpenSpaceFinder
from generation.structure_kind import StructureKind as K

logger = logging.getLogger(__name__)

# =============================================================================
# SIZE AND MASS RANGES
# =============================================================================
SUPERCLUSTER_MIN_AXIS = 9.4607e23       # m
SUPERCLUSTER_MASS_RANGE = (2.0e46, 2.0e47)
GALAXY_CLUSTER_MIN_RADIUS = 3.0e23      # m
GALAXY_CLUSTER_MASS_RANGE = (2.0e45, 2.0e46)
GALAXY_GROUP_MIN_RADIUS = 1.5e23        # m
GALAXY_SUBGROUP_RADIUS_RANGE = (6.25e22, 1.25e23)
SPIRAL_PROBABILITY = 0.7

SPIRAL_RADIUS_RANGE = (2.4e20, 2.5e21)
ELLIPTICAL_RADIUS_RANGE = (1.5e18, 1.5e21)
DWARF_RADIUS_RANGE = (2.5e18, 9.5e18)
GLOBULAR_CLUSTER_RADIUS_RANGE = (8.0e16, GLOBULAR_CLUSTER_SPACE)
DARK_MATTER_FACTOR_RANGE = (5.0, 15.0)

NEBULA_SCALE = 1.5e17                   # m
HII_REGION_SCALE = 1.0e17               # m
HII_REGION_TEMPERATURE = 1.0e4          # K
NEBULA_MASS_RANGE = (1.99e33, 1.99e37)
PLANETARY_NEBULA_MASS_RANGE = (1.99e29, 1.99e30)

ASTEROID_FIELD_MIN_AXIS = 1.5e11        # m
ASTEROID_FIELD_MASS_DENSITY = 7.0e-8    # kg/m^3 averaged over the field

SUPERMASSIVE_MASS_RANGE = (2.0e35, 2.0e40)
STELLAR_BLACK_HOLE_MASS_RANGE = (6.0e30, 4.0e31)

# Stellar masses in solar units: log-logistic median and shape
STAR_MASS_MEDIAN = 0.35
STAR_MASS_SHAPE = 2.2
STAR_MASS_LIMITS = (0.075, 150.0)
SUN_EFFECTIVE_TEMPERATURE = 5772.0      # K
WHITE_DWARF_MASS_RANGE = (0.5, 1.4)     # solar masses
WHITE_DWARF_TEMPERATURE_RANGE = (8.0e3, 4.0e4)
WHITE_DWARF_RADIUS = 0.0126             # solar radii at one solar mass

SMALL_BODY_MASS_RANGE = (1.0e12, 1.0e21)
PLANET_MASS_RANGE = (3.0e22, 2.5e28)
GIANT_PLANET_THRESHOLD = 10.0 * EARTH_MASS
ROCKY_DENSITY = 5500.0                  # kg/m^3
GIANT_DENSITY = 1300.0
SMALL_BODY_DENSITY = 2000.0
ICY_BODY_DENSITY = 1000.0

# =============================================================================
# STAR SYSTEM LAYOUT
# =============================================================================
STAR_SYSTEM_BASE_RADIUS = 1.125e16      # m, ~75000 AU
CLOSE_BINARY_PROBABILITY = 0.2
CLOSE_BINARY_PERIOD_MEAN = 36000.0      # s
CLOSE_BINARY_PERIOD_SIGMA = 1.732e7     # s
WIDE_BINARY_PERIOD_SCALE = 1.5768e9     # s, ~50 years
COMPANION_ECCENTRICITY_PERIOD = 3.1536e9
MAX_COMPANION_ECCENTRICITY = 0.9
MAX_PLANETS = 8
PLANETARY_REGION_LIMIT = 1.0e13         # m, ~67 AU
FIRST_PLANET_PERIAPSIS = 5.8e10         # m
TYPICAL_PLANET_MASS = 3.0e25            # kg
HILL_SPACING_MEAN = 21.7                # mutual Hill radii between planets
HILL_SPACING_SIGMA = 9.5
MAX_PLANET_ECCENTRICITY = 0.5


def _sub_context(kind: K, rng: Randomizer, parent: CosmicLocation,
                 position: np.ndarray, **kwargs) -> GenerationContext:
    return GenerationContext(kind, seed=rng.next_seed(), parent=parent,
                             position=position, **kwargs)


def _origin() -> np.ndarray:
    return np.zeros(3, dtype=np.float64)



def _recentred(node: CosmicLocation, parent: CosmicLocation) -> CosmicLocation:
    """Copy of *node* at rest at the centre of *parent*."""
    placed = copy.copy(node)
    placed.parent_id = parent.id
    placed.position = _origin()
    placed.velocity = np.zeros(3)
    placed.orbit = None
    return placed


def _central_nodes(kind: K, rng: Randomizer, location: CosmicLocation,
                   context: GenerationContext, **kwargs) -> List[CosmicLocation]:
    """The node at *location*'s centre (first) with its sub-children."""
    if context.central is not None:
        return [_recentred(context.central, location)]
    return configure_location(_sub_context(kind, rng, location, _origin(), **kwargs)).locations()


def is_supermassive_black_hole(location: CosmicLocation) -> bool:
    return (location.structure_kind is K.BLACK_HOLE
            and location.mass >= SUPERMASSIVE_BLACK_HOLE_THRESHOLD)


# =============================================================================
# CHILD ORBIT POLICY
# =============================================================================

def default_child_orbit(parent: Optional[CosmicLocation], child: CosmicLocation,
                        rng: Randomizer) -> Optional[OrbitalParameters]:
    """
    Orbit a new child takes up inside *parent* when none is requested.

    Returns None for children at the parent's centre and for parents whose
    children move freely.
    """
    if parent is None or not np.any(child.position):
        return None
    kind = parent.structure_kind
    if kind & (K.GALAXY | K.GALAXY_SUBGROUP | K.GLOBULAR_CLUSTER):
        return OrbitalParameters.from_eccentricity(parent.mass, _origin(),
                                                   rng.uniform(0.0, 0.1))
    if kind & K.STAR_SYSTEM:
        return OrbitalParameters.from_eccentricity(parent.mass, _origin(),
                                                   rng.positive_normal(0.0, 0.05))
    if kind & (K.ASTEROID_FIELD | K.OORT_CLOUD) and parent.orbit is not None:
        # Field members share the field's primary, seen from the field's frame
        return OrbitalParameters.from_eccentricity(
            parent.orbit.orbited_mass,
            parent.orbit.orbited_position - parent.position,
            parent.orbit.eccentricity,
        )
    return None


# =============================================================================
# STRATEGY BASE CLASS
# =============================================================================

class StructureConfigurator:
    """
    Builds one node of a given kind.

    Subclasses list the kinds they handle in ``kinds`` and fill in the
    node's shape, mass and temperature in ``build``, returning any
    sub-children they create.
    """
    kinds: Tuple[K, ...] = ()

    def configure(self, context: GenerationContext) -> GenerationResult:
        rng = context.randomizer()
        kind = self.resolve_kind(context.structure_kind, rng)
        location = CosmicLocation(
            structure_kind=kind,
            shape=Sphere(position=context.position),
            parent_id=context.parent_id,
            temperature=context.ambient_temperature,
            seed=context.seed,
        )
        children = self.build(location, context, rng)

        parameters = context.orbit
        if parameters is None:
            parameters = default_child_orbit(context.parent, location, rng)
        if parameters is not None:
            OrbitAssigner.assign_orbit(location, parameters, rng)

        logger.debug("Configured %r with %d sub-children", location, len(children))
        return GenerationResult(location, children)

    def resolve_kind(self, kind: K, rng: Randomizer) -> K:
        """Concrete kind to build for a (possibly composite) request."""
        return kind

    def build(self, location: CosmicLocation, context: GenerationContext,
              rng: Randomizer) -> List[CosmicLocation]:
        raise NotImplementedError


# =============================================================================
# LARGE-SCALE STRUCTURE
# =============================================================================

class UniverseConfigurator(StructureConfigurator):
    kinds = (K.UNIVERSE,)

    def build(self, location, context, rng):
        location.shape = Sphere(position=location.position, radius=UNIVERSE_RADIUS)
        location.mass = math.inf
        location.temperature = UNIVERSE_AMBIENT_TEMPERATURE
        return []


class SuperclusterConfigurator(StructureConfigurator):
    kinds = (K.SUPERCLUSTER,)

    def build(self, location, context, rng):
        major = rng.uniform(SUPERCLUSTER_MIN_AXIS, SUPERCLUSTER_SPACE)
        location.shape = Ellipsoid(
            position=location.position,
            axis_x=major,
            axis_y=major * rng.uniform(0.02, 0.15),
            axis_z=major * rng.uniform(0.02, 0.15),
        )
        location.mass = rng.uniform(*SUPERCLUSTER_MASS_RANGE)
        return []


class GalaxyClusterConfigurator(StructureConfigurator):
    kinds = (K.GALAXY_CLUSTER,)

    def build(self, location, context, rng):
        radius = rng.uniform(GALAXY_CLUSTER_MIN_RADIUS, GALAXY_CLUSTER_SPACE)
        location.shape = Sphere(position=location.position, radius=radius)
        location.mass = rng.uniform(*GALAXY_CLUSTER_MASS_RANGE)
        return []


class GalaxyGroupConfigurator(StructureConfigurator):
    """A group is built directly from one to five subgroups packed near its centre."""
    kinds = (K.GALAXY_GROUP,)

    def build(self, location, context, rng):
        radius = rng.uniform(GALAXY_GROUP_MIN_RADIUS, GALAXY_GROUP_SPACE)
        location.shape = Sphere(position=location.position, radius=radius)
        location.mass = GALAXY_GROUP_MASS

        finder = OpenSpaceFinder(rng)
        children: List[CosmicLocation] = []
        occupied = []
        for _ in range(rng.integer(1, 6)):
            position = finder.find_nearest_open_space(
                _origin(), GALAXY_SUBGROUP_SPACE, occupied, containing_radius=radius)
            if position is None:
                break
            result = configure_location(
                _sub_context(K.GALAXY_SUBGROUP, rng, location, position))
            subgroup = result.primary
            occupied.append(Sphere(position=subgroup.position,
                                   radius=max(GALAXY_SUBGROUP_SPACE,
                                              subgroup.containing_radius)))
            children.extend(result.locations())
        return children


class GalaxySubgroupConfigurator(StructureConfigurator):
    kinds = (K.GALAXY_SUBGROUP,)

    def build(self, location, context, rng):
        radius = rng.uniform(*GALAXY_SUBGROUP_RADIUS_RANGE)
        location.shape = Sphere(position=location.position, radius=radius)
        location.mass = GALAXY_SUBGROUP_MASS

        main_kind = K.SPIRAL_GALAXY if rng.next_bool(SPIRAL_PROBABILITY) \
            else K.ELLIPTICAL_GALAXY
        return _central_nodes(main_kind, rng, location, context)


# =============================================================================
# GALAXIES AND CLUSTERS
# =============================================================================

class GalaxyConfigurator(StructureConfigurator):
    """
    Spiral, elliptical and dwarf galaxies.

    The disc is flattened along z; a central black hole (supermassive
    except in dwarfs) sits at the origin.  Mass is the stellar content plus
    the core, scaled by a dark-matter factor.
    """
    kinds = (K.SPIRAL_GALAXY, K.ELLIPTICAL_GALAXY, K.DWARF_GALAXY, K.GALAXY)

    def resolve_kind(self, kind, rng):
        if kind.is_concrete:
            return kind
        return K.SPIRAL_GALAXY if rng.next_bool(SPIRAL_PROBABILITY) \
            else K.ELLIPTICAL_GALAXY

    def build(self, location, context, rng):
        kind = location.structure_kind
        if kind is K.SPIRAL_GALAXY:
            radius = rng.uniform(*SPIRAL_RADIUS_RANGE)
            flattening = rng.normal(0.02, 0.001, minimum=0.001)
        elif kind is K.ELLIPTICAL_GALAXY:
            radius = rng.uniform(*ELLIPTICAL_RADIUS_RANGE)
            flattening = min(rng.normal(0.5, 1.0, minimum=0.1), 1.0)
        else:
            radius = rng.uniform(*DWARF_RADIUS_RANGE)
            flattening = min(rng.normal(0.02, 1.0, minimum=0.01), 1.0)
        location.shape = Ellipsoid(position=location.position, axis_x=radius,
                                   axis_y=radius, axis_z=radius * flattening)

        core = _central_nodes(K.BLACK_HOLE, rng, location, context,
                              supermassive=kind is not K.DWARF_GALAXY)
        stellar_mass = location.volume * GALAXY_STAR_SYSTEM_DENSITY * GALAXY_MEAN_STELLAR_MASS
        location.mass = (stellar_mass + core[0].mass) * rng.uniform(*DARK_MATTER_FACTOR_RANGE)
        return core


class GlobularClusterConfigurator(StructureConfigurator):
    kinds = (K.GLOBULAR_CLUSTER,)

    def build(self, location, context, rng):
        radius = rng.uniform(*GLOBULAR_CLUSTER_RADIUS_RANGE)
        location.shape = Ellipsoid(
            position=location.position, axis_x=radius, axis_y=radius,
            axis_z=radius * rng.normal(0.02, 0.001, minimum=0.001))

        core = _central_nodes(K.BLACK_HOLE, rng, location, context)
        stellar_mass = (location.volume * GLOBULAR_CLUSTER_STAR_SYSTEM_DENSITY
                        * GALAXY_MEAN_STELLAR_MASS)
        location.mass = (stellar_mass + core[0].mass) * rng.uniform(*DARK_MATTER_FACTOR_RANGE)
        return core


# =============================================================================
# NEBULAE
# =============================================================================

class NebulaConfigurator(StructureConfigurator):
    """Diffuse nebulae and HII regions: lumpy ellipsoids up to 5.5e18 m across."""
    kinds = (K.NEBULA, K.HII_REGION, K.ANY_NEBULA)

    def resolve_kind(self, kind, rng):
        return K.NEBULA if kind is K.ANY_NEBULA else kind

    def build(self, location, context, rng):
        scale = HII_REGION_SCALE if location.structure_kind is K.HII_REGION else NEBULA_SCALE
        axis = scale + rng.log_normal(0.0, 1.0) * scale
        while axis > NEBULA_SPACE:
            axis = scale + rng.log_normal(0.0, 1.0) * scale
        location.shape = Ellipsoid(
            position=location.position,
            axis_x=axis,
            axis_y=min(axis * rng.uniform(0.5, 1.5), NEBULA_SPACE),
            axis_z=min(axis * rng.uniform(0.5, 1.5), NEBULA_SPACE),
        )
        location.mass = rng.uniform(*NEBULA_MASS_RANGE)
        if location.structure_kind is K.HII_REGION:
            location.temperature = HII_REGION_TEMPERATURE
        return []


class PlanetaryNebulaConfigurator(StructureConfigurator):
    """Shell of ejected gas around the white dwarf at its centre."""
    kinds = (K.PLANETARY_NEBULA,)

    def build(self, location, context, rng):
        location.shape = Sphere(position=location.position, radius=PLANETARY_NEBULA_SPACE)
        location.mass = rng.uniform(*PLANETARY_NEBULA_MASS_RANGE)

        if context.central is not None:
            return [_recentred(context.central, location)]
        star = CosmicLocation(structure_kind=K.STAR, parent_id=location.id,
                              seed=rng.next_seed(), name='White Dwarf')
        StarConfigurator.make_white_dwarf(star, Randomizer(star.seed))
        return [star]


# =============================================================================
# STAR SYSTEMS AND THEIR CONTENTS
# =============================================================================

class StarSystemConfigurator(StructureConfigurator):
    """
    A primary star at the centre, up to two companions on period-defined
    orbits, a sequence of planets and an Oort cloud.

    Radius = 1.125e16 m plus the outermost companion apoapsis; mass is the
    stellar total with a small margin for everything else.
    """
    kinds = (K.STAR_SYSTEM,)

    def build(self, location, context, rng):
        primary = _central_nodes(K.STAR, rng, location, context)[0]
        companions = self._add_companions(location, primary, rng)
        stars = [primary] + companions

        outer_apoapsis = max((star.orbit.apoapsis for star in companions), default=0.0)
        location.shape = Sphere(position=location.position,
                                radius=STAR_SYSTEM_BASE_RADIUS + outer_apoapsis)
        location.mass = sum(star.mass for star in stars) * STAR_SYSTEM_MASS_MARGIN

        planets = self._add_planets(location, primary, companions, rng)
        cloud = configure_location(_sub_context(K.OORT_CLOUD, rng, location, _origin()))
        return stars + planets + cloud.locations()

    @staticmethod
    def companion_count(rng: Randomizer) -> int:
        chance = rng.uniform()
        if chance <= 0.03:
            return 2
        if chance <= 0.3:
            return 1
        return 0

    @staticmethod
    def close_binary_period(rng: Randomizer) -> float:
        """Close binary period: normal about 10 hours, resampled into its upper 3-sigma half."""
        upper = CLOSE_BINARY_PERIOD_MEAN + 3.0 * CLOSE_BINARY_PERIOD_SIGMA
        while True:
            value = rng.normal(CLOSE_BINARY_PERIOD_MEAN, CLOSE_BINARY_PERIOD_SIGMA)
            if CLOSE_BINARY_PERIOD_MEAN <= value <= upper:
                return value

    def _add_companions(self, system: CosmicLocation, primary: CosmicLocation,
                        rng: Randomizer) -> List[CosmicLocation]:
        companions = []
        previous_period = 0.0
        for index in range(self.companion_count(rng)):
            if index == 0 and rng.next_bool(CLOSE_BINARY_PROBABILITY):
                period = self.close_binary_period(rng)
            else:
                period = rng.log_normal(0.0, 1.0) * WIDE_BINARY_PERIOD_SCALE
            # Each companion orbits outside the previous one
            period += previous_period
            previous_period = period

            eccentricity = min(
                abs(rng.normal(0.0, 1e-4) * period / COMPANION_ECCENTRICITY_PERIOD),
                MAX_COMPANION_ECCENTRICITY,
            )
            parameters = OrbitalParameters.from_eccentricity_and_period(
                primary.mass, primary.position, eccentricity, period,
                orbited_id=primary.id)
            start = primary.position + rng.vector_at_distance(AU)
            companion = configure_location(
                _sub_context(K.STAR, rng, system, start, orbit=parameters)).primary
            companions.append(companion)
        return companions

    def _add_planets(self, system: CosmicLocation, primary: CosmicLocation,
                     companions: List[CosmicLocation],
                     rng: Randomizer) -> List[CosmicLocation]:
        limit = PLANETARY_REGION_LIMIT
        if companions:
            limit = min(limit, min(star.orbit.periapsis for star in companions) / 3.0)
        minimum = 10.0 * primary.containing_radius

        planets = []
        periapsis = rng.normal(FIRST_PLANET_PERIAPSIS, FIRST_PLANET_PERIAPSIS / 3.0,
                               minimum=minimum)
        for _ in range(rng.integer(0, MAX_PLANETS + 1)):
            if periapsis > limit:
                break
            parameters = OrbitalParameters.from_elements(
                primary.mass, primary.position,
                periapsis=periapsis,
                eccentricity=min(rng.positive_normal(0.0, 0.05), MAX_PLANET_ECCENTRICITY),
                inclination=rng.positive_normal(0.0, 0.03),
                longitude_ascending=rng.uniform(0.0, TWO_PI),
                argument_periapsis=rng.uniform(0.0, TWO_PI),
                true_anomaly=rng.uniform(0.0, TWO_PI),
                orbited_id=primary.id,
            )
            start = primary.position + rng.vector_at_distance(periapsis)
            planet = configure_location(
                _sub_context(K.PLANETOID, rng, system, start, orbit=parameters)).primary
            planets.append(planet)

            spacing = mutual_hill_sphere_radius(
                planet.mass, TYPICAL_PLANET_MASS, primary.mass,
                planet.orbit.semi_major_axis,
            ) * rng.normal(HILL_SPACING_MEAN, HILL_SPACING_SIGMA, minimum=1.0)
            periapsis = planet.orbit.apoapsis + spacing
        return planets


class StarConfigurator(StructureConfigurator):
    """Main-sequence stars with log-logistic masses."""
    kinds = (K.STAR,)

    def build(self, location, context, rng):
        low, high = STAR_MASS_LIMITS
        solar_masses = min(max(rng.log_logistic(STAR_MASS_MEDIAN, STAR_MASS_SHAPE), low), high)
        exponent = 0.8 if solar_masses < 1.0 else 0.57
        location.mass = solar_masses * SOLAR_MASS
        location.shape = Sphere(position=location.position,
                                radius=SOLAR_RADIUS * solar_masses ** exponent)
        location.temperature = SUN_EFFECTIVE_TEMPERATURE * solar_masses ** 0.505
        return []

    @staticmethod
    def make_white_dwarf(location: CosmicLocation, rng: Randomizer) -> None:
        """Turn *location* into a white dwarf (radius shrinks as mass grows)."""
        solar_masses = rng.uniform(*WHITE_DWARF_MASS_RANGE)
        location.mass = solar_masses * SOLAR_MASS
        location.shape = Sphere(position=location.position,
                                radius=WHITE_DWARF_RADIUS * SOLAR_RADIUS * solar_masses ** (-1.0 / 3.0))
        location.temperature = rng.uniform(*WHITE_DWARF_TEMPERATURE_RANGE)


class PlanetoidConfigurator(StructureConfigurator):
    """
    Planets and small bodies.

    Members of asteroid fields and Oort clouds are small bodies; anything
    else is a planet, rocky below ten Earth masses and a giant above.
    """
    kinds = (K.PLANETOID,)

    def build(self, location, context, rng):
        parent_kind = context.parent.structure_kind if context.parent is not None else K.NONE
        if parent_kind & (K.ASTEROID_FIELD | K.OORT_CLOUD):
            mass = rng.log_uniform(*SMALL_BODY_MASS_RANGE)
            density = ICY_BODY_DENSITY if parent_kind is K.OORT_CLOUD else SMALL_BODY_DENSITY
        else:
            mass = rng.log_uniform(*PLANET_MASS_RANGE)
            density = ROCKY_DENSITY if mass < GIANT_PLANET_THRESHOLD else GIANT_DENSITY
        location.mass = mass
        location.shape = Sphere(position=location.position,
                                radius=float(np.cbrt(mass / (FOUR_THIRDS_PI * density))))
        return []


class AsteroidFieldConfigurator(StructureConfigurator):
    kinds = (K.ASTEROID_FIELD,)

    def build(self, location, context, rng):
        major = rng.uniform(ASTEROID_FIELD_MIN_AXIS, ASTEROID_FIELD_SPACE)
        location.shape = Ellipsoid(
            position=location.position,
            axis_x=major,
            axis_y=min(major * rng.uniform(0.5, 1.5), ASTEROID_FIELD_SPACE),
            axis_z=min(major * rng.uniform(0.5, 1.5), ASTEROID_FIELD_SPACE),
        )
        location.mass = location.volume * ASTEROID_FIELD_MASS_DENSITY
        return []


class OortCloudConfigurator(StructureConfigurator):
    kinds = (K.OORT_CLOUD,)

    def build(self, location, context, rng):
        location.shape = HollowSphere(position=location.position,
                                      inner_radius=OORT_CLOUD_INNER_RADIUS,
                                      outer_radius=OORT_CLOUD_SPACE)
        location.mass = OORT_CLOUD_MASS
        return []


class BlackHoleConfigurator(StructureConfigurator):
    """Schwarzschild-radius spheres with Hawking temperature."""
    kinds = (K.BLACK_HOLE,)

    def build(self, location, context, rng):
        mass_range = SUPERMASSIVE_MASS_RANGE if context.supermassive \
            else STELLAR_BLACK_HOLE_MASS_RANGE
        location.mass = rng.uniform(*mass_range)
        radius = 2.0 * GRAVITATIONAL_CONSTANT * location.mass / SPEED_OF_LIGHT ** 2
        location.shape = Sphere(position=location.position, radius=radius)
        location.temperature = HAWKING_COEFFICIENT * SOLAR_MASS / location.mass
        if is_supermassive_black_hole(location):
            location.name = 'Supermassive Black Hole'
        return []


# =============================================================================
# REGISTRY
# =============================================================================
REGISTRY: Dict[K, StructureConfigurator] = {}

for _configurator in (
    UniverseConfigurator(),
    SuperclusterConfigurator(),
    GalaxyClusterConfigurator(),
    GalaxyGroupConfigurator(),
    GalaxySubgroupConfigurator(),
    GalaxyConfigurator(),
    GlobularClusterConfigurator(),
    NebulaConfigurator(),
    PlanetaryNebulaConfigurator(),
    StarSystemConfigurator(),
    StarConfigurator(),
    PlanetoidConfigurator(),
    AsteroidFieldConfigurator(),
    OortCloudConfigurator(),
    BlackHoleConfigurator(),
):
    for _kind in _configurator.kinds:
        REGISTRY[_kind] = _configurator


def get_configurator(kind: K) -> StructureConfigurator:
    try:
        return REGISTRY[kind]
    except KeyError:
        raise ValueError(f"No configurator registered for {kind!r}") from None


def configure_location(context: GenerationContext) -> GenerationResult:
    """Build the node a context describes, with its sub-children."""
    return get_configurator(context.structure_kind).configure(context)


# =============================================================================
# PARENT FOR AN EXISTING CHILD
# =============================================================================

def _belongs_at_centre(parent_kind: K, child: CosmicLocation) -> bool:
    child_kind = child.structure_kind
    if parent_kind is K.GALAXY_SUBGROUP:
        return bool(child_kind & (K.SPIRAL_GALAXY | K.ELLIPTICAL_GALAXY))
    if parent_kind in (K.SPIRAL_GALAXY, K.ELLIPTICAL_GALAXY):
        return is_supermassive_black_hole(child)
    if parent_kind in (K.DWARF_GALAXY, K.GLOBULAR_CLUSTER):
        return child_kind is K.BLACK_HOLE
    if parent_kind in (K.PLANETARY_NEBULA, K.STAR_SYSTEM):
        return child_kind is K.STAR
    return False


def configure_parent_for_child(context: GenerationContext,
                               child: CosmicLocation) -> GenerationResult:
    """
    Build a parent of ``context.structure_kind`` around an existing child.

    The child is not modified; a copy re-parented into the new node is
    returned first among the result's children.  Children that naturally
    sit at the centre (a subgroup's main galaxy, a galaxy's core, a star
    system's primary) are handed to the parent's strategy, which builds
    around them: companions and planets orbit the supplied star, and the
    parent's mass includes it.  Anything else is placed in open space and
    given the parent's default child orbit.

    Raises
    ------
    ValueError
        If the child is a universe.
    DegenerateOrbitError
        If the child's clearance does not fit inside the new parent.
    """
    if child.structure_kind is K.UNIVERSE:
        raise ValueError("A universe cannot be placed inside a parent.")

    # Same first draw the strategy makes, so composite kinds resolve alike
    requested = context.structure_kind
    parent_kind = get_configurator(requested).resolve_kind(requested, context.randomizer())

    if _belongs_at_centre(parent_kind, child):
        result = configure_location(replace(context, central=child))
        parent = result.primary
        placed = next(c for c in result.children if c.id == child.id)
        children = [c for c in result.children if c is not placed]
    else:
        result = configure_location(context)
        parent = result.primary
        children = list(result.children)
        rng = context.randomizer().spawn()
        occupied = [c.shape for c in children if c.parent_id == parent.id]
        finder = OpenSpaceFinder(rng)
        position = finder.find_open_space(parent.containing_radius,
                                          space_for(child.structure_kind), occupied)
        if position is None:
            logger.debug("No open space for %r in new %s; using the centre",
                         child, parent.structure_kind.label)
            position = _origin()

        placed = _recentred(child, parent)
        placed.position = position
        parameters = default_child_orbit(parent, placed, rng)
        if parameters is not None:
            OrbitAssigner.assign_orbit(placed, parameters, rng)

    logger.info("Configured %s around existing %s", parent.structure_kind.label,
                child.structure_kind.label)
    return GenerationResult(parent, [placed] + children)
