"""
===============================================================================
COSMOGEN - Structure Configuration Test Suite
===============================================================================
Tests for the per-kind configuration strategies: reproducibility from a
seed, physical formulas, sub-children, the child orbit policy and building
a parent around an existing child.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from core.constants import (
    GRAVITATIONAL_CONSTANT,
    HAWKING_COEFFICIENT,
    NEBULA_SPACE,
    OORT_CLOUD_SPACE,
    SOLAR_MASS,
    SOLAR_RADIUS,
    SPEED_OF_LIGHT,
    STAR_SYSTEM_MASS_MARGIN,
    SUPERMASSIVE_BLACK_HOLE_THRESHOLD,
    UNIVERSE_RADIUS,
)
from core.randomizer import Randomizer
from core.shapes import HollowSphere, Sphere
from dynamics.orbit import OrbitalParameters, OrbitMode
from dynamics.orbit_assigner import OrbitAssigner
from generation.configurators import (
    STAR_SYSTEM_BASE_RADIUS,
    StarSystemConfigurator,
    configure_location,
    configure_parent_for_child,
    default_child_orbit,
    get_configurator,
    is_supermassive_black_hole,
)
from generation.context import GenerationContext
from generation.location import CosmicLocation
from generation.structure_kind import StructureKind as K


def build(kind, seed=0, **kwargs):
    return configure_location(GenerationContext(kind, seed=seed, **kwargs))


# =============================================================================
# Test: Registry and reproducibility
# =============================================================================

class TestRegistry:
    """Strategy lookup and seed replay."""

    def test_every_concrete_kind_registered(self):
        for kind in K.__members__.values():
            if kind.is_concrete:
                assert get_configurator(kind) is not None

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            get_configurator(K.NONE)

    @pytest.mark.parametrize("kind", [K.SPIRAL_GALAXY, K.STAR_SYSTEM, K.NEBULA, K.STAR])
    def test_same_seed_same_node(self, kind):
        first, second = build(kind, seed=99), build(kind, seed=99)
        assert first.primary.mass == second.primary.mass
        assert first.primary.containing_radius == second.primary.containing_radius
        assert [c.structure_kind for c in first.children] == \
            [c.structure_kind for c in second.children]
        for a, b in zip(first.children, second.children):
            assert_allclose(a.position, b.position, rtol=0.0, atol=0.0)

    def test_different_seeds_differ(self):
        first = build(K.GALAXY_CLUSTER, seed=1).primary
        second = build(K.GALAXY_CLUSTER, seed=2).primary
        assert first.containing_radius != second.containing_radius


# =============================================================================
# Test: Large-scale structure
# =============================================================================

class TestLargeScale:
    """Universe, groups and subgroups."""

    def test_universe(self):
        universe, children = build(K.UNIVERSE)
        assert universe.containing_radius == UNIVERSE_RADIUS
        assert math.isinf(universe.mass)
        assert universe.temperature == 2.73
        assert universe.orbit is None
        assert children == []

    def test_galaxy_group_holds_subgroups(self):
        group, children = build(K.GALAXY_GROUP, seed=4)
        subgroups = [c for c in children if c.parent_id == group.id]
        assert 1 <= len(subgroups) <= 5
        assert all(s.structure_kind is K.GALAXY_SUBGROUP for s in subgroups)
        for s in subgroups:
            assert np.linalg.norm(s.position) <= group.containing_radius

    def test_subgroup_main_galaxy_at_centre(self):
        subgroup, children = build(K.GALAXY_SUBGROUP, seed=6)
        main = [c for c in children if c.parent_id == subgroup.id]
        assert len(main) == 1
        assert main[0].structure_kind in (K.SPIRAL_GALAXY, K.ELLIPTICAL_GALAXY)
        assert_allclose(main[0].position, np.zeros(3))
        assert main[0].orbit is None


# =============================================================================
# Test: Galaxies
# =============================================================================

class TestGalaxies:
    """Composite resolution, cores and mass."""

    def test_composite_resolves_to_concrete(self):
        kinds = {build(K.GALAXY, seed=s).primary.structure_kind for s in range(40)}
        assert kinds == {K.SPIRAL_GALAXY, K.ELLIPTICAL_GALAXY}

    @pytest.mark.parametrize("kind", [K.SPIRAL_GALAXY, K.ELLIPTICAL_GALAXY])
    def test_large_galaxies_have_supermassive_core(self, kind):
        galaxy, children = build(kind, seed=12)
        assert len(children) == 1
        core = children[0]
        assert is_supermassive_black_hole(core)
        assert core.name == 'Supermassive Black Hole'
        assert_allclose(core.position, np.zeros(3))
        assert galaxy.mass >= 5.0 * core.mass

    def test_dwarf_core_is_stellar(self):
        _, children = build(K.DWARF_GALAXY, seed=3)
        assert children[0].structure_kind is K.BLACK_HOLE
        assert children[0].mass < SUPERMASSIVE_BLACK_HOLE_THRESHOLD

    def test_spiral_is_flat(self):
        galaxy = build(K.SPIRAL_GALAXY, seed=8).primary
        assert galaxy.shape.axis_z < 0.05 * galaxy.shape.axis_x


# =============================================================================
# Test: Nebulae
# =============================================================================

class TestNebulae:
    """Diffuse nebulae, HII regions and planetary nebulae."""

    def test_any_nebula_resolves_to_nebula(self):
        assert build(K.ANY_NEBULA).primary.structure_kind is K.NEBULA

    def test_axes_bounded(self):
        for seed in range(30):
            shape = build(K.NEBULA, seed=seed).primary.shape
            assert max(shape.axis_x, shape.axis_y, shape.axis_z) <= NEBULA_SPACE

    def test_hii_region_is_hot(self):
        assert build(K.HII_REGION, seed=5).primary.temperature == 1.0e4

    def test_ambient_temperature_inherited(self):
        parent = CosmicLocation(K.SPIRAL_GALAXY, temperature=20.0)
        nebula = build(K.NEBULA, seed=1, parent=parent).primary
        assert nebula.temperature == 20.0

    def test_planetary_nebula_white_dwarf(self):
        nebula, children = build(K.PLANETARY_NEBULA, seed=2)
        assert len(children) == 1
        dwarf = children[0]
        assert dwarf.name == 'White Dwarf'
        assert dwarf.parent_id == nebula.id
        assert 0.5 * SOLAR_MASS <= dwarf.mass <= 1.4 * SOLAR_MASS
        assert dwarf.containing_radius < 0.02 * SOLAR_RADIUS


# =============================================================================
# Test: Stars, planets and black holes
# =============================================================================

class TestBodies:
    """Physical relations of single bodies."""

    def test_star_relations(self):
        for seed in range(20):
            star = build(K.STAR, seed=seed).primary
            m = star.mass / SOLAR_MASS
            assert 0.075 * SOLAR_MASS <= star.mass <= 150.0 * SOLAR_MASS
            exponent = 0.8 if m < 1.0 else 0.57
            assert_allclose(star.containing_radius, SOLAR_RADIUS * m ** exponent)
            assert_allclose(star.temperature, 5772.0 * m ** 0.505)

    @pytest.mark.parametrize("supermassive", [False, True])
    def test_black_hole_relations(self, supermassive):
        hole = build(K.BLACK_HOLE, seed=7, supermassive=supermassive).primary
        assert_allclose(hole.containing_radius,
                        2.0 * GRAVITATIONAL_CONSTANT * hole.mass / SPEED_OF_LIGHT ** 2)
        assert_allclose(hole.temperature, HAWKING_COEFFICIENT * SOLAR_MASS / hole.mass)
        assert is_supermassive_black_hole(hole) is supermassive

    def test_small_bodies_in_fields(self):
        cloud = CosmicLocation(K.OORT_CLOUD)
        body = build(K.PLANETOID, seed=3, parent=cloud,
                     position=np.array([4.0e15, 0.0, 0.0])).primary
        assert body.mass <= 1.0e21
        free = build(K.PLANETOID, seed=3).primary
        assert free.mass >= 3.0e22


# =============================================================================
# Test: Star systems
# =============================================================================

class TestStarSystem:
    """Primary, companions, planets and Oort cloud."""

    @pytest.mark.parametrize("seed", range(12))
    def test_structure(self, seed):
        system, children = build(K.STAR_SYSTEM, seed=seed)
        assert all(c.parent_id == system.id for c in children)

        stars = [c for c in children if c.structure_kind is K.STAR]
        primary, companions = stars[0], stars[1:]
        assert_allclose(primary.position, np.zeros(3))
        assert len(companions) <= 2
        assert_allclose(system.mass, sum(s.mass for s in stars) * STAR_SYSTEM_MASS_MARGIN)
        assert system.containing_radius >= STAR_SYSTEM_BASE_RADIUS

        for companion in companions:
            assert companion.orbit.orbited_id == primary.id
            assert system.containing_radius >= STAR_SYSTEM_BASE_RADIUS + companion.orbit.apoapsis

        planets = [c for c in children if c.structure_kind is K.PLANETOID]
        assert len(planets) <= 8
        for planet in planets:
            assert planet.orbit.orbited_id == primary.id
            assert planet.orbit.periapsis <= 1.0e13
            if companions:
                limit = min(c.orbit.periapsis for c in companions) / 3.0
                assert planet.orbit.periapsis <= limit

        clouds = [c for c in children if c.structure_kind is K.OORT_CLOUD]
        assert len(clouds) == 1
        assert isinstance(clouds[0].shape, HollowSphere)
        assert clouds[0].containing_radius == OORT_CLOUD_SPACE

    def test_planet_orbits_do_not_cross(self):
        for seed in range(10):
            _, children = build(K.STAR_SYSTEM, seed=seed)
            planets = [c for c in children if c.structure_kind is K.PLANETOID]
            for inner, outer in zip(planets, planets[1:]):
                assert outer.orbit.periapsis > inner.orbit.apoapsis

    def test_companion_count_distribution(self):
        rng = Randomizer(0)
        counts = [StarSystemConfigurator.companion_count(rng) for _ in range(4000)]
        assert set(counts) <= {0, 1, 2}
        assert_allclose(counts.count(0) / 4000.0, 0.7, atol=0.03)
        assert_allclose(counts.count(2) / 4000.0, 0.03, atol=0.01)

    def test_close_binary_period_range(self):
        rng = Randomizer(1)
        for _ in range(100):
            period = StarSystemConfigurator.close_binary_period(rng)
            assert 36000.0 <= period <= 36000.0 + 3.0 * 1.732e7


# =============================================================================
# Test: Child orbit policy
# =============================================================================

class TestDefaultChildOrbit:
    """Orbit requested for a new child when none is given."""

    def test_centre_child_has_no_orbit(self):
        parent = CosmicLocation(K.SPIRAL_GALAXY, mass=1.0e41)
        child = CosmicLocation(K.STAR_SYSTEM)
        assert default_child_orbit(parent, child, Randomizer(0)) is None
        assert default_child_orbit(None, child, Randomizer(0)) is None

    def test_galaxy_children_low_eccentricity(self):
        parent = CosmicLocation(K.DWARF_GALAXY, mass=1.0e39)
        child = CosmicLocation(K.STAR_SYSTEM, shape=Sphere(np.array([1.0e18, 0.0, 0.0]), 1.0))
        for seed in range(20):
            parameters = default_child_orbit(parent, child, Randomizer(seed))
            assert parameters.mode is OrbitMode.FROM_ECCENTRICITY
            assert 0.0 <= parameters.eccentricity <= 0.1
            assert parameters.orbited_mass == 1.0e39
            assert_allclose(parameters.orbited_position, np.zeros(3))

    def test_free_moving_children(self):
        parent = CosmicLocation(K.SUPERCLUSTER, mass=1.0e46)
        child = CosmicLocation(K.GALAXY_GROUP, shape=Sphere(np.array([1.0e24, 0.0, 0.0]), 1.0))
        assert default_child_orbit(parent, child, Randomizer(0)) is None

    def test_field_members_share_field_orbit(self):
        field = CosmicLocation(K.ASTEROID_FIELD, mass=1.0e21,
                               shape=Sphere(np.array([4.0e11, 0.0, 0.0]), 1.0e11))
        OrbitAssigner.assign_orbit(
            field, OrbitalParameters.from_eccentricity(SOLAR_MASS, np.zeros(3), 0.2),
            Randomizer(0))
        member = CosmicLocation(K.PLANETOID, shape=Sphere(np.array([1.0e10, 0.0, 0.0]), 1.0))
        parameters = default_child_orbit(field, member, Randomizer(1))
        assert parameters.orbited_mass == SOLAR_MASS
        assert_allclose(parameters.orbited_position, -field.position)
        assert_allclose(parameters.eccentricity, 0.2)


# =============================================================================
# Test: Parent around an existing child
# =============================================================================

class TestConfigureParentForChild:
    """Building a parent of a requested kind around a given node."""

    def test_child_placed_in_open_space(self):
        system = build(K.STAR_SYSTEM, seed=4).primary
        original_position = system.position.copy()
        galaxy, children = configure_parent_for_child(
            GenerationContext(K.SPIRAL_GALAXY, seed=10), system)
        placed = children[0]
        assert placed.id == system.id
        assert placed is not system
        assert placed.parent_id == galaxy.id
        assert system.parent_id is None
        assert_allclose(system.position, original_position)
        assert np.linalg.norm(placed.position) > 0.0
        assert placed.orbit is not None

    def test_core_replaces_generated_core(self):
        hole = build(K.BLACK_HOLE, seed=3, supermassive=True).primary
        galaxy, children = configure_parent_for_child(
            GenerationContext(K.ELLIPTICAL_GALAXY, seed=10), hole)
        cores = [c for c in children if c.structure_kind is K.BLACK_HOLE]
        assert len(cores) == 1
        assert cores[0].id == hole.id
        assert_allclose(cores[0].position, np.zeros(3))
        assert cores[0].orbit is None

    def test_star_becomes_system_primary(self):
        star = build(K.STAR, seed=5).primary
        system, children = configure_parent_for_child(
            GenerationContext(K.STAR_SYSTEM, seed=11), star)
        at_centre = [c for c in children
                     if c.structure_kind is K.STAR and not np.any(c.position)]
        assert [c.id for c in at_centre] == [star.id]

    @pytest.mark.parametrize("seed", range(40))
    def test_system_built_around_supplied_star(self, seed):
        """Companions and planets orbit the supplied star and every reference resolves."""
        star = build(K.STAR, seed=1000 + seed).primary
        system, children = configure_parent_for_child(
            GenerationContext(K.STAR_SYSTEM, seed=seed), star)
        ids = {system.id} | {c.id for c in children}
        for c in children:
            if c.orbit is not None and c.orbit.orbited_id is not None:
                assert c.orbit.orbited_id in ids
        for c in children:
            if c.orbit is not None and c.orbit.orbited_id == star.id:
                assert c.orbit.orbited_mass == star.mass
        stars = [c for c in children if c.structure_kind is K.STAR]
        assert_allclose(system.mass,
                        sum(s.mass for s in stars) * STAR_SYSTEM_MASS_MARGIN)

    def test_galaxy_mass_includes_supplied_core(self):
        hole = build(K.BLACK_HOLE, seed=8, supermassive=True).primary
        galaxy, children = configure_parent_for_child(
            GenerationContext(K.SPIRAL_GALAXY, seed=2), hole)
        assert children[0].id == hole.id
        assert galaxy.mass >= 5.0 * hole.mass

    def test_white_dwarf_replaced_in_planetary_nebula(self):
        star = build(K.STAR, seed=6).primary
        nebula, children = configure_parent_for_child(
            GenerationContext(K.PLANETARY_NEBULA, seed=3), star)
        assert [c.id for c in children] == [star.id]
        assert children[0].parent_id == nebula.id
        assert children[0].mass == star.mass

    def test_star_in_diffuse_nebula_goes_to_open_space(self):
        star = build(K.STAR, seed=6).primary
        nebula, children = configure_parent_for_child(
            GenerationContext(K.ANY_NEBULA, seed=3), star)
        assert nebula.structure_kind is K.NEBULA
        assert children[0].id == star.id
        assert np.linalg.norm(children[0].position) > 0.0

    def test_universe_cannot_have_parent(self):
        universe = build(K.UNIVERSE).primary
        with pytest.raises(ValueError):
            configure_parent_for_child(GenerationContext(K.SUPERCLUSTER, seed=1), universe)
