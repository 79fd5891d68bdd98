"""
===============================================================================
COSMOGEN - Generation Model Test Suite
===============================================================================
Structure kinds, child definitions, locations, the location store and the
context/result pair passed to configuration strategies.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from core.constants import AU, EARTH_MASS, SOLAR_MASS
from core.randomizer import Randomizer
from core.shapes import Sphere
from dynamics.orbit import OrbitalParameters
from dynamics.orbit_assigner import OrbitAssigner
from dynamics.orbital_mechanics import UniversalVariablePropagator
from generation.child_definition import ChildDefinition
from generation.context import GenerationContext, GenerationResult
from generation.location import CosmicLocation
from generation.location_store import LocationStore
from generation.structure_kind import StructureKind


# =============================================================================
# Test: Structure kinds
# =============================================================================

class TestStructureKind:
    """Labels, parsing and composite kinds."""

    def test_concrete_and_composite(self):
        assert StructureKind.STAR_SYSTEM.is_concrete
        assert not StructureKind.GALAXY.is_concrete
        assert not StructureKind.NONE.is_concrete

    def test_labels(self):
        assert StructureKind.GLOBULAR_CLUSTER.label == 'Globular Cluster'
        assert StructureKind.HII_REGION.label == 'HII Region'

    @pytest.mark.parametrize("text,kind", [
        ('star-system', StructureKind.STAR_SYSTEM),
        ('Spiral Galaxy', StructureKind.SPIRAL_GALAXY),
        ('galaxy', StructureKind.GALAXY),
    ])
    def test_parse(self, text, kind):
        assert StructureKind.parse(text) is kind

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            StructureKind.parse('wormhole')

    def test_galaxy_includes_its_parts(self):
        assert StructureKind.DWARF_GALAXY & StructureKind.GALAXY
        assert not StructureKind.NEBULA & StructureKind.GALAXY


# =============================================================================
# Test: Child definitions
# =============================================================================

class TestChildDefinition:
    """Density model and kind matching."""

    def test_weight_is_inverse_density(self):
        definition = ChildDefinition(1.0, 4.0e-10, StructureKind.STAR_SYSTEM)
        assert_allclose(definition.weight, 2.5e9)
        assert math.isinf(ChildDefinition(1.0, 0.0).weight)

    def test_expected_count(self):
        definition = ChildDefinition(1.0, 1.0e-60, StructureKind.STAR)
        assert_allclose(definition.expected_count(4.0e60), 4.0)
        assert ChildDefinition(1.0, 0.0).expected_count(1.0e60) == 0.0

    @pytest.mark.parametrize("density,clearance", [(-1.0, 1.0), (1.0, -1.0), (math.nan, 1.0)])
    def test_invalid(self, density, clearance):
        with pytest.raises(ValueError):
            ChildDefinition(clearance, density)

    def test_satisfied_by_shared_kind(self):
        galaxies = ChildDefinition(1.0, 1.0, StructureKind.GALAXY)
        dwarfs = ChildDefinition(1.0, 1.0, StructureKind.DWARF_GALAXY)
        stars = ChildDefinition(1.0, 1.0, StructureKind.STAR)
        assert galaxies.is_satisfied_by(dwarfs)
        assert not galaxies.is_satisfied_by(stars)

    def test_matches_location(self):
        galaxies = ChildDefinition(1.0, 1.0, StructureKind.GALAXY)
        assert galaxies.matches(CosmicLocation(StructureKind.ELLIPTICAL_GALAXY))
        assert not galaxies.matches(CosmicLocation(StructureKind.NEBULA))


# =============================================================================
# Test: Locations and store
# =============================================================================

class TestLocation:
    """Positions, identifiers and the store."""

    def test_position_moves_shape(self):
        location = CosmicLocation(StructureKind.STAR, shape=Sphere(radius=7.0e8))
        location.position = np.array([1.0, 2.0, 3.0])
        assert_allclose(location.shape.position, [1.0, 2.0, 3.0])
        assert location.shape.radius == 7.0e8
        assert location.containing_radius == 7.0e8

    def test_ids_are_unique(self):
        ids = {CosmicLocation(StructureKind.STAR).id for _ in range(100)}
        assert len(ids) == 100

    def test_stationary_without_orbit(self):
        location = CosmicLocation(StructureKind.NEBULA, shape=Sphere(np.array([5.0, 0.0, 0.0]), 1.0))
        assert_allclose(location.get_position_at_time(1.0e9), [5.0, 0.0, 0.0])

    def test_store_children_and_removal(self):
        parent = CosmicLocation(StructureKind.GALAXY_SUBGROUP)
        children = [CosmicLocation(StructureKind.DWARF_GALAXY, parent_id=parent.id)
                    for _ in range(3)]
        store = LocationStore([parent] + children)
        assert len(store) == 4
        assert store.children_of(parent.id) == children
        assert store.children_of(None) == []
        assert store.remove(children[0].id) is children[0]
        assert children[0].id not in store
        assert store.remove('missing') is None

    def test_absolute_position_sums_chain(self):
        root = CosmicLocation(StructureKind.GALAXY, shape=Sphere(np.array([10.0, 0.0, 0.0]), 100.0))
        middle = CosmicLocation(StructureKind.STAR_SYSTEM, parent_id=root.id,
                                shape=Sphere(np.array([0.0, 5.0, 0.0]), 10.0))
        leaf = CosmicLocation(StructureKind.STAR, parent_id=middle.id,
                              shape=Sphere(np.array([0.0, 0.0, 1.0]), 1.0))
        store = LocationStore([root, middle, leaf])
        assert_allclose(leaf.get_absolute_position(store), [10.0, 5.0, 1.0])


class RecordingPropagator(UniversalVariablePropagator):
    """Propagator that counts its calls."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = 0

    def propagate(self, r0, v0, mu, dt):
        self.calls += 1
        return super().propagate(r0, v0, mu, dt)


class TestMultiLevelPropagation:
    """A planet follows the star it orbits while that star orbits a companion."""

    @pytest.fixture
    def system(self):
        system = CosmicLocation(StructureKind.STAR_SYSTEM)
        companion = CosmicLocation(StructureKind.STAR, mass=SOLAR_MASS, parent_id=system.id)
        star = CosmicLocation(StructureKind.STAR, mass=0.5 * SOLAR_MASS, parent_id=system.id,
                              shape=Sphere(np.array([40.0 * AU, 0.0, 0.0]), 5.0e8))
        planet = CosmicLocation(StructureKind.PLANETOID, mass=EARTH_MASS, parent_id=system.id,
                                shape=Sphere(np.array([41.0 * AU, 0.0, 0.0]), 6.0e6))
        rng = Randomizer(31)
        OrbitAssigner.assign_orbit(
            star, OrbitalParameters.circular(companion.mass, companion.position, companion.id), rng)
        OrbitAssigner.assign_orbit(
            planet, OrbitalParameters.circular(star.mass, star.position, star.id), rng)
        return LocationStore([system, companion, star, planet]), star, planet

    def test_barycenter_follows_orbited_body(self, system):
        store, star, planet = system
        moment = 2.0e8
        star_now = star.get_position_at_time(moment, store)
        r, _ = planet.orbit.get_state_vectors_at_moment(moment)
        expected = planet.orbit.barycenter + (star_now - planet.orbit.orbited_position) + r
        assert_allclose(planet.get_position_at_time(moment, store), expected)

    def test_without_store_barycenter_is_fixed(self, system):
        _, _, planet = system
        moment = 2.0e8
        r, _ = planet.orbit.get_state_vectors_at_moment(moment)
        assert_allclose(planet.get_position_at_time(moment), planet.orbit.barycenter + r)

    def test_epoch_position_unchanged(self, system):
        store, star, planet = system
        assert_allclose(star.get_position_at_time(star.orbit.epoch, store), star.position,
                        rtol=1e-9)

    def test_supplied_propagator_used_along_chain(self, system):
        store, star, planet = system
        propagator = RecordingPropagator(max_iterations=50)
        position = planet.get_position_at_time(2.0e8, store, propagator)
        # One solve for the planet, one for the star it orbits
        assert propagator.calls == 2
        assert_allclose(position, planet.get_position_at_time(2.0e8, store))

    def test_absolute_position_at_moment(self, system):
        store, star, planet = system
        propagator = RecordingPropagator()
        moment = 2.0e8
        absolute = planet.get_absolute_position(store, moment, propagator)
        assert_allclose(absolute, planet.get_position_at_time(moment, store))
        assert propagator.calls == 2
        assert_allclose(planet.get_absolute_position(store), planet.position)


# =============================================================================
# Test: Context and result
# =============================================================================

class TestContext:
    """GenerationContext defaults and GenerationResult unpacking."""

    def test_inherits_parent_temperature(self):
        parent = CosmicLocation(StructureKind.NEBULA, temperature=40.0)
        context = GenerationContext(StructureKind.STAR_SYSTEM, seed=5, parent=parent)
        assert context.ambient_temperature == 40.0
        assert context.parent_id == parent.id

    def test_randomizer_replays_seed(self):
        context = GenerationContext(StructureKind.STAR, seed=77)
        assert context.randomizer().uniform() == context.randomizer().uniform()

    def test_result_unpacks(self):
        primary = CosmicLocation(StructureKind.STAR_SYSTEM)
        child = CosmicLocation(StructureKind.STAR, parent_id=primary.id)
        result = GenerationResult(primary, [child])
        node, children = result
        assert node is primary
        assert children == [child]
        assert result.locations() == [primary, child]

    def test_empty_result_is_falsy(self):
        assert not GenerationResult(None)
        assert GenerationResult(None).locations() == []
