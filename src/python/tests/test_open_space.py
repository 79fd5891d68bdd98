"""
===============================================================================
COSMOGEN - Open Space Search Test Suite
===============================================================================
Tests for rejection sampling of collision-free positions: uniform, near a
target, and the outward search for the nearest free spot.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest
from numpy.testing import assert_allclose

from core.exceptions import DegenerateOrbitError
from core.randomizer import Randomizer
from core.shapes import Sphere
from generation.open_space import OpenSpaceFinder


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def finder():
    """Return a finder with a seeded random source."""
    return OpenSpaceFinder(Randomizer(55))


# =============================================================================
# Test: Uniform search
# =============================================================================

class TestFindOpenSpace:
    """Uniform candidates inside the parent."""

    def test_result_inside_and_clear(self, finder):
        occupied = [Sphere(np.array([3.0, 0.0, 0.0]), 2.0)]
        for _ in range(50):
            position = finder.find_open_space(10.0, 1.0, occupied)
            assert position is not None
            assert np.linalg.norm(position) + 1.0 <= 10.0
            assert np.linalg.norm(position - occupied[0].position) >= 3.0
            assert OpenSpaceFinder.is_open(position, 1.0, occupied)

    def test_crowded_region_returns_none(self, finder):
        """A region filled by one occupant yields no space."""
        occupied = [Sphere(np.zeros(3), 10.0)]
        assert finder.find_open_space(10.0, 1.0, occupied) is None

    def test_clearance_too_large_raises(self, finder):
        with pytest.raises(DegenerateOrbitError):
            finder.find_open_space(10.0, 10.0, [])

    def test_attempt_bound(self):
        """max_attempts bounds the number of candidates drawn."""
        draws = []

        class CountingRandomizer(Randomizer):
            def vector_within(self, radius):
                draws.append(radius)
                return super().vector_within(radius)

        finder = OpenSpaceFinder(CountingRandomizer(1), max_attempts=7)
        assert finder.find_open_space(10.0, 1.0, [Sphere(np.zeros(3), 20.0)]) is None
        assert len(draws) == 7
        assert draws[0] == 9.0

    def test_region_bounds_candidates(self, finder):
        """Candidates come from the region and still fit inside the parent."""
        area = Sphere(np.array([8.0, 0.0, 0.0]), 4.0)
        for _ in range(50):
            position = finder.find_open_space(10.0, 1.0, [], region=area)
            assert position is not None
            assert np.linalg.norm(position - area.position) + 1.0 <= 4.0
            assert np.linalg.norm(position) + 1.0 <= 10.0

    def test_clearance_too_large_for_region_raises(self, finder):
        with pytest.raises(DegenerateOrbitError):
            finder.find_open_space(10.0, 2.0, [], region=Sphere(radius=2.0))


# =============================================================================
# Test: Near-target search
# =============================================================================

class TestFindOpenSpaceNear:
    """Candidates at a distance from a target."""

    def test_distance_near_ideal(self, finder):
        target = np.zeros(3)
        distances = []
        for _ in range(100):
            position = finder.find_open_space_near(1.0e3, 1.0, [], target, 100.0)
            assert position is not None
            distances.append(np.linalg.norm(position - target))
        assert_allclose(np.mean(distances), 100.0, rtol=0.1)

    def test_respects_parent_boundary(self, finder):
        target = np.array([90.0, 0.0, 0.0])
        for _ in range(30):
            position = finder.find_open_space_near(100.0, 1.0, [], target, 5.0)
            if position is not None:
                assert np.linalg.norm(position) + 1.0 <= 100.0


# =============================================================================
# Test: Nearest open space
# =============================================================================

class TestFindNearestOpenSpace:
    """Outward search from a target."""

    def test_free_target_returned_as_is(self, finder):
        target = np.array([1.0, 2.0, 3.0])
        assert_allclose(finder.find_nearest_open_space(target, 0.5, []), target)

    def test_steps_out_of_occupied_target(self, finder):
        occupied = [Sphere(np.zeros(3), 5.0)]
        position = finder.find_nearest_open_space(np.zeros(3), 1.0, occupied)
        assert position is not None
        assert np.linalg.norm(position) >= 6.0 - 1e-9
        # Found within a few clearance steps of the occupant's edge
        assert np.linalg.norm(position) <= 8.0

    def test_containing_radius_respected(self, finder):
        occupied = [Sphere(np.zeros(3), 5.0)]
        position = finder.find_nearest_open_space(np.zeros(3), 1.0, occupied,
                                                  containing_radius=7.5)
        assert position is not None
        assert np.linalg.norm(position) + 1.0 <= 7.5

    def test_exhaustion_returns_none(self):
        finder = OpenSpaceFinder(Randomizer(2), nearest_max_attempts=3)
        occupied = [Sphere(np.zeros(3), 100.0)]
        assert finder.find_nearest_open_space(np.zeros(3), 1.0, occupied) is None

    def test_from_settings(self):
        class Settings:
            max_attempts = 12
            nearest_max_attempts = 34

        finder = OpenSpaceFinder.from_settings(Randomizer(0), Settings())
        assert finder.max_attempts == 12
        assert finder.nearest_max_attempts == 34
