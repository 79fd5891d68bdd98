"""
===============================================================================
COSMOGEN - Reference Frame Test Suite
===============================================================================
Tests for angle normalization, the perifocal basis and orbit orientation
recovered from a position vector.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from core.frames import (
    normalize_angle,
    normalize_inclination,
    orientation_from_position,
    perifocal_basis,
    perifocal_to_local_matrix,
    unit_vector,
)


# =============================================================================
# Test: Angle normalization
# =============================================================================

class TestNormalizeAngle:
    """Tests for wrapping angles into [0, 2*pi)."""

    @pytest.mark.parametrize("value", [-10.0, -math.pi, -1e-12, 0.0, 1.0,
                                       2.0 * math.pi, 7.5, 100.0])
    def test_range(self, value):
        """Every finite input lands in [0, 2*pi)."""
        wrapped = normalize_angle(value)
        assert 0.0 <= wrapped < 2.0 * math.pi

    def test_negative_wraps_forward(self):
        """-0.1 rad is 2*pi - 0.1."""
        assert_allclose(normalize_angle(-0.1), 2.0 * math.pi - 0.1, rtol=1e-14)

    def test_full_turn_is_zero(self):
        """Exactly 2*pi wraps to 0."""
        assert normalize_angle(2.0 * math.pi) == 0.0

    def test_non_finite_is_zero(self):
        """Infinite and NaN angles map to 0."""
        assert normalize_angle(math.inf) == 0.0
        assert normalize_angle(math.nan) == 0.0

    def test_inclination_folds_into_half_turn(self):
        """An inclination of 1.5*pi folds back to 0.5*pi."""
        assert_allclose(normalize_inclination(1.5 * math.pi), 0.5 * math.pi, rtol=1e-14)
        assert 0.0 <= normalize_inclination(-2.0) <= math.pi


# =============================================================================
# Test: Perifocal basis
# =============================================================================

class TestPerifocalBasis:
    """Tests for the PQW rotation."""

    def test_matrix_is_orthonormal(self):
        """The perifocal-to-local matrix is a proper rotation."""
        R = perifocal_to_local_matrix(0.7, 1.1, 2.3)
        assert_allclose(R @ R.T, np.eye(3), atol=1e-14)
        assert_allclose(np.linalg.det(R), 1.0, atol=1e-14)

    def test_zero_angles_give_identity_axes(self):
        """With all angles zero, P is x and Q is y."""
        P, Q = perifocal_basis(0.0, 0.0, 0.0)
        assert_allclose(P, [1.0, 0.0, 0.0], atol=1e-15)
        assert_allclose(Q, [0.0, 1.0, 0.0], atol=1e-15)

    def test_inclination_tilts_q(self):
        """A 90 deg inclination turns Q onto the z axis."""
        _, Q = perifocal_basis(0.0, math.pi / 2.0, 0.0)
        assert_allclose(Q, [0.0, 0.0, 1.0], atol=1e-15)


# =============================================================================
# Test: Orientation from position
# =============================================================================

class TestOrientationFromPosition:
    """Tests for deriving an orbit plane through a position."""

    @pytest.mark.parametrize("r_vec", [
        [1.0, 0.0, 0.0],
        [1.0, 2.0, 3.0],
        [-4.0, 1.0, -2.0],
        [0.0, 0.0, 5.0],
        [3.0, -3.0, 0.0],
    ])
    def test_position_lies_on_plane(self, r_vec):
        """r = |r| (cos u P + sin u Q) with omega = u."""
        r = np.array(r_vec, dtype=float)
        inclination, node, u = orientation_from_position(r)
        P, Q = perifocal_basis(node, inclination, u)
        assert_allclose(np.linalg.norm(r) * P, r, atol=1e-12)

    def test_reference_plane_has_zero_node(self):
        """A position in the reference plane gives i = 0 and Omega = 0."""
        inclination, node, u = orientation_from_position(np.array([0.0, 2.0, 0.0]))
        assert inclination == 0.0
        assert node == 0.0
        assert_allclose(u, math.pi / 2.0, rtol=1e-14)

    def test_zero_vector_rejected(self):
        """No plane passes through the origin alone."""
        with pytest.raises(ValueError):
            orientation_from_position(np.zeros(3))

    def test_unit_vector(self):
        assert_allclose(unit_vector(np.array([3.0, 0.0, 4.0])), [0.6, 0.0, 0.8])
        with pytest.raises(ValueError):
            unit_vector(np.zeros(3))
