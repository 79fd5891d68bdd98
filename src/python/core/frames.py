"""
===============================================================================
COSMOGEN - Reference Frame and Angle Utilities
===============================================================================
Supports: elementary rotations, the perifocal (PQW) basis, angle
normalization and orbit orientation recovered from a single position vector.

Every orbit in the hierarchy lives in the local frame of its parent
structure.  The perifocal frame of an orbit is related to that local frame
by the classical 3-1-3 rotation through the longitude of the ascending node
(Omega), the inclination (i) and the argument of periapsis (omega):

    R_local_pqw = Rz(-Omega) * Rx(-i) * Rz(-omega)

Angles are in radians.  Inclination is kept in [0, pi]; every other angle
is kept in [0, 2*pi).

References
----------
    [1] Vallado, "Fundamentals of Astrodynamics and Applications", 4th ed.
    [2] Curtis, "Orbital Mechanics for Engineering Students", 4th ed.

===============================================================================
"""

import math
from typing import Tuple

import numpy as np

from core.constants import HALF_PI, PI, TWO_PI, ORBIT_TOLERANCE


# =============================================================================
# ANGLE NORMALIZATION
# =============================================================================

def normalize_angle(value: float) -> float:
    """
    Wrap an angle into [0, 2*pi).

    Non-finite input (an infinite mean longitude of a zero-period orbit,
    for instance) maps to 0.

    Parameters
    ----------
    value : float
        Angle in radians, any range.

    Returns
    -------
    float
        Equivalent angle in [0, 2*pi).
    """
    if not math.isfinite(value):
        return 0.0
    wrapped = math.fmod(value, TWO_PI)
    if wrapped < 0.0:
        wrapped += TWO_PI
    # fmod of a tiny negative value can round up to exactly 2*pi
    if wrapped >= TWO_PI:
        wrapped = 0.0
    return wrapped


def normalize_inclination(value: float) -> float:
    """Fold an angle into [0, pi], the canonical inclination range."""
    wrapped = normalize_angle(value)
    if wrapped > PI:
        wrapped = TWO_PI - wrapped
    return wrapped


# =============================================================================
# ELEMENTARY ROTATION MATRICES
# =============================================================================

def Rx(angle: float) -> np.ndarray:
    """
    Elementary rotation matrix about the X-axis.

        Rx(a) = | 1    0       0     |
                | 0   cos(a)  sin(a)  |
                | 0  -sin(a)  cos(a)  |
    """
    c = np.cos(angle)
    s = np.sin(angle)
    return np.array([
        [1.0, 0.0, 0.0],
        [0.0,   c,   s],
        [0.0,  -s,   c],
    ], dtype=np.float64)


def Rz(angle: float) -> np.ndarray:
    """
    Elementary rotation matrix about the Z-axis.

        Rz(a) = |  cos(a)  sin(a)  0 |
                | -sin(a)  cos(a)  0 |
                |    0       0     1 |
    """
    c = np.cos(angle)
    s = np.sin(angle)
    return np.array([
        [  c,    s,  0.0],
        [ -s,    c,  0.0],
        [0.0,  0.0,  1.0],
    ], dtype=np.float64)


# =============================================================================
# PERIFOCAL FRAME
# =============================================================================

def perifocal_to_local_matrix(longitude_ascending: float, inclination: float,
                              argument_periapsis: float) -> np.ndarray:
    """
    Rotation matrix taking perifocal (PQW) vectors into the parent frame.

    Parameters
    ----------
    longitude_ascending : float
        Longitude of the ascending node, Omega (rad).
    inclination : float
        Orbital inclination, i (rad).
    argument_periapsis : float
        Argument of periapsis, omega (rad).

    Returns
    -------
    np.ndarray
        3x3 matrix whose columns are the P, Q and W unit vectors.

    References
    ----------
    Vallado (2013), Algorithm 11.
    """
    return Rz(-longitude_ascending) @ Rx(-inclination) @ Rz(-argument_periapsis)


def perifocal_basis(longitude_ascending: float, inclination: float,
                    argument_periapsis: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Return the P (toward periapsis) and Q (90 deg ahead, in-plane) unit
    vectors of an orbit.

    Position and velocity at true anomaly nu then follow from

        r = r_mag * (cos(nu) P + sin(nu) Q)
        v = sqrt(mu/p) * (-sin(nu) P + (e + cos(nu)) Q)
    """
    R = perifocal_to_local_matrix(longitude_ascending, inclination,
                                  argument_periapsis)
    return R[:, 0].copy(), R[:, 1].copy()


# =============================================================================
# ORIENTATION FROM A POSITION VECTOR
# =============================================================================

def orientation_from_position(r_vec: np.ndarray) -> Tuple[float, float, float]:
    """
    Derive an orbit plane passing through *r_vec*.

    The plane is chosen so that *r_vec* sits at the point of greatest
    excursion from the reference plane: the inclination equals the
    elevation of *r_vec*, and the ascending node lies 90 deg behind it.
    A position in the reference plane gives inclination 0, for which the
    node is undefined and set to 0.

    Parameters
    ----------
    r_vec : np.ndarray
        3-element position relative to the barycenter (m).  Must be
        non-zero.

    Returns
    -------
    inclination : float
        In [0, pi/2] (rad).
    longitude_ascending : float
        In [0, 2*pi) (rad).
    argument_of_latitude : float
        Angle from the ascending node to *r_vec* within the plane, in
        [0, 2*pi) (rad).
    """
    r = np.asarray(r_vec, dtype=np.float64)
    r_mag = float(np.linalg.norm(r))
    if r_mag == 0.0:
        raise ValueError("Cannot derive an orbit plane from a zero vector.")

    rho = math.hypot(r[0], r[1])
    inclination = math.atan2(abs(r[2]), rho)

    if inclination < ORBIT_TOLERANCE:
        inclination = 0.0
        longitude_ascending = 0.0
    else:
        azimuth = math.atan2(r[1], r[0])
        if r[2] >= 0.0:
            longitude_ascending = normalize_angle(azimuth - HALF_PI)
        else:
            longitude_ascending = normalize_angle(azimuth + HALF_PI)

    cos_O = math.cos(longitude_ascending)
    sin_O = math.sin(longitude_ascending)
    cos_i = math.cos(inclination)
    sin_i = math.sin(inclination)
    node = np.array([cos_O, sin_O, 0.0])
    in_plane_normal = np.array([-sin_O * cos_i, cos_O * cos_i, sin_i])

    argument_of_latitude = normalize_angle(
        math.atan2(float(r @ in_plane_normal), float(r @ node))
    )
    return inclination, longitude_ascending, argument_of_latitude


def unit_vector(vec: np.ndarray) -> np.ndarray:
    """Return *vec* scaled to unit length.  Raises ValueError for zero."""
    v = np.asarray(vec, dtype=np.float64)
    norm = float(np.linalg.norm(v))
    if norm == 0.0:
        raise ValueError("Cannot normalize a zero-length vector.")
    return v / norm
