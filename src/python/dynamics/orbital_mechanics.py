"""
===============================================================================
COSMOGEN - Orbital Mechanics Engine
===============================================================================
Universal-variable Kepler propagation and the closed-form two-body relations
used by the orbit model.

This module provides:

    1. **Stumpff functions** -- C(z) and S(z), with series expansions near
       z = 0 and trigonometric / hyperbolic forms elsewhere.

    2. **Universal-variable propagation** -- Newton-Raphson solution of the
       universal Kepler equation followed by the Lagrange f, g, fdot, gdot
       coefficients.  Valid for circular, elliptic, parabolic and hyperbolic
       motion with one code path.

    3. **Orbit relations** -- vis-viva, Kepler's third law (both ways),
       Hill sphere, mutual Hill sphere, sphere of influence, and the
       true / eccentric / mean anomaly conversions.

All quantities are SI (m, m/s, s, kg) and expressed in the local frame of
the parent structure.  Positions returned by the propagator are relative to
the two-body barycenter.

References
----------
    [1] Vallado, "Fundamentals of Astrodynamics and Applications", 4th ed.
    [2] Bate, Mueller & White, "Fundamentals of Astrodynamics", Dover.
    [3] Curtis, "Orbital Mechanics for Engineering Students", 4th ed.,
        Algorithms 3.3 and 3.4.
    [4] Hamilton & Burns, "Orbital stability zones about asteroids",
        Icarus, 1992 (mutual Hill radius).

===============================================================================
"""

import logging
import math
from typing import Tuple

import numpy as np

from core.constants import (
    GRAVITATIONAL_CONSTANT,
    KEPLER_MAX_ITERATIONS,
    KEPLER_TOLERANCE,
    STUMPFF_SERIES_THRESHOLD,
    TWO_PI,
)
from core.exceptions import ConvergenceError, DegenerateOrbitError
from core.frames import normalize_angle

logger = logging.getLogger(__name__)


# =============================================================================
# STUMPFF FUNCTIONS
# =============================================================================

def stumpff_c(z: float) -> float:
    """
    Stumpff function C(z).

        C(z) = (1 - cos(sqrt(z))) / z          for z > 0
             = (cosh(sqrt(-z)) - 1) / (-z)     for z < 0
             = 1/2 - z/24 + z^2/720 - ...      near z = 0

    The series is used for |z| below STUMPFF_SERIES_THRESHOLD, where the
    closed forms lose precision to cancellation.
    """
    if abs(z) < STUMPFF_SERIES_THRESHOLD:
        return 0.5 - z / 24.0 + z * z / 720.0 - z * z * z / 40320.0
    if z > 0.0:
        sz = math.sqrt(z)
        return (1.0 - math.cos(sz)) / z
    sz = math.sqrt(-z)
    return (math.cosh(sz) - 1.0) / (-z)


def stumpff_s(z: float) -> float:
    """
    Stumpff function S(z).

        S(z) = (sqrt(z) - sin(sqrt(z))) / z^(3/2)        for z > 0
             = (sinh(sqrt(-z)) - sqrt(-z)) / (-z)^(3/2)  for z < 0
             = 1/6 - z/120 + z^2/5040 - ...              near z = 0
    """
    if abs(z) < STUMPFF_SERIES_THRESHOLD:
        return 1.0 / 6.0 - z / 120.0 + z * z / 5040.0 - z * z * z / 362880.0
    if z > 0.0:
        sz = math.sqrt(z)
        return (sz - math.sin(sz)) / (z * sz)
    sz = math.sqrt(-z)
    return (math.sinh(sz) - sz) / ((-z) * sz)


# =============================================================================
# UNIVERSAL-VARIABLE PROPAGATOR
# =============================================================================

class UniversalVariablePropagator:
    """
    Two-body state propagation by the universal-variable method.

    The universal Kepler equation in the universal anomaly x is

        F(x) = sigma0 * x^2 * C(z) + (1 - alpha*r0) * x^3 * S(z)
               + r0 * x - sqrt(mu) * dt

    with z = alpha * x^2, sigma0 = (r0 . v0) / sqrt(mu) and
    alpha = 2/|r0| - |v0|^2/mu the reciprocal semi-major axis.  Its
    derivative dF/dx equals the orbital radius at x, so Newton's method is
    well behaved from the initial guess x0 = sqrt(mu) * |alpha| * dt.

    Parameters
    ----------
    tolerance : float
        Convergence threshold on |F/F'|, relative to max(1, |x|).
    max_iterations : int
        Newton steps allowed before ConvergenceError is raised.
    """

    def __init__(self, tolerance: float = KEPLER_TOLERANCE,
                 max_iterations: int = KEPLER_MAX_ITERATIONS) -> None:
        if tolerance <= 0.0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
        self.tolerance = tolerance
        self.max_iterations = max_iterations

    @classmethod
    def from_settings(cls, settings) -> 'UniversalVariablePropagator':
        """Build from a core.config.SolverSettings instance."""
        return cls(tolerance=settings.tolerance,
                   max_iterations=settings.max_iterations)

    def solve_universal_anomaly(
        self, r0_mag: float, sigma0: float, alpha: float,
        sqrt_mu: float, dt: float,
    ) -> float:
        """
        Solve the universal Kepler equation for x.

        Parameters
        ----------
        r0_mag : float
            |r0| at the start of the interval (m).
        sigma0 : float
            (r0 . v0) / sqrt(mu) (m^0.5).
        alpha : float
            Reciprocal semi-major axis (1/m).  Zero for parabolic motion,
            negative for hyperbolic.
        sqrt_mu : float
            Square root of the gravitational parameter.
        dt : float
            Propagation interval (s).

        Returns
        -------
        float
            Universal anomaly x (m^0.5).

        Raises
        ------
        ConvergenceError
            If |F/F'| does not reach the tolerance within max_iterations.
        """
        energy_term = 1.0 - alpha * r0_mag
        x = sqrt_mu * abs(alpha) * dt
        if alpha == 0.0:
            # Parabolic: the linear term alone gives a usable start.
            x = sqrt_mu * dt / r0_mag

        ratio = float('inf')
        for iteration in range(1, self.max_iterations + 1):
            x2 = x * x
            z = alpha * x2
            c = stumpff_c(z)
            s = stumpff_s(z)

            F = (sigma0 * x2 * c + energy_term * x2 * x * s
                 + r0_mag * x - sqrt_mu * dt)
            dF = (sigma0 * x * (1.0 - z * s) + energy_term * x2 * c + r0_mag)

            ratio = F / dF
            x -= ratio
            if abs(ratio) <= self.tolerance * max(1.0, abs(x)):
                logger.debug("Universal anomaly converged in %d iterations", iteration)
                return x

        raise ConvergenceError(
            f"Universal Kepler equation did not converge in "
            f"{self.max_iterations} iterations (|ratio| = {abs(ratio):.3e}, "
            f"alpha = {alpha:.3e}, dt = {dt:.3e} s)",
            iterations=self.max_iterations,
            residual=abs(ratio),
        )

    def propagate(
        self, r0: np.ndarray, v0: np.ndarray, mu: float, dt: float,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Advance a two-body state by *dt* seconds.

        Parameters
        ----------
        r0 : np.ndarray
            3-element position relative to the barycenter (m).
        v0 : np.ndarray
            3-element velocity relative to the barycenter (m/s).
        mu : float
            Gravitational parameter G*(M + m) (m^3/s^2).
        dt : float
            Elapsed time (s).  May be negative.

        Returns
        -------
        position : np.ndarray
            3-element position relative to the barycenter (m).
        velocity : np.ndarray
            3-element velocity relative to the barycenter (m/s).

        Raises
        ------
        DegenerateOrbitError
            If mu <= 0 or r0 is the zero vector.
        ConvergenceError
            If the Newton iteration fails to converge.

        References
        ----------
        Curtis (2020), Algorithms 3.3 and 3.4.
        """
        r0 = np.asarray(r0, dtype=np.float64)
        v0 = np.asarray(v0, dtype=np.float64)
        if mu <= 0.0:
            raise DegenerateOrbitError(f"Gravitational parameter must be positive, got {mu}")
        r0_mag = float(np.linalg.norm(r0))
        if r0_mag == 0.0:
            raise DegenerateOrbitError("Cannot propagate from a zero position vector.")
        if dt == 0.0:
            return r0.copy(), v0.copy()

        sqrt_mu = math.sqrt(mu)
        v0_sq = float(v0 @ v0)
        alpha = 2.0 / r0_mag - v0_sq / mu
        sigma0 = float(r0 @ v0) / sqrt_mu

        x = self.solve_universal_anomaly(r0_mag, sigma0, alpha, sqrt_mu, dt)

        # --- Lagrange coefficients ---
        x2 = x * x
        x3 = x2 * x
        z = alpha * x2
        c = stumpff_c(z)
        s = stumpff_s(z)

        f = 1.0 - x2 / r0_mag * c
        g = dt - x3 * s / sqrt_mu
        position = f * r0 + g * v0
        r_mag = float(np.linalg.norm(position))

        f_dot = sqrt_mu / (r_mag * r0_mag) * (alpha * x3 * s - x)
        g_dot = 1.0 - x2 / r_mag * c
        velocity = f_dot * r0 + g_dot * v0

        return position, velocity


# =============================================================================
# ORBIT RELATIONS
# =============================================================================

def standard_gravitational_parameter(orbited_mass: float, orbiting_mass: float) -> float:
    """
    mu = G * (M + m) for the two-body system.

    Raises
    ------
    DegenerateOrbitError
        If the combined mass is zero (or negative).
    """
    total = orbited_mass + orbiting_mass
    if total <= 0.0:
        raise DegenerateOrbitError(
            f"Combined mass must be positive, got M + m = {total:.4e} kg"
        )
    return GRAVITATIONAL_CONSTANT * total


def vis_viva(r: float, a: float, mu: float) -> float:
    """
    Orbital speed from the vis-viva equation, v = sqrt(mu * (2/r - 1/a)).

    An infinite *a* gives the parabolic (escape) speed.
    """
    inverse_a = 0.0 if math.isinf(a) else 1.0 / a
    return math.sqrt(max(mu * (2.0 / r - inverse_a), 0.0))


def orbital_period(a: float, mu: float) -> float:
    """
    Kepler's third law, T = 2*pi * sqrt(a^3 / mu).

    Raises
    ------
    DegenerateOrbitError
        If a <= 0 or mu <= 0.
    """
    if a <= 0.0 or mu <= 0.0:
        raise DegenerateOrbitError(
            f"Orbital period requires a > 0 and mu > 0 (got a = {a:.4e} m, "
            f"mu = {mu:.4e} m^3/s^2)"
        )
    return TWO_PI * math.sqrt(a ** 3 / mu)


def semi_major_axis_for_period(period: float, mu: float) -> float:
    """Invert Kepler's third law: a = ((T / 2*pi)^2 * mu)^(1/3)."""
    if period <= 0.0:
        raise DegenerateOrbitError(f"Period must be positive, got {period:.4e} s")
    return float(np.cbrt((period / TWO_PI) ** 2 * mu))


def hill_sphere_radius(orbiting_mass: float, orbited_mass: float,
                       semi_major_axis: float, eccentricity: float) -> float:
    """
    Approximate Hill sphere radius of an orbiting body.

        r_H = a * (1 - e) * cbrt(m / (3 M))
    """
    return float(semi_major_axis * (1.0 - eccentricity)
                 * np.cbrt(orbiting_mass / (3.0 * orbited_mass)))


def mutual_hill_sphere_radius(orbiting_mass: float, other_mass: float,
                              orbited_mass: float, semi_major_axis: float) -> float:
    """
    Mutual Hill radius of two bodies on neighbouring orbits.

        r_MH = cbrt((m1 + m2) / (3 M)) * a
    """
    return float(np.cbrt((orbiting_mass + other_mass) / (3.0 * orbited_mass))
                 * semi_major_axis)


def sphere_of_influence(semi_major_axis: float, orbiting_mass: float,
                        orbited_mass: float) -> float:
    """Laplace sphere of influence, r_SOI = a * (m / M)^(2/5)."""
    return semi_major_axis * (orbiting_mass / orbited_mass) ** (2.0 / 5.0)


def eccentric_anomaly_from_true(true_anomaly: float, eccentricity: float) -> float:
    """
    E = atan2(sqrt(1 - e^2) * sin(nu), e + cos(nu)).

    Defined for e < 1.  Returned in (-pi, pi].
    """
    return math.atan2(math.sqrt(max(1.0 - eccentricity * eccentricity, 0.0))
                      * math.sin(true_anomaly),
                      eccentricity + math.cos(true_anomaly))


def mean_anomaly_from_eccentric(eccentric_anomaly: float, eccentricity: float) -> float:
    """Kepler's equation, M = E - e*sin(E)."""
    return eccentric_anomaly - eccentricity * math.sin(eccentric_anomaly)


def mean_anomaly_from_true(true_anomaly: float, eccentricity: float) -> float:
    """Mean anomaly in [0, 2*pi) corresponding to a true anomaly."""
    eccentric = eccentric_anomaly_from_true(true_anomaly, eccentricity)
    return normalize_angle(mean_anomaly_from_eccentric(eccentric, eccentricity))
