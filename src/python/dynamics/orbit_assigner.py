"""
===============================================================================
COSMOGEN - Orbit Assignment
===============================================================================
Builds an Orbit for a body from one of four parameterizations and writes the
consistent velocity (and, for two modes, position) back onto the body.

Shared derivation pipeline:

    mu          = G * (M + m)
    d           = body.position - orbited_position      (separation)
    barycenter  = orbited_position + d * m / (M + m)
    r0          = d * M / (M + m)                         (barycentric)
    P, Q        = perifocal basis from (Omega, i, omega)
    p           = semi-latus rectum
    v0          = sqrt(mu / p) * (-sin(nu) P + (e + cos(nu)) Q)

Mode summary:

    circular                 e = 0, plane through the current position,
                             epoch uniform in [0, period)
    from eccentricity        current radius kept, nu uniform in [0, 2*pi),
                             a and periapsis derived from r and nu
    full elements            body moved onto the orbit at nu, barycenter
                             recomputed
    eccentricity + period    a from Kepler's third law, nu uniform, body
                             moved along its current direction onto the orbit

The body is any object exposing ``position``, ``velocity``, ``mass`` and
``orbit`` attributes; an ``axial_precession`` attribute, when present, is
subtracted from the longitude of periapsis.

References
----------
    [1] Vallado, "Fundamentals of Astrodynamics and Applications", 4th ed.,
        Algorithm 10.
    [2] Curtis, "Orbital Mechanics for Engineering Students", 4th ed., Ch. 4.

===============================================================================
"""

import logging
import math
from typing import Tuple

import numpy as np

from core.constants import ORBIT_TOLERANCE, TWO_PI
from core.exceptions import DegenerateOrbitError
from core.frames import (
    normalize_angle,
    normalize_inclination,
    orientation_from_position,
    perifocal_basis,
    unit_vector,
)
from core.randomizer import Randomizer
from dynamics.orbit import Orbit, OrbitalParameters, OrbitMode
from dynamics.orbital_mechanics import (
    mean_anomaly_from_true,
    orbital_period,
    semi_major_axis_for_period,
    standard_gravitational_parameter,
)

logger = logging.getLogger(__name__)


class OrbitAssigner:
    """
    Stateless constructors for Orbit values.

    Every method sets ``body.velocity`` and ``body.orbit``; the
    full-element and eccentricity-plus-period modes also set
    ``body.position``.  Stochastic choices (epoch phase, true anomaly) are
    drawn from the Randomizer passed in.
    """

    # =====================================================================
    # DISPATCH
    # =====================================================================

    @staticmethod
    def assign_orbit(body, parameters: OrbitalParameters, rng: Randomizer) -> Orbit:
        """
        Assign an orbit described by *parameters* to *body*.

        Parameters
        ----------
        body : object
            Orbiting body (position, velocity, mass, orbit attributes).
        parameters : OrbitalParameters
            Requested orbit; its mode selects the construction.
        rng : Randomizer
            Random source for the stochastic modes.

        Returns
        -------
        Orbit
            The orbit now stored on ``body.orbit``.
        """
        mode = parameters.mode
        if mode is OrbitMode.CIRCULAR:
            return OrbitAssigner.assign_circular_orbit(body, parameters, rng)
        if mode is OrbitMode.FROM_ECCENTRICITY:
            return OrbitAssigner.assign_orbit_from_eccentricity(body, parameters, rng)
        if mode is OrbitMode.FULL_ELEMENTS:
            return OrbitAssigner.assign_orbit_from_elements(body, parameters)
        if mode is OrbitMode.ECCENTRICITY_AND_PERIOD:
            return OrbitAssigner.assign_orbit_from_eccentricity_and_period(
                body, parameters, rng)
        raise ValueError(f"Unsupported orbit mode: {mode!r}")

    # =====================================================================
    # MODES
    # =====================================================================

    @staticmethod
    def assign_circular_orbit(body, parameters: OrbitalParameters,
                              rng: Randomizer) -> Orbit:
        """
        Circular orbit through the body's current position.

        The orbit plane passes through the barycentric position with the
        body at its point of greatest elevation; the epoch phase is drawn
        uniformly within one period, since a circle has no periapsis.
        """
        mu, mass_ratio = _mass_terms(parameters.orbited_mass, body.mass)
        separation = _separation(body, parameters)
        barycenter = parameters.orbited_position + separation * (1.0 - mass_ratio)
        r_vec = separation * mass_ratio
        radius = float(np.linalg.norm(r_vec))

        inclination, longitude_ascending, argument_of_latitude = \
            orientation_from_position(r_vec)

        period = orbital_period(radius, mu)
        epoch = rng.uniform(0.0, period)

        orbit, velocity = _finalize(
            body, parameters, barycenter, r_vec, mu,
            eccentricity=0.0, semi_major_axis=radius, periapsis=radius,
            inclination=inclination, longitude_ascending=longitude_ascending,
            argument_periapsis=argument_of_latitude, true_anomaly=0.0,
            period=period, epoch=epoch,
        )
        body.velocity = velocity
        body.orbit = orbit
        return orbit

    @staticmethod
    def assign_orbit_from_eccentricity(body, parameters: OrbitalParameters,
                                       rng: Randomizer) -> Orbit:
        """
        Orbit of a given eccentricity through the body's current position.

        The current barycentric radius is kept and the true anomaly drawn
        uniformly in [0, 2*pi); the semi-latus rectum follows from the
        orbit equation p = r * (1 + e*cos(nu)).  A parabolic request
        (e = 1) keeps a = periapsis.
        """
        mu, mass_ratio = _mass_terms(parameters.orbited_mass, body.mass)
        separation = _separation(body, parameters)
        barycenter = parameters.orbited_position + separation * (1.0 - mass_ratio)
        r_vec = separation * mass_ratio
        radius = float(np.linalg.norm(r_vec))

        eccentricity = min(parameters.eccentricity, 1.0)
        true_anomaly = rng.uniform(0.0, TWO_PI)
        p = radius * (1.0 + eccentricity * math.cos(true_anomaly))
        if p <= radius * ORBIT_TOLERANCE:
            raise DegenerateOrbitError(
                f"Semi-latus rectum vanishes for e = {eccentricity} at "
                f"nu = {true_anomaly:.6f} rad"
            )
        periapsis = p / (1.0 + eccentricity)
        semi_major_axis = _semi_major_axis(periapsis, eccentricity)

        inclination, longitude_ascending, argument_of_latitude = \
            orientation_from_position(r_vec)
        argument_periapsis = argument_of_latitude - true_anomaly

        period = orbital_period(semi_major_axis, mu)
        epoch = _time_since_periapsis(true_anomaly, eccentricity, period)

        orbit, velocity = _finalize(
            body, parameters, barycenter, r_vec, mu,
            eccentricity=eccentricity, semi_major_axis=semi_major_axis,
            periapsis=periapsis, inclination=inclination,
            longitude_ascending=longitude_ascending,
            argument_periapsis=argument_periapsis, true_anomaly=true_anomaly,
            period=period, epoch=epoch,
        )
        body.velocity = velocity
        body.orbit = orbit
        return orbit

    @staticmethod
    def assign_orbit_from_elements(body, parameters: OrbitalParameters) -> Orbit:
        """
        Orbit from a full element set; repositions the body.

        The periapsis is measured from the barycenter.  The body is placed
        at the given true anomaly and the barycenter recomputed from the
        new separation.
        """
        if not parameters.orbited_mass > 0.0:
            raise DegenerateOrbitError(
                "Repositioning onto an orbit requires a positive orbited mass, "
                f"got {parameters.orbited_mass}"
            )
        mu, mass_ratio = _mass_terms(parameters.orbited_mass, body.mass)

        eccentricity = min(parameters.eccentricity, 1.0)
        periapsis = float(parameters.periapsis)
        semi_major_axis = _semi_major_axis(periapsis, eccentricity)
        inclination = normalize_inclination(parameters.inclination)
        longitude_ascending = normalize_angle(parameters.longitude_ascending)
        argument_periapsis = normalize_angle(parameters.argument_periapsis)
        true_anomaly = normalize_angle(parameters.true_anomaly)

        P, Q = perifocal_basis(longitude_ascending, inclination, argument_periapsis)
        radius = _radius_at(periapsis, eccentricity, true_anomaly)
        r_vec = radius * (math.cos(true_anomaly) * P + math.sin(true_anomaly) * Q)

        separation = r_vec / mass_ratio
        body.position = parameters.orbited_position + separation
        barycenter = body.position - r_vec

        period = orbital_period(semi_major_axis, mu)
        epoch = _time_since_periapsis(true_anomaly, eccentricity, period)

        orbit, velocity = _finalize(
            body, parameters, barycenter, r_vec, mu,
            eccentricity=eccentricity, semi_major_axis=semi_major_axis,
            periapsis=periapsis, inclination=inclination,
            longitude_ascending=longitude_ascending,
            argument_periapsis=argument_periapsis, true_anomaly=true_anomaly,
            period=period, epoch=epoch,
        )
        body.velocity = velocity
        body.orbit = orbit
        return orbit

    @staticmethod
    def assign_orbit_from_eccentricity_and_period(body, parameters: OrbitalParameters,
                                                  rng: Randomizer) -> Orbit:
        """
        Orbit with a prescribed period; repositions the body.

        a = ((period / 2*pi)^2 * mu)^(1/3).  The true anomaly is drawn
        uniformly, the orbit plane is derived from the direction of the
        current position, and the body is moved along that direction to the
        radius the orbit equation gives at that anomaly.
        """
        if not parameters.orbited_mass > 0.0:
            raise DegenerateOrbitError(
                "Repositioning onto an orbit requires a positive orbited mass, "
                f"got {parameters.orbited_mass}"
            )
        mu, mass_ratio = _mass_terms(parameters.orbited_mass, body.mass)
        direction = unit_vector(_separation(body, parameters))

        eccentricity = min(parameters.eccentricity, 1.0)
        semi_major_axis = semi_major_axis_for_period(float(parameters.period), mu)
        periapsis = semi_major_axis if eccentricity >= 1.0 \
            else semi_major_axis * (1.0 - eccentricity)

        true_anomaly = rng.uniform(0.0, TWO_PI)
        radius = _radius_at(periapsis, eccentricity, true_anomaly)
        r_vec = direction * radius

        inclination, longitude_ascending, argument_of_latitude = \
            orientation_from_position(r_vec)
        argument_periapsis = argument_of_latitude - true_anomaly

        separation = r_vec / mass_ratio
        body.position = parameters.orbited_position + separation
        barycenter = body.position - r_vec

        period = orbital_period(semi_major_axis, mu)
        epoch = _time_since_periapsis(true_anomaly, eccentricity, period)

        orbit, velocity = _finalize(
            body, parameters, barycenter, r_vec, mu,
            eccentricity=eccentricity, semi_major_axis=semi_major_axis,
            periapsis=periapsis, inclination=inclination,
            longitude_ascending=longitude_ascending,
            argument_periapsis=argument_periapsis, true_anomaly=true_anomaly,
            period=period, epoch=epoch,
        )
        body.velocity = velocity
        body.orbit = orbit
        return orbit

    # =====================================================================
    # CIRCULARIZATION
    # =====================================================================

    @staticmethod
    def get_delta_v_for_circular_orbit(body, orbited_mass: float,
                                       orbited_position: np.ndarray) -> np.ndarray:
        """
        Velocity change that would put *body* on a circular orbit.

        The circular orbit keeps the current plane of motion (the plane of
        separation and velocity); a body at rest uses the plane derived from
        its position instead.

        Returns
        -------
        np.ndarray
            3-element delta-v (m/s).
        """
        mu, mass_ratio = _mass_terms(orbited_mass, body.mass)
        separation = np.asarray(body.position, dtype=np.float64) - \
            np.asarray(orbited_position, dtype=np.float64)
        r_vec = separation * mass_ratio
        radius = float(np.linalg.norm(r_vec))
        if radius == 0.0:
            raise DegenerateOrbitError("Body coincides with the orbited position.")

        velocity = np.asarray(body.velocity, dtype=np.float64)
        h = np.cross(r_vec, velocity)
        if float(np.linalg.norm(h)) > ORBIT_TOLERANCE * radius * max(
                float(np.linalg.norm(velocity)), 1.0):
            along_track = np.cross(unit_vector(h), r_vec / radius)
        else:
            inclination, longitude_ascending, u = orientation_from_position(r_vec)
            _, along_track = perifocal_basis(longitude_ascending, inclination, u)

        return math.sqrt(mu / radius) * along_track - velocity


# =============================================================================
# SHARED DERIVATION HELPERS
# =============================================================================

def _mass_terms(orbited_mass: float, orbiting_mass: float) -> Tuple[float, float]:
    """Return (mu, M / (M + m)); fails fast on zero combined mass."""
    mu = standard_gravitational_parameter(orbited_mass, orbiting_mass)
    ratio = orbited_mass / (orbited_mass + orbiting_mass)
    if ratio <= 0.0:
        raise DegenerateOrbitError(
            f"Orbited mass must be positive, got {orbited_mass:.4e} kg"
        )
    return mu, ratio


def _separation(body, parameters: OrbitalParameters) -> np.ndarray:
    separation = np.asarray(body.position, dtype=np.float64) - parameters.orbited_position
    if float(np.linalg.norm(separation)) == 0.0:
        raise DegenerateOrbitError(
            "Orbiting body coincides with the orbited position; the orbit "
            "plane is undefined."
        )
    return separation


def _semi_major_axis(periapsis: float, eccentricity: float) -> float:
    if eccentricity >= 1.0:
        return periapsis
    return periapsis / (1.0 - eccentricity)


def _radius_at(periapsis: float, eccentricity: float, true_anomaly: float) -> float:
    """Orbit equation r = p / (1 + e*cos(nu)) with p = q * (1 + e)."""
    denominator = 1.0 + eccentricity * math.cos(true_anomaly)
    if denominator <= ORBIT_TOLERANCE:
        raise DegenerateOrbitError(
            f"True anomaly {true_anomaly:.6f} rad is unreachable for e = {eccentricity}"
        )
    return periapsis * (1.0 + eccentricity) / denominator


def _time_since_periapsis(true_anomaly: float, eccentricity: float,
                          period: float) -> float:
    mean_anomaly = mean_anomaly_from_true(true_anomaly, eccentricity)
    return mean_anomaly / TWO_PI * period


def _finalize(body, parameters: OrbitalParameters, barycenter: np.ndarray,
              r_vec: np.ndarray, mu: float, *, eccentricity: float,
              semi_major_axis: float, periapsis: float, inclination: float,
              longitude_ascending: float, argument_periapsis: float,
              true_anomaly: float, period: float, epoch: float,
              ) -> Tuple[Orbit, np.ndarray]:
    """Compute v0 and assemble the Orbit value."""
    inclination = normalize_inclination(inclination)
    longitude_ascending = normalize_angle(longitude_ascending)
    argument_periapsis = normalize_angle(argument_periapsis)
    true_anomaly = normalize_angle(true_anomaly)

    P, Q = perifocal_basis(longitude_ascending, inclination, argument_periapsis)
    p = periapsis * (1.0 + eccentricity)
    velocity = math.sqrt(mu / p) * (
        -math.sin(true_anomaly) * P + (eccentricity + math.cos(true_anomaly)) * Q
    )

    precession = getattr(body, 'axial_precession', None) or 0.0
    longitude_of_periapsis = normalize_angle(
        longitude_ascending + argument_periapsis - precession
    )
    mean_anomaly = mean_anomaly_from_true(true_anomaly, eccentricity)

    orbit = Orbit(
        orbited_id=parameters.orbited_id,
        orbited_mass=parameters.orbited_mass,
        orbited_position=parameters.orbited_position,
        barycenter=barycenter,
        eccentricity=eccentricity,
        inclination=inclination,
        longitude_ascending=longitude_ascending,
        argument_periapsis=argument_periapsis,
        longitude_of_periapsis=longitude_of_periapsis,
        mean_longitude=longitude_of_periapsis + mean_anomaly,
        true_anomaly=true_anomaly,
        periapsis=periapsis,
        semi_major_axis=semi_major_axis,
        radius=float(np.linalg.norm(r_vec)),
        standard_gravitational_parameter=mu,
        mean_motion=TWO_PI / period,
        period=period,
        r0=r_vec,
        v0=velocity,
        epoch=epoch,
    )
    logger.debug("Assigned %r", orbit)
    return orbit, velocity
