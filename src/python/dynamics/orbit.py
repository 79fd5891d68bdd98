"""
===============================================================================
COSMOGEN - Orbit Value Type
===============================================================================
Immutable description of one two-body Kepler orbit and the operations that
evaluate it in time.

An Orbit stores the orbiting body's state (r0, v0) relative to the two-body
barycenter at its epoch, together with the classical elements derived from
that state.  The epoch is a moment on the simulation clock: propagating to
the epoch returns (r0, v0), and the epoch value itself equals the time that
had elapsed since the most recent periapsis passage when the orbit was
defined (for circular orbits, which have no periapsis, an arbitrary phase).

Orbits are never mutated.  Changing an orbit means building a new one with
dynamics.orbit_assigner and assigning it to the body.

Time conventions:

    t       -- seconds elapsed since the epoch state (r0, v0)
    moment  -- absolute simulation clock time (s)
    d       -- a duration, reduced modulo the period

All vectors are in the local frame of the parent structure.
===============================================================================
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from core.constants import ORBIT_TOLERANCE
from core.exceptions import DegenerateOrbitError
from core.frames import normalize_angle, normalize_inclination
from dynamics.orbital_mechanics import (
    UniversalVariablePropagator,
    eccentric_anomaly_from_true,
    hill_sphere_radius,
    mean_anomaly_from_true,
    mutual_hill_sphere_radius,
    sphere_of_influence,
)

_DEFAULT_PROPAGATOR = UniversalVariablePropagator()


def _frozen_vector(value) -> np.ndarray:
    vec = np.array(value, dtype=np.float64).reshape(3)
    vec.setflags(write=False)
    return vec


# =============================================================================
# ORBITAL PARAMETERS
# =============================================================================

class OrbitMode(Enum):
    """The four supported ways of specifying a new orbit."""
    CIRCULAR = 'circular'
    FROM_ECCENTRICITY = 'from_eccentricity'
    FULL_ELEMENTS = 'full_elements'
    ECCENTRICITY_AND_PERIOD = 'eccentricity_and_period'


@dataclass(frozen=True, eq=False)
class OrbitalParameters:
    """
    Request for an orbit about a primary body, in one of four modes.

    Build instances with the classmethod constructors; each fills in only
    the fields its mode uses.

    Attributes
    ----------
    orbited_mass : float
        Mass of the primary (kg).
    orbited_position : np.ndarray
        Position of the primary in the shared parent frame (m).
    mode : OrbitMode
    orbited_id : str, optional
        Identifier of the primary, used to follow it during multi-level
        position propagation.
    eccentricity, periapsis, inclination, longitude_ascending,
    argument_periapsis, true_anomaly, period
        Element values; see the constructors for which mode reads which.
    """
    orbited_mass: float
    orbited_position: np.ndarray
    mode: OrbitMode
    orbited_id: Optional[str] = None
    eccentricity: float = 0.0
    periapsis: Optional[float] = None
    inclination: float = 0.0
    longitude_ascending: float = 0.0
    argument_periapsis: float = 0.0
    true_anomaly: float = 0.0
    period: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, 'orbited_position',
                           _frozen_vector(self.orbited_position))
        if math.isnan(self.eccentricity):
            raise ValueError("Eccentricity must be a number, got nan")
        # Only the magnitude is meaningful
        object.__setattr__(self, 'eccentricity', abs(self.eccentricity))
        if self.mode is OrbitMode.FULL_ELEMENTS:
            if self.periapsis is None or not self.periapsis > 0.0:
                raise DegenerateOrbitError(
                    f"Full-element orbits require periapsis > 0, got {self.periapsis}"
                )
        if self.mode is OrbitMode.ECCENTRICITY_AND_PERIOD:
            if self.period is None or not self.period > 0.0:
                raise DegenerateOrbitError(
                    f"Period-constrained orbits require period > 0, got {self.period}"
                )

    @classmethod
    def circular(cls, orbited_mass: float, orbited_position: np.ndarray,
                 orbited_id: Optional[str] = None) -> 'OrbitalParameters':
        """Circular orbit through the body's current position."""
        return cls(orbited_mass, orbited_position, OrbitMode.CIRCULAR,
                   orbited_id=orbited_id)

    @classmethod
    def from_eccentricity(cls, orbited_mass: float, orbited_position: np.ndarray,
                          eccentricity: float,
                          orbited_id: Optional[str] = None) -> 'OrbitalParameters':
        """Orbit of the given eccentricity through the current position."""
        return cls(orbited_mass, orbited_position, OrbitMode.FROM_ECCENTRICITY,
                   orbited_id=orbited_id, eccentricity=eccentricity)

    @classmethod
    def from_elements(cls, orbited_mass: float, orbited_position: np.ndarray,
                      periapsis: float, eccentricity: float, inclination: float,
                      longitude_ascending: float, argument_periapsis: float,
                      true_anomaly: float,
                      orbited_id: Optional[str] = None) -> 'OrbitalParameters':
        """Fully specified orbit; the body is moved onto it."""
        return cls(orbited_mass, orbited_position, OrbitMode.FULL_ELEMENTS,
                   orbited_id=orbited_id, eccentricity=eccentricity,
                   periapsis=periapsis, inclination=inclination,
                   longitude_ascending=longitude_ascending,
                   argument_periapsis=argument_periapsis,
                   true_anomaly=true_anomaly)

    @classmethod
    def from_eccentricity_and_period(cls, orbited_mass: float,
                                     orbited_position: np.ndarray,
                                     eccentricity: float, period: float,
                                     orbited_id: Optional[str] = None,
                                     ) -> 'OrbitalParameters':
        """Orbit with a prescribed period; the body is moved onto it."""
        return cls(orbited_mass, orbited_position,
                   OrbitMode.ECCENTRICITY_AND_PERIOD, orbited_id=orbited_id,
                   eccentricity=eccentricity, period=period)


# =============================================================================
# ORBIT
# =============================================================================

@dataclass(frozen=True, eq=False)
class Orbit:
    """
    Two-body Kepler orbit, immutable once constructed.

    Attributes
    ----------
    orbited_id : str or None
        Identifier of the primary body.
    orbited_mass : float
        Mass of the primary (kg).
    orbited_position : np.ndarray
        Position of the primary at the epoch (m).
    barycenter : np.ndarray
        Two-body center of mass at the epoch, same frame (m).
    eccentricity : float
        In [0, 1]; open orbits are clamped to 1.
    inclination : float
        In [0, pi] (rad).
    longitude_ascending, argument_periapsis : float
        Orientation angles in [0, 2*pi) (rad).
    longitude_of_periapsis : float
        Omega + omega, less the body's axial precession, in [0, 2*pi).
    mean_longitude : float
        longitude_of_periapsis + mean anomaly at the epoch, in [0, 2*pi).
    true_anomaly : float
        True anomaly at the epoch, in [0, 2*pi).
    periapsis, semi_major_axis : float
        Barycentric distances (m).
    radius : float
        |r0| (m).
    standard_gravitational_parameter : float
        G * (M + m) (m^3/s^2).
    mean_motion : float
        2*pi / period (rad/s).
    period : float
        Orbital period (s).
    r0, v0 : np.ndarray
        State relative to the barycenter at the epoch.
    epoch : float
        Simulation clock moment of the (r0, v0) state (s).
    """
    orbited_id: Optional[str]
    orbited_mass: float
    orbited_position: np.ndarray
    barycenter: np.ndarray
    eccentricity: float
    inclination: float
    longitude_ascending: float
    argument_periapsis: float
    longitude_of_periapsis: float
    mean_longitude: float
    true_anomaly: float
    periapsis: float
    semi_major_axis: float
    radius: float
    standard_gravitational_parameter: float
    mean_motion: float
    period: float
    r0: np.ndarray
    v0: np.ndarray
    epoch: float = 0.0

    def __post_init__(self):
        for name in ('orbited_position', 'barycenter', 'r0', 'v0'):
            object.__setattr__(self, name, _frozen_vector(getattr(self, name)))

        object.__setattr__(self, 'eccentricity',
                           float(min(max(self.eccentricity, 0.0), 1.0)))
        object.__setattr__(self, 'inclination',
                           normalize_inclination(self.inclination))
        for name in ('longitude_ascending', 'argument_periapsis',
                     'longitude_of_periapsis', 'mean_longitude', 'true_anomaly'):
            object.__setattr__(self, name, normalize_angle(getattr(self, name)))

        if not self.standard_gravitational_parameter > 0.0:
            raise DegenerateOrbitError(
                "Standard gravitational parameter must be positive, got "
                f"{self.standard_gravitational_parameter}"
            )
        if not (self.semi_major_axis > 0.0 and math.isfinite(self.semi_major_axis)):
            raise DegenerateOrbitError(
                f"Semi-major axis must be finite and positive, got {self.semi_major_axis}"
            )
        if not (self.period > 0.0 and math.isfinite(self.period)):
            raise DegenerateOrbitError(
                f"Period must be finite and positive, got {self.period}"
            )
        if not self.radius > 0.0:
            raise DegenerateOrbitError(
                f"Orbital radius must be positive, got {self.radius}"
            )

    # =====================================================================
    # DERIVED QUANTITIES
    # =====================================================================

    @property
    def apoapsis(self) -> float:
        """Farthest barycentric distance; infinite for open orbits."""
        if self.eccentricity >= 1.0:
            return math.inf
        if self.eccentricity <= 0.0:
            return self.semi_major_axis
        return (1.0 + self.eccentricity) * self.semi_major_axis

    @property
    def alpha(self) -> float:
        """standard_gravitational_parameter / semi_major_axis."""
        return self.standard_gravitational_parameter / self.semi_major_axis

    @property
    def semi_latus_rectum(self) -> float:
        """p = q * (1 + e)."""
        return self.periapsis * (1.0 + self.eccentricity)

    # =====================================================================
    # TIME HANDLING
    # =====================================================================

    def time_since_epoch(self, moment: float) -> float:
        """
        Seconds since the epoch state, reduced into [0, period].

        A moment before the epoch counts backwards from the next
        occurrence of the epoch state: period - ((epoch - moment) % period).
        """
        if moment >= self.epoch:
            return (moment - self.epoch) % self.period
        return self.period - ((self.epoch - moment) % self.period)

    # =====================================================================
    # STATE PROPAGATION
    # =====================================================================

    def get_state_vectors_at_time(
        self, t: float,
        propagator: Optional[UniversalVariablePropagator] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Position and velocity relative to the barycenter, *t* seconds after
        the epoch state.

        Parameters
        ----------
        t : float
            Elapsed time (s); reduced modulo the period.
        propagator : UniversalVariablePropagator, optional
            Solver to use; defaults to the module-wide default settings.

        Returns
        -------
        position, velocity : np.ndarray
            Barycentric state.  Add the barycenter (or the primary's own
            propagated position) for a position in the parent frame.

        Raises
        ------
        ConvergenceError
            If the universal Kepler equation does not converge.
        """
        propagator = propagator or _DEFAULT_PROPAGATOR
        t_reduced = t % self.period
        return propagator.propagate(self.r0, self.v0,
                                    self.standard_gravitational_parameter,
                                    t_reduced)

    def get_state_vectors_after_duration(
        self, duration: float,
        propagator: Optional[UniversalVariablePropagator] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Barycentric state after *duration* seconds from the epoch state."""
        return self.get_state_vectors_at_time(duration % self.period, propagator)

    def get_state_vectors_at_moment(
        self, moment: float,
        propagator: Optional[UniversalVariablePropagator] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Barycentric state at an absolute simulation moment."""
        return self.get_state_vectors_at_time(self.time_since_epoch(moment),
                                              propagator)

    def get_position_at_moment(
        self, moment: float,
        propagator: Optional[UniversalVariablePropagator] = None,
    ) -> np.ndarray:
        """Position in the parent frame assuming a stationary barycenter."""
        position, _ = self.get_state_vectors_at_moment(moment, propagator)
        return self.barycenter + position

    # =====================================================================
    # ANOMALIES AND LONGITUDES
    # =====================================================================

    def get_eccentric_anomaly(self, true_anomaly: float) -> float:
        """Eccentric anomaly for a true anomaly on this orbit."""
        return eccentric_anomaly_from_true(true_anomaly, self.eccentricity)

    def get_mean_anomaly(self, true_anomaly: float) -> float:
        """Mean anomaly in [0, 2*pi) for a true anomaly on this orbit."""
        return mean_anomaly_from_true(true_anomaly, self.eccentricity)

    def get_ecliptic_longitude_at_true_anomaly(self, true_anomaly: float) -> float:
        return normalize_angle(self.longitude_of_periapsis + true_anomaly)

    def get_mean_longitude_and_anomaly_at_time(self, t: float) -> Tuple[float, float]:
        """
        Mean longitude and mean anomaly *t* seconds after the epoch state.

        Returns
        -------
        mean_longitude, mean_anomaly : float
            Both in [0, 2*pi) (rad).
        """
        advance = self.mean_motion * (t % self.period)
        mean_anomaly = normalize_angle(self.get_mean_anomaly(self.true_anomaly) + advance)
        mean_longitude = normalize_angle(self.mean_longitude + advance)
        return mean_longitude, mean_anomaly

    def get_mean_longitude_and_anomaly_at_moment(self, moment: float) -> Tuple[float, float]:
        return self.get_mean_longitude_and_anomaly_at_time(self.time_since_epoch(moment))

    def get_mean_anomaly_at_time(self, t: float) -> float:
        return self.get_mean_longitude_and_anomaly_at_time(t)[1]

    def get_true_anomaly_at_time(
        self, t: float,
        propagator: Optional[UniversalVariablePropagator] = None,
    ) -> float:
        """
        True anomaly *t* seconds after the epoch state, from the propagated
        state vectors:

            nu = atan2(sqrt(p/mu) * (r . v), p - |r|)

        Circular orbits measure the angle travelled from r0 instead.
        """
        r, v = self.get_state_vectors_at_time(t, propagator)
        if self.eccentricity < ORBIT_TOLERANCE:
            h = np.cross(self.r0, self.v0)
            h_hat = h / np.linalg.norm(h)
            swept = math.atan2(float(h_hat @ np.cross(self.r0, r)), float(self.r0 @ r))
            return normalize_angle(self.true_anomaly + swept)
        p = self.semi_latus_rectum
        mu = self.standard_gravitational_parameter
        return normalize_angle(
            math.atan2(math.sqrt(p / mu) * float(r @ v), p - float(np.linalg.norm(r)))
        )

    def get_true_anomaly_at_moment(self, moment: float) -> float:
        return self.get_true_anomaly_at_time(self.time_since_epoch(moment))

    # =====================================================================
    # REGIONS OF INFLUENCE
    # =====================================================================

    def get_hill_sphere_radius(self, orbiting_mass: float) -> float:
        """Hill sphere of a body of *orbiting_mass* on this orbit."""
        return hill_sphere_radius(orbiting_mass, self.orbited_mass,
                                  self.semi_major_axis, self.eccentricity)

    def get_mutual_hill_sphere_radius(self, orbiting_mass: float,
                                      other_mass: float) -> float:
        return mutual_hill_sphere_radius(orbiting_mass, other_mass,
                                         self.orbited_mass, self.semi_major_axis)

    def get_sphere_of_influence_radius(self, orbiting_mass: float) -> float:
        return sphere_of_influence(self.semi_major_axis, orbiting_mass,
                                   self.orbited_mass)

    # =====================================================================
    # PARAMETER EXPORT
    # =====================================================================

    def get_orbital_parameters(self) -> OrbitalParameters:
        """
        Full element set reproducing this orbit.

        Assigning the result to the same body moves it back onto this orbit
        at the epoch true anomaly.
        """
        return OrbitalParameters.from_elements(
            orbited_mass=self.orbited_mass,
            orbited_position=self.orbited_position,
            periapsis=self.periapsis,
            eccentricity=self.eccentricity,
            inclination=self.inclination,
            longitude_ascending=self.longitude_ascending,
            argument_periapsis=self.argument_periapsis,
            true_anomaly=self.true_anomaly,
            orbited_id=self.orbited_id,
        )

    def __repr__(self) -> str:
        return (f"Orbit(a={self.semi_major_axis:.4e} m, e={self.eccentricity:.4f}, "
                f"i={self.inclination:.4f} rad, period={self.period:.4e} s)")


