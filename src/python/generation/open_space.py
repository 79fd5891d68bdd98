"""
===============================================================================
COSMOGEN - Open Space Search
===============================================================================
Rejection sampling of collision-free positions inside a parent region.

The parent's centre is the origin of its local frame.  A candidate with
clearance radius c is accepted when

    |candidate| + c <= parent containing radius
    and its clearance sphere intersects no occupied shape

Running out of attempts is an ordinary outcome (the region is too crowded
for this clearance) and is reported as None, never as an exception.
===============================================================================
"""

import logging
from typing import Optional, Sequence

import numpy as np

from core.constants import NEAREST_SPACE_MAX_ATTEMPTS, PLACEMENT_MAX_ATTEMPTS
from core.exceptions import DegenerateOrbitError
from core.randomizer import Randomizer
from core.shapes import Shape, Sphere

logger = logging.getLogger(__name__)


class OpenSpaceFinder:
    """
    Finds free positions for new children of a region.

    Parameters
    ----------
    rng : Randomizer
        Source of candidate positions.
    max_attempts : int
        Candidates tried by the uniform and near-target searches.
    nearest_max_attempts : int
        Steps of the outward search around a target.
    """

    def __init__(self, rng: Randomizer,
                 max_attempts: int = PLACEMENT_MAX_ATTEMPTS,
                 nearest_max_attempts: int = NEAREST_SPACE_MAX_ATTEMPTS):
        self.rng = rng
        self.max_attempts = max_attempts
        self.nearest_max_attempts = nearest_max_attempts

    @classmethod
    def from_settings(cls, rng: Randomizer, settings) -> 'OpenSpaceFinder':
        """Build from a GenerationSettings instance."""
        return cls(rng, settings.max_attempts, settings.nearest_max_attempts)

    # =====================================================================
    # PREDICATES
    # =====================================================================

    @staticmethod
    def is_open(position: np.ndarray, clearance: float,
                occupied: Sequence[Shape]) -> bool:
        """True if a clearance sphere at *position* touches no occupied shape."""
        candidate = Sphere(position=position, radius=clearance)
        for shape in occupied:
            if shape.intersects(candidate):
                return False
        return True

    @staticmethod
    def fits_within(position: np.ndarray, clearance: float,
                    containing_radius: float) -> bool:
        """True if the clearance sphere stays inside the parent boundary."""
        return float(np.linalg.norm(position)) + clearance <= containing_radius

    # =====================================================================
    # SEARCHES
    # =====================================================================

    def find_open_space(self, containing_radius: float, clearance: float,
                        occupied: Sequence[Shape],
                        region: Optional[Shape] = None) -> Optional[np.ndarray]:
        """
        Uniformly sampled free position inside the parent.

        Parameters
        ----------
        containing_radius : float
            Containing radius of the parent region (m).
        clearance : float
            Free radius the new child requires (m).
        occupied : sequence of Shape
            Shapes of children already present, in the parent frame.
        region : Shape, optional
            Part of the parent to sample from, in the parent frame.  Its
            containing sphere bounds the candidates, which must still fit
            inside the parent.

        Returns
        -------
        np.ndarray or None
            Accepted position, or None once ``max_attempts`` candidates have
            been rejected.

        Raises
        ------
        DegenerateOrbitError
            If the clearance does not fit inside the parent (or the region)
            at all.
        """
        check_clearance(containing_radius, clearance)
        centre = np.zeros(3)
        limit = containing_radius - clearance
        if region is not None:
            check_clearance(region.containing_radius, clearance)
            centre = region.position
            limit = region.containing_radius - clearance
        for _ in range(self.max_attempts):
            candidate = centre + self.rng.vector_within(limit)
            if region is not None and \
                    not self.fits_within(candidate, clearance, containing_radius):
                continue
            if self.is_open(candidate, clearance, occupied):
                return candidate
        logger.debug("No open space of radius %.3e after %d attempts "
                     "(%d occupied)", clearance, self.max_attempts, len(occupied))
        return None

    def find_open_space_near(self, containing_radius: float, clearance: float,
                             occupied: Sequence[Shape], target: np.ndarray,
                             ideal_distance: float) -> Optional[np.ndarray]:
        """
        Free position at a normally distributed distance from *target*.

        The distance is drawn once from Normal(ideal, ideal / 6); each
        attempt then tries a new random direction at that distance.
        """
        check_clearance(containing_radius, clearance)
        target = np.asarray(target, dtype=np.float64)
        distance = abs(self.rng.normal(ideal_distance, ideal_distance / 6.0))
        for _ in range(self.max_attempts):
            candidate = target + self.rng.vector_at_distance(distance)
            if not self.fits_within(candidate, clearance, containing_radius):
                continue
            if self.is_open(candidate, clearance, occupied):
                return candidate
        logger.debug("No open space within %.3e m of target after %d attempts",
                     distance, self.max_attempts)
        return None

    def find_nearest_open_space(self, target: np.ndarray, clearance: float,
                                occupied: Sequence[Shape],
                                containing_radius: Optional[float] = None,
                                ) -> Optional[np.ndarray]:
        """
        Free position as close as possible to *target*.

        Searches outward in clearance-sized steps, trying one random
        direction per step, starting at the target itself.  With a
        *containing_radius* the result also stays inside the parent.
        """
        if containing_radius is not None:
            check_clearance(containing_radius, clearance)
        target = np.asarray(target, dtype=np.float64)
        step = clearance
        if step <= 0.0:
            step = max((shape.containing_radius for shape in occupied), default=0.0) or 1.0

        distance = 0.0
        for _ in range(self.nearest_max_attempts):
            candidate = target + self.rng.unit_vector() * distance
            inside = containing_radius is None or \
                self.fits_within(candidate, clearance, containing_radius)
            if inside and self.is_open(candidate, clearance, occupied):
                return candidate
            distance += step
        logger.debug("Outward search from target exhausted after %d steps",
                     self.nearest_max_attempts)
        return None


def check_clearance(containing_radius: float, clearance: float) -> None:
    """Raise DegenerateOrbitError if *clearance* cannot fit inside the radius."""
    if clearance >= containing_radius:
        raise DegenerateOrbitError(
            f"Clearance {clearance:.4e} m does not fit inside a region of "
            f"containing radius {containing_radius:.4e} m"
        )
