"""
===============================================================================
COSMOGEN - Seeded Random Source
===============================================================================
Every stochastic decision in the package (weighted index selection, true
anomaly sampling, placement offsets, structure sizes and masses) draws from
an explicitly passed Randomizer.  There is no module-level random state.

Each generated node records its own seed.  A node's sub-hierarchy is
reproduced by spawning a Randomizer from that seed, independently of
whatever the parent stream did afterwards:

    parent_rng = Randomizer(42)
    seed = parent_rng.next_seed()        # stored on the child node
    child_rng = Randomizer(seed)         # identical stream on every replay

Distributions are drawn from numpy's PCG64 Generator; the log-logistic
sample delegates to scipy.stats.fisk with the same Generator, so the whole
stream stays reproducible from one seed.
===============================================================================
"""

import math
from typing import Optional, Sequence

import numpy as np
from scipy import stats

# Seeds are stored on nodes as unsigned 32-bit values.
_SEED_LIMIT = 2 ** 32


class Randomizer:
    """
    Reproducible random source built on ``numpy.random.default_rng``.

    Parameters
    ----------
    seed : int, optional
        Seed of the stream.  ``None`` draws fresh OS entropy (not
        reproducible).
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    @property
    def generator(self) -> np.random.Generator:
        """Underlying numpy Generator."""
        return self._rng

    def __repr__(self) -> str:
        return f"Randomizer(seed={self.seed})"

    # =====================================================================
    # SEEDS
    # =====================================================================

    def next_seed(self) -> int:
        """Draw a seed for a child node from this stream."""
        return int(self._rng.integers(0, _SEED_LIMIT))

    def spawn(self, seed: Optional[int] = None) -> 'Randomizer':
        """
        Create an independent Randomizer.

        With an explicit *seed* the child stream is the one any other
        ``Randomizer(seed)`` produces; without one a seed is drawn from
        this stream first.
        """
        if seed is None:
            seed = self.next_seed()
        return Randomizer(seed)

    # =====================================================================
    # SCALAR DRAWS
    # =====================================================================

    def uniform(self, low: float = 0.0, high: float = 1.0) -> float:
        """Uniform real in [low, high)."""
        return float(self._rng.uniform(low, high))

    def integer(self, low: int, high: int) -> int:
        """Uniform integer in [low, high)."""
        return int(self._rng.integers(low, high))

    def next_bool(self, probability: float = 0.5) -> bool:
        """True with the given probability."""
        return bool(self._rng.random() < probability)

    def normal(self, mean: float = 0.0, sigma: float = 1.0,
               minimum: Optional[float] = None) -> float:
        """
        Gaussian sample, optionally clamped from below.

        Parameters
        ----------
        mean, sigma : float
            Distribution parameters.
        minimum : float, optional
            Lower clamp applied to the sample.
        """
        value = float(self._rng.normal(mean, sigma))
        if minimum is not None and value < minimum:
            value = minimum
        return value

    def positive_normal(self, mean: float = 0.0, sigma: float = 1.0) -> float:
        """Absolute value of a Gaussian sample (folded normal)."""
        return abs(float(self._rng.normal(mean, sigma)))

    def log_normal(self, mean: float = 0.0, sigma: float = 1.0) -> float:
        """Log-normal sample with the given underlying normal parameters."""
        return float(self._rng.lognormal(mean, sigma))

    def logistic(self, location: float = 0.0, scale: float = 1.0) -> float:
        """Logistic sample."""
        return float(self._rng.logistic(location, scale))

    def log_logistic(self, scale: float = 1.0, shape: float = 1.0) -> float:
        """
        Log-logistic (Fisk) sample.

        Parameters
        ----------
        scale : float
            Median of the distribution.
        shape : float
            Shape parameter beta; larger values concentrate the mass.
        """
        return float(stats.fisk.rvs(shape, scale=scale, random_state=self._rng))

    def log_uniform(self, low: float, high: float) -> float:
        """Sample uniformly in log space between two positive bounds."""
        return math.exp(self.uniform(math.log(low), math.log(high)))

    # =====================================================================
    # WEIGHTED SELECTION
    # =====================================================================

    def weighted_index(self, weights: Sequence[float]) -> int:
        """
        Pick an index with probability proportional to its weight.

        Infinite weights dominate: when any weight is infinite, the choice is
        uniform among the infinite ones.

        Parameters
        ----------
        weights : sequence of float
            Non-negative weights.

        Returns
        -------
        int
            Selected index.

        Raises
        ------
        ValueError
            If *weights* is empty, contains a negative or NaN entry, or sums
            to zero.
        """
        w = np.asarray(weights, dtype=np.float64)
        if w.size == 0:
            raise ValueError("Cannot select an index from an empty sequence.")
        if np.any(np.isnan(w)) or np.any(w < 0.0):
            raise ValueError(f"Weights must be non-negative, got {w}")

        infinite = np.flatnonzero(np.isinf(w))
        if infinite.size > 0:
            return int(infinite[self._rng.integers(0, infinite.size)])

        cumulative = np.cumsum(w)
        total = cumulative[-1]
        if total <= 0.0:
            raise ValueError("Weights sum to zero; no index can be selected.")
        draw = self._rng.random() * total
        index = int(np.searchsorted(cumulative, draw, side='right'))
        return min(index, w.size - 1)

    # =====================================================================
    # VECTORS
    # =====================================================================

    def unit_vector(self) -> np.ndarray:
        """Direction drawn uniformly over the unit sphere."""
        while True:
            v = self._rng.normal(0.0, 1.0, size=3)
            norm = float(np.linalg.norm(v))
            if norm > 1e-12:
                return v / norm

    def vector_at_distance(self, distance: float) -> np.ndarray:
        """Vector of length *distance* in a uniformly random direction."""
        return self.unit_vector() * distance

    def vector_within(self, radius: float) -> np.ndarray:
        """Point drawn uniformly from the ball of the given radius."""
        return self.unit_vector() * (radius * self._rng.random() ** (1.0 / 3.0))
