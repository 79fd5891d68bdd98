"""
===============================================================================
COSMOGEN - Exception Taxonomy
===============================================================================
Numeric and geometric invariant violations are raised as exceptions and abort
the operation that triggered them.  Placement exhaustion and the generation
cap are ordinary outcomes (``None`` / end of a generator) and have no
exception type.

Each error also derives from the builtin category the rest of the code base
already raises (``RuntimeError`` for solver failures, ``ValueError`` for bad
geometry), so callers catching the builtins keep working.
===============================================================================
"""


class CosmogenError(Exception):
    """Base class for all errors raised by this package."""


class ConvergenceError(CosmogenError, RuntimeError):
    """
    The universal Kepler equation did not converge within the iteration
    bound.

    Attributes
    ----------
    iterations : int
        Number of Newton steps performed.
    residual : float
        Magnitude of the last correction ratio.
    """

    def __init__(self, message: str, iterations: int = 0,
                 residual: float = float('nan')) -> None:
        super().__init__(message)
        self.iterations = iterations
        self.residual = residual


class DegenerateOrbitError(CosmogenError, ValueError):
    """
    Orbit or placement geometry that cannot be represented: zero combined
    mass, zero separation, non-positive semi-major axis, or a clearance
    radius that does not fit inside its parent.
    """
