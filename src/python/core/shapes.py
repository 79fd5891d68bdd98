"""
===============================================================================
COSMOGEN - Geometric Shapes
===============================================================================
Volumes occupied by cosmic structures.  Every shape has a center position
(in the local frame of its parent), a volume and a containing radius, the
radius of the smallest sphere around the center that encloses the shape.

Intersection tests use containing spheres.  For spheres this is exact; for
ellipsoids and hollow spheres it is conservative (a reported intersection
may be a near miss, a reported miss never overlaps), which is what
collision-free placement needs.
===============================================================================
"""

from dataclasses import dataclass, field, replace

import numpy as np

from core.constants import FOUR_THIRDS_PI


def _origin() -> np.ndarray:
    return np.zeros(3, dtype=np.float64)


@dataclass
class Shape:
    """Base class: a shape centred on *position*."""
    position: np.ndarray = field(default_factory=_origin)

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64)

    @property
    def containing_radius(self) -> float:
        raise NotImplementedError

    @property
    def volume(self) -> float:
        raise NotImplementedError

    def intersects(self, other: 'Shape') -> bool:
        """True if the containing spheres of the two shapes overlap."""
        separation = float(np.linalg.norm(self.position - other.position))
        return separation < self.containing_radius + other.containing_radius

    def contains_point(self, point: np.ndarray) -> bool:
        """True if *point* lies within the containing sphere."""
        offset = np.asarray(point, dtype=np.float64) - self.position
        return float(np.linalg.norm(offset)) <= self.containing_radius

    def at_position(self, position: np.ndarray) -> 'Shape':
        """Copy of this shape moved to *position*."""
        return replace(self, position=np.asarray(position, dtype=np.float64).copy())


@dataclass
class SinglePoint(Shape):
    """Shape with no extent."""

    @property
    def containing_radius(self) -> float:
        return 0.0

    @property
    def volume(self) -> float:
        return 0.0


@dataclass
class Sphere(Shape):
    radius: float = 0.0

    def __post_init__(self):
        super().__post_init__()
        if self.radius < 0.0:
            raise ValueError(f"Sphere radius must be non-negative, got {self.radius}")

    @property
    def containing_radius(self) -> float:
        return float(self.radius)

    @property
    def volume(self) -> float:
        return FOUR_THIRDS_PI * self.radius ** 3


@dataclass
class HollowSphere(Shape):
    """Spherical shell between *inner_radius* and *outer_radius*."""
    inner_radius: float = 0.0
    outer_radius: float = 0.0

    def __post_init__(self):
        super().__post_init__()
        if not 0.0 <= self.inner_radius <= self.outer_radius:
            raise ValueError(
                f"HollowSphere requires 0 <= inner <= outer, got "
                f"inner={self.inner_radius:.4e}, outer={self.outer_radius:.4e}"
            )

    @property
    def containing_radius(self) -> float:
        return float(self.outer_radius)

    @property
    def volume(self) -> float:
        return FOUR_THIRDS_PI * (self.outer_radius ** 3 - self.inner_radius ** 3)


@dataclass
class Ellipsoid(Shape):
    """Axis-aligned ellipsoid with semi-axes along x, y and z."""
    axis_x: float = 0.0
    axis_y: float = 0.0
    axis_z: float = 0.0

    def __post_init__(self):
        super().__post_init__()
        if min(self.axis_x, self.axis_y, self.axis_z) < 0.0:
            raise ValueError("Ellipsoid semi-axes must be non-negative.")

    @property
    def containing_radius(self) -> float:
        return float(max(self.axis_x, self.axis_y, self.axis_z))

    @property
    def volume(self) -> float:
        return FOUR_THIRDS_PI * self.axis_x * self.axis_y * self.axis_z
