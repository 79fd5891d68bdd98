"""
===============================================================================
COSMOGEN - Cosmic Locations
===============================================================================
A CosmicLocation is one node of the containment hierarchy: a universe, a
galaxy, a star, a planet.  Its position is expressed in the local frame of
its parent (the parent's centre is the origin), and its shape carries that
same position.

Positions at a later moment follow the orbit chain.  When a node orbits a
sibling that itself moves (a planet around a star that orbits a companion),
the barycenter is shifted by the sibling's own displacement:

    barycenter(t) = barycenter + (orbited_position(t) - orbited_position)
    position(t)   = barycenter(t) + r(t)
===============================================================================
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from core.shapes import Shape, SinglePoint
from dynamics.orbit import Orbit
from generation.structure_kind import StructureKind

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def _zero_vector() -> np.ndarray:
    return np.zeros(3, dtype=np.float64)


@dataclass(eq=False)
class CosmicLocation:
    """
    A positioned, shaped node of the cosmic hierarchy.

    Attributes
    ----------
    structure_kind : StructureKind
        Concrete kind of this node.
    shape : Shape
        Occupied volume, centred on the node's position.
    mass : float
        Total mass including everything the node contains (kg).
    parent_id : str, optional
        Identifier of the containing node.
    velocity : np.ndarray
        Velocity in the parent frame (m/s).
    temperature : float, optional
        Ambient or surface temperature (K).
    orbit : Orbit, optional
        Current orbit; replaced, never mutated.
    seed : int
        Seed of the node's own random stream.
    axial_precession : float, optional
        Axial precession angle of a rotating body (rad).
    name : str, optional
    id : str
    """
    structure_kind: StructureKind
    shape: Shape = field(default_factory=SinglePoint)
    mass: float = 0.0
    parent_id: Optional[str] = None
    velocity: np.ndarray = field(default_factory=_zero_vector)
    temperature: Optional[float] = None
    orbit: Optional[Orbit] = None
    seed: int = 0
    axial_precession: Optional[float] = None
    name: Optional[str] = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        self.velocity = np.asarray(self.velocity, dtype=np.float64)

    @property
    def position(self) -> np.ndarray:
        """Position in the parent frame (m)."""
        return self.shape.position

    @position.setter
    def position(self, value: np.ndarray) -> None:
        self.shape = self.shape.at_position(value)

    @property
    def volume(self) -> float:
        return self.shape.volume

    @property
    def containing_radius(self) -> float:
        return self.shape.containing_radius

    # =====================================================================
    # POSITION PROPAGATION
    # =====================================================================

    def get_position_at_time(self, moment: float, store=None,
                             propagator=None) -> np.ndarray:
        """
        Position in the parent frame at an absolute simulation moment.

        Parameters
        ----------
        moment : float
            Simulation clock (s).
        store : LocationStore, optional
            Used to resolve the orbited body so that its own motion is
            followed.  Without it the barycenter is treated as fixed.
        propagator : UniversalVariablePropagator, optional
            Kepler solver; the orbit's default when omitted.

        Returns
        -------
        np.ndarray
            Position (m).  A node without an orbit stays where it is.
        """
        if self.orbit is None:
            return self.position.copy()

        barycenter = self.orbit.barycenter
        orbited = None
        if store is not None and self.orbit.orbited_id is not None:
            orbited = store.get(self.orbit.orbited_id)
        if orbited is not None and orbited is not self and \
                orbited.parent_id == self.parent_id:
            orbited_now = orbited.get_position_at_time(moment, store, propagator)
            barycenter = barycenter + (orbited_now - self.orbit.orbited_position)

        r, _ = self.orbit.get_state_vectors_at_moment(moment, propagator)
        return barycenter + r

    def get_absolute_position(self, store, moment: Optional[float] = None,
                              propagator=None) -> np.ndarray:
        """
        Position relative to the root of the hierarchy.

        Sums the local positions up the parent chain; a parent missing from
        *store* ends the walk.  With a *moment*, every link of the chain is
        first propagated to that moment.
        """
        position = self._local_position(store, moment, propagator)
        parent_id = self.parent_id
        seen = {self.id}
        while parent_id is not None and parent_id not in seen:
            parent = store.get(parent_id)
            if parent is None:
                logger.debug("Parent %s of %s not in store", parent_id, self.id)
                break
            position = position + parent._local_position(store, moment, propagator)
            seen.add(parent_id)
            parent_id = parent.parent_id
        return position

    def _local_position(self, store, moment, propagator) -> np.ndarray:
        if moment is None:
            return self.position.copy()
        return self.get_position_at_time(moment, store, propagator)

    def __repr__(self) -> str:
        return (
            f"CosmicLocation({self.structure_kind.label}, id={self.id[:8]}, "
            f"mass={self.mass:.4e} kg, radius={self.containing_radius:.4e} m)"
        )
