"""
===============================================================================
COSMOGEN - Hierarchy Generator
===============================================================================
Stochastic population of a parent region with children drawn from its
density-weighted child definitions.

Per generation call:

    1. totals          expected = parent volume * density, per definition
    2. reconciliation  each existing child spends 1 from the first
                       definition it matches
    3. weighted loop   pick a definition by weight 1 / density, place it
                       in open space, configure it, yield the result

The loop ends at the cap, when no definition remains, or when every budget
is spent.  A fractional budget below one realizes a final child with
probability equal to the remainder, so the long-run mean count is V * d.
Placement failure drops the definition for the rest of the call.

Results are produced lazily; a caller that stops iterating leaves nothing
else behind.
===============================================================================
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Callable, Iterator, List, Optional, Sequence

import numpy as np

from core.config import GenerationSettings
from core.randomizer import Randomizer
from core.shapes import Shape, Sphere
from generation.catalog import child_definitions, space_for
from generation.child_definition import ChildDefinition
from generation.configurators import configure_location
from generation.context import GenerationContext, GenerationResult
from generation.location import CosmicLocation
from generation.location_store import LocationStore
from generation.open_space import OpenSpaceFinder, check_clearance
from generation.structure_kind import StructureKind

logger = logging.getLogger(__name__)

Configure = Callable[[GenerationContext], GenerationResult]
Condition = Callable[[ChildDefinition], bool]


@dataclass
class ChildBudget:
    """A child definition and the expected count still to be realized."""
    definition: ChildDefinition
    remaining: float


def clearance_sphere(location: CosmicLocation, clearance: float) -> Sphere:
    """Occupied volume a placed child reserves in its parent."""
    return Sphere(position=location.position,
                  radius=max(clearance, location.containing_radius))


def within_region(location: CosmicLocation, region: Optional[Shape]) -> bool:
    """True if the centre of *location* lies in the containing sphere of *region*."""
    if region is None:
        return True
    offset = np.linalg.norm(location.position - region.position)
    return float(offset) <= region.containing_radius


class HierarchyGenerator:
    """
    Places and configures the children of cosmic regions.

    Parameters
    ----------
    rng : Randomizer
        Source of every draw made while generating (selection, placement
        and child seeds).
    finder : OpenSpaceFinder, optional
        Placement search; built from *rng* and *settings* when omitted.
    configure : callable, optional
        ``GenerationContext -> GenerationResult`` used to build each placed
        child.  Defaults to the registered structure strategies.
    settings : GenerationSettings, optional
    """

    def __init__(self, rng: Randomizer, finder=None,
                 configure: Optional[Configure] = None,
                 settings: Optional[GenerationSettings] = None):
        self.rng = rng
        self.settings = settings or GenerationSettings()
        self.finder = finder or OpenSpaceFinder.from_settings(rng, self.settings)
        self.configure = configure or configure_location

    # =====================================================================
    # BUDGETS
    # =====================================================================

    def get_child_totals(self, parent: CosmicLocation,
                         definitions: Optional[Sequence[ChildDefinition]] = None,
                         condition: Optional[Condition] = None,
                         region: Optional[Shape] = None) -> List[ChildBudget]:
        """
        Expected child count per definition for *parent*'s volume, or for
        the part of it covered by *region*.

        Parameters
        ----------
        parent : CosmicLocation
        definitions : sequence of ChildDefinition, optional
            Defaults to the catalog entries for the parent's kind.
        condition : callable, optional
            Keeps only definitions for which it returns True.
        region : Shape, optional
            Sub-volume of the parent (parent frame); budgets scale with its
            share of the parent's volume.
        """
        if definitions is None:
            definitions = child_definitions(parent.structure_kind)
        volume = parent.volume
        if region is not None:
            volume = min(region.volume, volume)
        return [ChildBudget(definition, definition.expected_count(volume))
                for definition in definitions
                if condition is None or condition(definition)]

    @staticmethod
    def reconcile_existing(budgets: List[ChildBudget],
                           existing: Sequence[CosmicLocation]) -> List[ChildBudget]:
        """Spend one unit of the first matching budget per existing child."""
        for child in existing:
            for budget in budgets:
                if budget.definition.matches(child):
                    budget.remaining -= 1.0
                    break
        return budgets

    @staticmethod
    def get_radius_with_children(max_amount: float,
                                 definitions: Sequence[ChildDefinition],
                                 condition: Optional[Condition] = None) -> float:
        """
        Radius of the sphere expected to hold *max_amount* children.

            r = cbrt(3 * (max_amount / sum(density)) / (4 * pi))

        Zero when the selected definitions have no density at all.
        """
        total_density = sum(d.density for d in definitions
                            if condition is None or condition(d))
        if total_density <= 0.0:
            return 0.0
        return float(np.cbrt(3.0 * (max_amount / total_density) / (4.0 * math.pi)))

    # =====================================================================
    # LAZY GENERATION
    # =====================================================================

    def generate_children(self, parent: CosmicLocation,
                          max_count: Optional[int] = None,
                          definitions: Optional[Sequence[ChildDefinition]] = None,
                          condition: Optional[Condition] = None,
                          store: Optional[LocationStore] = None,
                          region: Optional[Shape] = None,
                          ) -> Iterator[GenerationResult]:
        """
        Lazily generate children of *parent*.

        Parameters
        ----------
        parent : CosmicLocation
            Region to populate; its centre is the origin of the placement frame.
        max_count : int, optional
            Cap on the number of children yielded.
        definitions, condition
            As for ``get_child_totals``.
        store : LocationStore, optional
            Source of existing children; they spend budget and occupy space.
        region : Shape, optional
            Sub-volume of the parent to populate.  Budgets cover only its
            share of the parent, only existing children inside it spend
            them, and placements stay within its containing sphere.

        Yields
        ------
        GenerationResult
            Each configured child with its sub-children, in placement order.

        Raises
        ------
        DegenerateOrbitError
            If a definition's clearance does not fit inside the parent
            (or the region).  Checked before the first child is produced.
        """
        budgets = self.get_child_totals(parent, definitions, condition, region)
        existing = store.children_of(parent.id) if store is not None else []
        self.reconcile_existing(budgets, [c for c in existing if within_region(c, region)])

        candidates = [b for b in budgets if b.remaining > 0.0]
        for budget in candidates:
            check_clearance(parent.containing_radius, budget.definition.clearance_space)
            if region is not None:
                check_clearance(region.containing_radius, budget.definition.clearance_space)
        occupied: List[Shape] = [clearance_sphere(c, space_for(c.structure_kind))
                                 for c in existing]
        produced = 0
        while candidates and (max_count is None or produced < max_count):
            index = self.rng.weighted_index([b.definition.weight for b in candidates])
            budget = candidates[index]

            # A fractional remainder realizes one last child by chance
            if budget.remaining < 1.0 and not self.rng.next_bool(budget.remaining):
                candidates.pop(index)
                continue

            definition = budget.definition
            position = self.finder.find_open_space(
                parent.containing_radius, definition.clearance_space, occupied, region)
            if position is None:
                logger.debug("Dropping %s from %r: region too crowded",
                             definition.structure_kind.label, parent)
                candidates.pop(index)
                continue

            budget.remaining -= 1.0
            if budget.remaining <= 0.0:
                candidates.pop(index)

            result = self._configure_at(parent, definition.structure_kind, position)
            occupied.append(clearance_sphere(result.primary, definition.clearance_space))
            produced += 1
            yield result

        logger.debug("Generated %d children for %r", produced, parent)

    def generate_child(self, parent: CosmicLocation, definition: ChildDefinition,
                       occupied: Sequence[Shape] = ()) -> GenerationResult:
        """
        Place and configure a single child.

        Returns an empty (falsy) GenerationResult when no open space is found.
        """
        position = self.finder.find_open_space(
            parent.containing_radius, definition.clearance_space, occupied)
        if position is None:
            return GenerationResult(None)
        return self._configure_at(parent, definition.structure_kind, position)

    def generate_child_of_kind(self, parent: CosmicLocation, kind: StructureKind,
                               occupied: Sequence[Shape] = ()) -> GenerationResult:
        """Single child of a requested kind, using the parent's definition for it if any."""
        definition = next(
            (d for d in child_definitions(parent.structure_kind) if d.structure_kind & kind),
            None,
        )
        if definition is None:
            definition = ChildDefinition(space_for(kind), 0.0, kind)
        else:
            definition = replace(definition, structure_kind=kind)
        return self.generate_child(parent, definition, occupied)

    def generate_child_near(self, parent: CosmicLocation, target: np.ndarray,
                            definition: Optional[ChildDefinition] = None,
                            store: Optional[LocationStore] = None) -> GenerationResult:
        """
        Single child placed around *target*.

        Without a *definition*, one of the parent's catalog definitions is
        drawn by weight 1 / density.  The ideal distance from the target is
        the mean spacing of children at the definition's density,
        2 * cbrt(3 / (4 pi d)).
        """
        if definition is None:
            definitions = [d for d in child_definitions(parent.structure_kind)
                           if d.density > 0.0]
            if not definitions:
                logger.debug("%r has no child definitions to draw from", parent)
                return GenerationResult(None)
            definition = definitions[self.rng.weighted_index([d.weight for d in definitions])]

        existing = store.children_of(parent.id) if store is not None else []
        occupied = [clearance_sphere(c, space_for(c.structure_kind)) for c in existing]
        if definition.density > 0.0:
            ideal = 2.0 * float(np.cbrt(3.0 / (4.0 * math.pi * definition.density)))
        else:
            ideal = 2.0 * definition.clearance_space
        position = self.finder.find_open_space_near(
            parent.containing_radius, definition.clearance_space, occupied,
            target, ideal)
        if position is None:
            return GenerationResult(None)
        return self._configure_at(parent, definition.structure_kind, position)

    # =====================================================================
    # RECURSIVE POPULATION
    # =====================================================================

    def populate(self, parent: CosmicLocation, store: LocationStore,
                 depth: Optional[int] = None,
                 max_children: Optional[int] = None) -> int:
        """
        Generate *depth* levels below *parent* into *store*.

        Each configured node generates its own children from a stream
        derived from its seed, so a subtree can be regrown from the seed
        alone.

        Returns
        -------
        int
            Number of locations added to the store.
        """
        depth = self.settings.depth if depth is None else depth
        max_children = self.settings.max_children if max_children is None else max_children
        if parent.id not in store:
            store.add(parent)
        if depth <= 0:
            return 0

        added = 0
        for result in self.generate_children(parent, max_children, store=store):
            new_locations = result.locations()
            store.add_all(new_locations)
            added += len(new_locations)
            if depth > 1:
                for location in new_locations:
                    if child_definitions(location.structure_kind):
                        added += self._generator_for(location).populate(
                            location, store, depth - 1, max_children)

        logger.info("Populated %s with %d locations (depth %d)",
                    parent.structure_kind.label, added, depth)
        return added

    # =====================================================================
    # INTERNALS
    # =====================================================================

    def _configure_at(self, parent: CosmicLocation, kind: StructureKind,
                      position: np.ndarray) -> GenerationResult:
        context = GenerationContext(kind, seed=self.rng.next_seed(),
                                    parent=parent, position=position)
        return self.configure(context)

    def _generator_for(self, location: CosmicLocation) -> 'HierarchyGenerator':
        return HierarchyGenerator(Randomizer(location.seed).spawn(),
                                  configure=self.configure, settings=self.settings)
