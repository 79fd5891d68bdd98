"""
===============================================================================
COSMOGEN - Generation Monte Carlo Campaign
===============================================================================
Runs the hierarchy generator many times over one region and one child
definition, and aggregates what each run produced.  Uses multiprocessing
for parallel execution and pandas for result aggregation.

The campaign checks the statistical contract of the generator:

    - the mean child count approaches min(cap, V * d)
    - no two placed clearance spheres overlap (min gap >= 0)
    - every run terminates, however large V * d is

The region is an oblate ellipsoid of the requested volume,

    axis = cbrt(3 V / (4 pi f)),   semi-axes (axis, axis, f * axis)

so that a small flattening f leaves room for clearances larger than the
radius of a sphere of the same volume.  Each run owns a Randomizer seeded
from the master seed, so results do not depend on the worker count.
===============================================================================
"""

import itertools
import logging
import math
from multiprocessing import Pool
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from core.config import GenerationSettings
from core.randomizer import Randomizer
from core.shapes import Ellipsoid, SinglePoint
from generation.child_definition import ChildDefinition
from generation.context import GenerationContext, GenerationResult
from generation.hierarchy_generator import HierarchyGenerator
from generation.location import CosmicLocation
from generation.structure_kind import StructureKind

logger = logging.getLogger(__name__)


def configure_point_child(context: GenerationContext) -> GenerationResult:
    """Bare child at the placed position; the campaign only measures placement."""
    location = CosmicLocation(
        structure_kind=context.structure_kind,
        shape=SinglePoint(position=context.position),
        parent_id=context.parent_id,
        seed=context.seed,
    )
    return GenerationResult(location)


def region_of_volume(volume: float, flattening: float = 1.0) -> Ellipsoid:
    """Oblate ellipsoid centred on the origin with the given volume."""
    if volume <= 0.0 or not 0.0 < flattening <= 1.0:
        raise ValueError(
            f"Region needs volume > 0 and flattening in (0, 1], got "
            f"volume={volume:.4e}, flattening={flattening}"
        )
    axis = float(np.cbrt(3.0 * volume / (4.0 * math.pi * flattening)))
    return Ellipsoid(axis_x=axis, axis_y=axis, axis_z=axis * flattening)


def minimum_gap(positions: List[np.ndarray], clearance: float) -> float:
    """Smallest distance between two clearance-sphere surfaces (NaN below two points)."""
    gaps = [float(np.linalg.norm(a - b)) - 2.0 * clearance
            for a, b in itertools.combinations(positions, 2)]
    return min(gaps) if gaps else np.nan


def _run_single_wrapper(args: Tuple[Dict[str, Any], int, int]) -> Dict[str, Any]:
    """
    Module-level wrapper for single-run execution.

    Parameters
    ----------
    args : tuple of (campaign_dict, run_id, seed)

    Returns
    -------
    dict
        Run summary: run_id, seed, success, num_children, min_gap,
        num_overlaps, error_message.
    """
    campaign, run_id, seed = args

    result = {
        'run_id': run_id,
        'seed': seed,
        'success': False,
        'num_children': 0,
        'min_gap': np.nan,
        'num_overlaps': 0,
        'error_message': '',
    }

    try:
        clearance = campaign['clearance']
        parent = CosmicLocation(
            structure_kind=StructureKind.NONE,
            shape=region_of_volume(campaign['volume'], campaign['flattening']),
        )
        definition = ChildDefinition(clearance, campaign['density'],
                                     campaign['structure_kind'])
        generator = HierarchyGenerator(Randomizer(seed),
                                       configure=configure_point_child,
                                       settings=campaign['settings'])
        positions = [child.primary.position for child in generator.generate_children(
            parent, max_count=campaign['cap'], definitions=[definition])]

        gap = minimum_gap(positions, clearance)
        result.update({
            'success': True,
            'num_children': len(positions),
            'min_gap': gap,
            'num_overlaps': sum(
                1 for a, b in itertools.combinations(positions, 2)
                if float(np.linalg.norm(a - b)) < 2.0 * clearance
            ),
        })
    except Exception as exc:
        result['error_message'] = str(exc)
        logger.warning("Run %d failed: %s", run_id, exc)

    return result


class GenerationMonteCarlo:
    """
    Repeated generation runs over a fixed region and child definition.

    Parameters
    ----------
    volume : float
        Volume of the parent region (m^3).
    definition : ChildDefinition
        The only definition offered to the generator.
    cap : int, optional
        Maximum children per run.
    num_runs : int
        Number of runs.
    seed : int
        Master seed; run seeds are drawn from it.
    flattening : float
        Ratio of the region's polar to equatorial semi-axis.
    settings : GenerationSettings, optional
        Placement attempt limits.

    Attributes
    ----------
    results : pd.DataFrame or None
        One row per run, indexed by run_id, after ``run_all``.
    run_seeds : list of int
    """

    def __init__(
        self,
        volume: float,
        definition: ChildDefinition,
        cap: Optional[int] = None,
        num_runs: int = 100,
        seed: int = 42,
        flattening: float = 1.0,
        settings: Optional[GenerationSettings] = None,
    ) -> None:
        self.volume = volume
        self.definition = definition
        self.cap = cap
        self.num_runs = num_runs
        self.seed = seed
        self.flattening = flattening
        self.settings = settings or GenerationSettings()

        master = Randomizer(seed)
        self.run_seeds: List[int] = [master.next_seed() for _ in range(num_runs)]
        self.results: Optional[pd.DataFrame] = None

        logger.info(
            "GenerationMonteCarlo initialized: %d runs, seed=%d, V*d=%.3f, cap=%s",
            num_runs, seed, definition.expected_count(volume), cap,
        )

    @classmethod
    def from_config(cls, config: Dict[str, Any],
                    seed: Optional[int] = None) -> 'GenerationMonteCarlo':
        """Build a campaign from the ``monte_carlo`` block of a loaded config."""
        block = config.get('monte_carlo', {})
        if seed is None:
            seed = int(config.get('simulation', {}).get('rng_seed', 42))
        definition = ChildDefinition(float(block['clearance']), float(block['density']))
        return cls(
            volume=float(block['volume']),
            definition=definition,
            cap=block.get('cap'),
            num_runs=int(block.get('num_runs', 100)),
            seed=seed,
            flattening=float(block.get('flattening', 1.0)),
            settings=GenerationSettings.from_config(config),
        )

    # =========================================================================
    # RUN ALL
    # =========================================================================

    def run_all(self, num_workers: int = 1) -> pd.DataFrame:
        """
        Execute every run, in parallel when *num_workers* > 1.

        Returns
        -------
        pd.DataFrame
            One row per run with columns seed, success, num_children,
            min_gap, num_overlaps, error_message.
        """
        logger.info("Starting generation Monte Carlo: %d runs on %d workers",
                    self.num_runs, num_workers)

        campaign = {
            'volume': self.volume,
            'flattening': self.flattening,
            'clearance': self.definition.clearance_space,
            'density': self.definition.density,
            'structure_kind': self.definition.structure_kind,
            'cap': self.cap,
            'settings': self.settings,
        }
        args_list = [(campaign, run_id, seed) for run_id, seed in enumerate(self.run_seeds)]

        if num_workers <= 1:
            results_list = [_run_single_wrapper(args) for args in args_list]
        else:
            with Pool(processes=num_workers) as pool:
                results_list = pool.map(_run_single_wrapper, args_list)

        self.results = pd.DataFrame(results_list)
        self.results.set_index('run_id', inplace=True)

        n_success = int(self.results['success'].sum())
        logger.info("Monte Carlo complete: %d/%d runs successful, mean children %.3f",
                    n_success, self.num_runs, self.results['num_children'].mean())
        return self.results

    # =========================================================================
    # STATISTICS
    # =========================================================================

    def expected_count(self) -> float:
        """Long-run mean child count, min(cap, V * d)."""
        expected = self.definition.expected_count(self.volume)
        if self.cap is None:
            return expected
        return min(float(self.cap), expected)

    def compute_statistics(self) -> Dict[str, Dict[str, float]]:
        """
        Summary statistics of the numeric result columns.

        Returns
        -------
        dict
            Per column: mean, std, min, max, p01, p50, p99.
        """
        if self.results is None or self.results.empty:
            logger.warning("No results to compute statistics on.")
            return {}

        stats: Dict[str, Dict[str, float]] = {}
        for col in ('num_children', 'min_gap', 'num_overlaps'):
            data = self.results[col].dropna()
            if len(data) == 0:
                continue
            stats[col] = {
                'mean': float(data.mean()),
                'std': float(data.std()),
                'min': float(data.min()),
                'max': float(data.max()),
                'p01': float(np.percentile(data, 1)),
                'p50': float(np.percentile(data, 50)),
                'p99': float(np.percentile(data, 99)),
            }
        return stats

    def get_success_rate(self) -> float:
        if self.results is None or self.results.empty:
            return 0.0
        return float(self.results['success'].mean())
