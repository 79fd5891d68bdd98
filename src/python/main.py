#!/usr/bin/env python3
"""
===============================================================================
COSMOGEN - MAIN ENTRY POINT
===============================================================================
Procedural generation of a nested cosmic hierarchy: universe, superclusters,
galaxy clusters and groups, galaxies, star systems, stars and planets, with
every body on a Kepler orbit about its primary.

USAGE:
    python main.py                          # Generate from a universe
    python main.py --root star-system       # Start from another kind
    python main.py --depth 3 --max-children 4
    python main.py --monte-carlo 200        # Placement statistics campaign
    python main.py --output tree.csv        # Also write the nodes as CSV
    python main.py --moment 3.15e7          # Positions one year on

DEPENDENCIES:
    numpy, scipy, pandas, pyyaml
    Install: pip install numpy scipy pandas pyyaml

===============================================================================
"""

import sys
import argparse
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

# ---------------------------------------------------------------------------
# Path setup: ensure all project modules are importable
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

# ---------------------------------------------------------------------------
# Project imports
# ---------------------------------------------------------------------------
from core.config import GenerationSettings, SolverSettings, load_config
from core.randomizer import Randomizer
from dynamics.orbital_mechanics import UniversalVariablePropagator
from generation.configurators import configure_location
from generation.context import GenerationContext
from generation.hierarchy_generator import HierarchyGenerator
from generation.location_store import LocationStore
from generation.structure_kind import StructureKind
from simulation.monte_carlo import GenerationMonteCarlo

logger = logging.getLogger('COSMOGEN_MAIN')


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_propagator(config: Dict[str, Any]) -> UniversalVariablePropagator:
    """Kepler solver configured from the ``solver`` section."""
    settings = SolverSettings.from_config(config)
    logger.debug("Solver: tolerance=%.1e, max_iterations=%d",
                 settings.tolerance, settings.max_iterations)
    return UniversalVariablePropagator.from_settings(settings)


def locations_frame(store: LocationStore, moment: Optional[float] = None,
                    propagator: Optional[UniversalVariablePropagator] = None,
                    ) -> pd.DataFrame:
    """
    One row per node: kind, parent, mass, radius, position and orbit summary.

    Positions are absolute; with a *moment* every orbit is first propagated
    to that simulation time using *propagator*.
    """
    rows = []
    for location in store:
        absolute = location.get_absolute_position(store, moment, propagator)
        rows.append({
            'id': location.id,
            'parent_id': location.parent_id,
            'kind': location.structure_kind.label,
            'name': location.name,
            'mass': location.mass,
            'radius': location.containing_radius,
            'temperature': location.temperature,
            'x': absolute[0],
            'y': absolute[1],
            'z': absolute[2],
            'period': location.orbit.period if location.orbit is not None else np.nan,
            'eccentricity': (location.orbit.eccentricity
                             if location.orbit is not None else np.nan),
            'seed': location.seed,
        })
    return pd.DataFrame(rows)


def run_generation(config: Dict[str, Any], root_kind: StructureKind, seed: int,
                   depth: int, max_children: int,
                   output: Optional[str] = None,
                   moment: Optional[float] = None) -> LocationStore:
    """
    Configure a root node and populate *depth* levels beneath it.

    The exported table holds positions at *moment* (simulation seconds)
    when one is given, propagated with the configured solver.
    """
    logger.info("=" * 60)
    logger.info("GENERATING %s HIERARCHY (seed=%d, depth=%d, max children=%d)",
                root_kind.label.upper(), seed, depth, max_children)
    logger.info("=" * 60)

    rng = Randomizer(seed)
    root = configure_location(GenerationContext(root_kind, seed=rng.next_seed()))
    store = LocationStore(root.locations())

    settings = GenerationSettings.from_config(config)
    generator = HierarchyGenerator(rng, settings=settings)
    added = generator.populate(root.primary, store, depth, max_children)

    frame = locations_frame(store, moment, build_propagator(config))
    logger.info("Generated %d locations (%d below the root)", len(store), added)
    for kind, count in frame['kind'].value_counts().items():
        logger.info("  %-20s %d", kind, count)

    if output:
        frame.to_csv(output, index=False)
        logger.info("Wrote locations to %s", output)
    return store


def run_monte_carlo(config: Dict[str, Any], num_runs: int, seed: int,
                    num_workers: int) -> Dict[str, Dict[str, float]]:
    """Run the placement statistics campaign and log its summary."""
    logger.info("=" * 60)
    logger.info("RUNNING GENERATION MONTE CARLO (%d runs)", num_runs)
    logger.info("=" * 60)

    config = dict(config)
    config['monte_carlo'] = dict(config.get('monte_carlo', {}), num_runs=num_runs)
    campaign = GenerationMonteCarlo.from_config(config, seed=seed)
    campaign.run_all(num_workers=num_workers)

    stats = campaign.compute_statistics()
    logger.info("Expected mean children: %.3f", campaign.expected_count())
    for metric, values in stats.items():
        logger.info("  %-14s mean=%.4g std=%.4g min=%.4g max=%.4g",
                    metric, values['mean'], values['std'], values['min'], values['max'])
    logger.info("Success rate: %.1f%%", 100.0 * campaign.get_success_rate())
    return stats


def main():
    """
    Main entry point. Parses command line arguments and runs
    the requested mode.
    """
    parser = argparse.ArgumentParser(
        description='COSMOGEN: procedural cosmic hierarchy generator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                          Universe, default depth
  python main.py --root spiral-galaxy     Start from a galaxy
  python main.py --monte-carlo 200        Placement statistics (200 runs)
        """
    )

    parser.add_argument('--config', type=str, default=None,
                        help='Path to config YAML')
    parser.add_argument('--seed', type=int, default=None,
                        help='Master random seed (default: simulation.rng_seed)')
    parser.add_argument('--root', type=str, default='universe',
                        help='Structure kind of the root node (default: universe)')
    parser.add_argument('--depth', type=int, default=None,
                        help='Levels to generate below the root')
    parser.add_argument('--max-children', type=int, default=None,
                        help='Cap on children generated per node')
    parser.add_argument('--monte-carlo', type=int, default=0,
                        help='Run the placement Monte Carlo with N runs')
    parser.add_argument('--workers', type=int, default=None,
                        help='Worker processes for the Monte Carlo')
    parser.add_argument('--output', type=str, default=None,
                        help='Write generated locations to this CSV file')
    parser.add_argument('--moment', type=float, default=None,
                        help='Export positions at this simulation time (s)')
    parser.add_argument('--log-level', type=str, default=None,
                        help='Logging level (DEBUG, INFO, WARNING)')

    args = parser.parse_args()

    config = load_config(args.config)
    setup_logging(args.log_level or config.get('logging', {}).get('level', 'INFO'))

    simulation = config.get('simulation', {})
    seed = args.seed if args.seed is not None else int(simulation.get('rng_seed', 42))
    depth = args.depth if args.depth is not None else int(simulation.get('depth', 2))
    max_children = (args.max_children if args.max_children is not None
                    else int(simulation.get('max_children', 5)))
    try:
        root_kind = StructureKind.parse(args.root)
    except ValueError as exc:
        parser.error(str(exc))

    start = time.time()
    if args.monte_carlo > 0:
        workers = (args.workers if args.workers is not None
                   else int(config.get('monte_carlo', {}).get('num_workers', 1)))
        run_monte_carlo(config, args.monte_carlo, seed, workers)
    else:
        run_generation(config, root_kind, seed, depth, max_children, args.output,
                       args.moment)

    logger.info("Done in %.2f s", time.time() - start)


if __name__ == '__main__':
    main()
