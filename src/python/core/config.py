"""
===============================================================================
COSMOGEN - Configuration Loading
===============================================================================
Run configuration is stored as YAML (config/cosmogen_config.yaml at the
repository root).  load_config() reads it with yaml.safe_load and merges it
over the built-in defaults, so a partial file only needs the keys it
changes.  Typed views (SolverSettings, GenerationSettings) are built from
the merged dictionary and passed to the components that need them.
===============================================================================
"""

import copy
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from core.constants import (
    KEPLER_TOLERANCE,
    KEPLER_MAX_ITERATIONS,
    PLACEMENT_MAX_ATTEMPTS,
    NEAREST_SPACE_MAX_ATTEMPTS,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = (
    Path(__file__).resolve().parent.parent.parent.parent
    / 'config' / 'cosmogen_config.yaml'
)

DEFAULT_CONFIG: Dict[str, Any] = {
    'simulation': {
        'name': 'cosmogen',
        'rng_seed': 42,
        'depth': 2,
        'max_children': 5,
    },
    'solver': {
        'tolerance': KEPLER_TOLERANCE,
        'max_iterations': KEPLER_MAX_ITERATIONS,
    },
    'placement': {
        'max_attempts': PLACEMENT_MAX_ATTEMPTS,
        'nearest_max_attempts': NEAREST_SPACE_MAX_ATTEMPTS,
    },
    'monte_carlo': {
        'num_runs': 200,
        'num_workers': 1,
        'volume': 4.0e60,
        'density': 1.0e-60,
        'clearance': 1.0e20,
        'cap': 5,
        'flattening': 0.01,
    },
    'logging': {
        'level': 'INFO',
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge *override* into a copy of *base*."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load run configuration from a YAML file.

    Parameters
    ----------
    config_path : str, optional
        Path to the YAML file.  Defaults to config/cosmogen_config.yaml;
        when that default file does not exist the built-in defaults are
        returned unchanged.

    Returns
    -------
    dict
        Built-in defaults overlaid with the file contents.

    Raises
    ------
    FileNotFoundError
        If an explicit *config_path* does not exist.
    ValueError
        If the file does not contain a YAML mapping.
    """
    if config_path is None:
        path = DEFAULT_CONFIG_PATH
        if not path.exists():
            logger.info("No configuration file at %s; using defaults", path)
            return copy.deepcopy(DEFAULT_CONFIG)
    else:
        path = Path(config_path)

    logger.info("Loading configuration from: %s", path)
    with open(path, 'r') as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise ValueError(
            f"Configuration file {path} must contain a mapping, "
            f"got {type(loaded).__name__}"
        )
    return _deep_merge(DEFAULT_CONFIG, loaded)


@dataclass(frozen=True)
class SolverSettings:
    """Newton iteration controls for universal-variable propagation."""
    tolerance: float = KEPLER_TOLERANCE
    max_iterations: int = KEPLER_MAX_ITERATIONS

    def __post_init__(self):
        if self.tolerance <= 0.0:
            raise ValueError(f"Solver tolerance must be positive, got {self.tolerance}")
        if self.max_iterations < 1:
            raise ValueError(
                f"Solver max_iterations must be >= 1, got {self.max_iterations}"
            )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'SolverSettings':
        block = config.get('solver', {})
        return cls(
            tolerance=float(block.get('tolerance', KEPLER_TOLERANCE)),
            max_iterations=int(block.get('max_iterations', KEPLER_MAX_ITERATIONS)),
        )


@dataclass(frozen=True)
class GenerationSettings:
    """Placement and recursion controls for the hierarchy generator."""
    max_attempts: int = PLACEMENT_MAX_ATTEMPTS
    nearest_max_attempts: int = NEAREST_SPACE_MAX_ATTEMPTS
    max_children: int = 5
    depth: int = 2

    def __post_init__(self):
        if self.max_attempts < 1 or self.nearest_max_attempts < 1:
            raise ValueError("Placement attempt limits must be >= 1.")
        if self.max_children < 0 or self.depth < 0:
            raise ValueError("max_children and depth must be non-negative.")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'GenerationSettings':
        placement = config.get('placement', {})
        simulation = config.get('simulation', {})
        return cls(
            max_attempts=int(placement.get('max_attempts', PLACEMENT_MAX_ATTEMPTS)),
            nearest_max_attempts=int(
                placement.get('nearest_max_attempts', NEAREST_SPACE_MAX_ATTEMPTS)
            ),
            max_children=int(simulation.get('max_children', 5)),
            depth=int(simulation.get('depth', 2)),
        )
