"""
===============================================================================
COSMOGEN - Configuration Test Suite
===============================================================================
Loading the YAML run configuration, merging it over the defaults and the
typed settings built from it.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from core.config import (
    DEFAULT_CONFIG,
    DEFAULT_CONFIG_PATH,
    GenerationSettings,
    SolverSettings,
    load_config,
)
from dynamics.orbital_mechanics import UniversalVariablePropagator


class TestLoadConfig:
    """YAML loading and merging."""

    def test_repository_config_loads(self):
        assert DEFAULT_CONFIG_PATH.exists()
        config = load_config()
        assert config['simulation']['rng_seed'] == 42
        assert config['monte_carlo']['volume'] == 4.0e60
        assert config['solver']['tolerance'] == 1.0e-8

    def test_partial_file_merges_over_defaults(self, tmp_path):
        path = tmp_path / 'partial.yaml'
        path.write_text("simulation:\n  depth: 4\nplacement:\n  max_attempts: 25\n")
        config = load_config(str(path))
        assert config['simulation']['depth'] == 4
        assert config['simulation']['rng_seed'] == DEFAULT_CONFIG['simulation']['rng_seed']
        assert config['placement']['max_attempts'] == 25
        assert config['placement']['nearest_max_attempts'] == 1000

    def test_defaults_not_mutated(self, tmp_path):
        path = tmp_path / 'override.yaml'
        path.write_text("simulation:\n  max_children: 1\n")
        load_config(str(path))
        assert DEFAULT_CONFIG['simulation']['max_children'] == 5

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / 'empty.yaml'
        path.write_text("")
        assert load_config(str(path)) == DEFAULT_CONFIG

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / 'absent.yaml'))

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / 'list.yaml'
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_config(str(path))


class TestSettings:
    """Typed views over the merged configuration."""

    def test_generation_settings_from_config(self, tmp_path):
        path = tmp_path / 'gen.yaml'
        path.write_text("simulation:\n  depth: 3\n  max_children: 7\n"
                        "placement:\n  max_attempts: 10\n")
        settings = GenerationSettings.from_config(load_config(str(path)))
        assert settings == GenerationSettings(max_attempts=10, max_children=7, depth=3)

    def test_solver_settings_build_propagator(self):
        settings = SolverSettings.from_config(DEFAULT_CONFIG)
        propagator = UniversalVariablePropagator.from_settings(settings)
        assert propagator.tolerance == settings.tolerance
        assert propagator.max_iterations == settings.max_iterations

    @pytest.mark.parametrize("kwargs", [{'max_attempts': 0}, {'depth': -1}])
    def test_invalid_generation_settings(self, kwargs):
        with pytest.raises(ValueError):
            GenerationSettings(**kwargs)

    def test_invalid_solver_settings(self):
        with pytest.raises(ValueError):
            SolverSettings(tolerance=0.0)
