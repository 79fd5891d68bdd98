"""
===============================================================================
COSMOGEN - Entry Point Test Suite
===============================================================================
End-to-end generation through the main module: a root is configured,
populated and exported as a table.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pandas as pd
import pytest
from numpy.testing import assert_allclose

import main
from core.config import DEFAULT_CONFIG, load_config
from generation.structure_kind import StructureKind
from main import build_propagator, locations_frame, run_generation


class TestRunGeneration:
    """run_generation() and the CSV export."""

    def test_hii_region_tree(self, tmp_path):
        output = tmp_path / 'tree.csv'
        store = run_generation(DEFAULT_CONFIG, StructureKind.HII_REGION, seed=5,
                               depth=1, max_children=2, output=str(output))
        frame = pd.read_csv(output)
        assert len(frame) == len(store)
        assert (frame['kind'] == 'HII Region').sum() == 1
        assert 1 <= (frame['kind'] == 'Star System').sum() <= 2

    def test_root_without_child_definitions(self):
        store = run_generation(DEFAULT_CONFIG, StructureKind.STAR_SYSTEM, seed=1,
                               depth=2, max_children=3)
        frame = locations_frame(store)
        assert (frame['kind'] == 'Star System').sum() == 1
        assert (frame['kind'] == 'Oort Cloud').sum() == 1
        assert frame['parent_id'].isna().sum() == 1

    def test_frame_uses_absolute_positions(self):
        store = run_generation(DEFAULT_CONFIG, StructureKind.GALAXY_SUBGROUP, seed=2,
                               depth=0, max_children=0)
        frame = locations_frame(store).set_index('id')
        for location in store:
            absolute = location.get_absolute_position(store)
            assert frame.loc[location.id, 'x'] == absolute[0]


class TestSolverConfiguration:
    """The solver section drives every position export."""

    @pytest.fixture
    def solver_config(self, tmp_path):
        path = tmp_path / 'solver.yaml'
        path.write_text("solver:\n  tolerance: 1.0e-10\n  max_iterations: 7\n")
        return load_config(str(path))

    def test_build_propagator(self, solver_config):
        propagator = build_propagator(solver_config)
        assert propagator.max_iterations == 7
        assert propagator.tolerance == 1.0e-10

    def test_configured_solver_reaches_export(self, solver_config, monkeypatch):
        captured = []
        original = main.locations_frame

        def recording_frame(store, moment=None, propagator=None):
            captured.append((moment, propagator))
            return original(store, moment, propagator)

        monkeypatch.setattr(main, 'locations_frame', recording_frame)
        run_generation(solver_config, StructureKind.STAR_SYSTEM, seed=4,
                       depth=0, max_children=0, moment=3.0e7)
        moment, propagator = captured[0]
        assert moment == 3.0e7
        assert propagator.max_iterations == 7

    def test_positions_at_moment(self, tmp_path):
        output = tmp_path / 'later.csv'
        moment = 3.0e7
        store = run_generation(DEFAULT_CONFIG, StructureKind.STAR_SYSTEM, seed=4,
                               depth=0, max_children=0, output=str(output),
                               moment=moment)
        frame = pd.read_csv(output).set_index('id')
        for location in store:
            expected = location.get_absolute_position(store, moment)
            assert_allclose(frame.loc[location.id, ['x', 'y', 'z']].to_numpy(dtype=float),
                            expected, rtol=1e-9)
