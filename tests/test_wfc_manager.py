"""Tests for repeated and parallel generation runs."""

import numpy as np
import pytest

from enums import HexLayout
from model.boundary import OutsideGrid
from model.wfc_manager import GenerationResult, HexWFCManager


@pytest.fixture
def coast_manager(coast_tileset):
    return HexWFCManager(6, 6, coast_tileset, layout=HexLayout.ODD_R)


class TestGenerateWithRetries:

    def test_success(self, coast_manager):
        result = coast_manager.generate_with_retries(30, seed=1)
        assert isinstance(result, GenerationResult)
        assert result.success
        assert 1 <= result.attempts <= 30
        assert result.seed == 1 + result.attempts - 1
        assert result.tile_grid.shape == (6, 6)
        assert (result.tile_grid >= 0).all()
        assert coast_manager.model.is_generation_complete()

    def test_reproducible_from_seed(self, coast_tileset):
        first = HexWFCManager(6, 6, coast_tileset, layout=HexLayout.ODD_R).generate_with_retries(30, seed=7)
        second = HexWFCManager(6, 6, coast_tileset, layout=HexLayout.ODD_R).generate_with_retries(30, seed=7)
        assert first.seed == second.seed
        assert first.attempts == second.attempts
        np.testing.assert_array_equal(first.tile_grid, second.tile_grid)

    def test_random_seed(self, coast_manager):
        result = coast_manager.generate_with_retries(30)
        assert result.success
        assert result.seed >= 0

    def test_all_attempts_fail(self, incompatible_tileset):
        manager = HexWFCManager(3, 3, incompatible_tileset, OutsideGrid(3, 3))
        result = manager.generate_with_retries(3, seed=100)
        assert not result.success
        assert result.attempts == 3
        assert result.seed == 102
        assert (result.tile_grid == -1).all()

    def test_no_attempts(self, coast_manager):
        with pytest.raises(ValueError, match="At least one attempt"):
            coast_manager.generate_with_retries(0)


class TestGenerateParallel:

    def test_no_seeds(self, coast_manager):
        assert coast_manager.generate_parallel([]) == []

    def test_inline_matches_sequential(self, coast_tileset, coast_manager):
        results = coast_manager.generate_parallel([3, 9], max_attempts=30, process_count=1)
        assert len(results) == 2
        for seed, result in zip([3, 9], results):
            expected = HexWFCManager(6, 6, coast_tileset, layout=HexLayout.ODD_R).generate_with_retries(30, seed)
            assert result.success == expected.success
            assert result.seed == expected.seed
            np.testing.assert_array_equal(result.tile_grid, expected.tile_grid)

    def test_worker_processes(self, coast_tileset, coast_manager):
        seeds = [1, 2, 3]
        results = coast_manager.generate_parallel(seeds, max_attempts=30, process_count=2)
        assert len(results) == 3
        for seed, result in zip(seeds, results):
            assert result.seed >= seed
            expected = HexWFCManager(6, 6, coast_tileset, layout=HexLayout.ODD_R).generate_with_retries(30, seed)
            np.testing.assert_array_equal(result.tile_grid, expected.tile_grid)

    def test_predetermined_tiles_are_passed_on(self, coast_manager):
        coast_manager.model.predetermine(3, 3, 4)
        results = coast_manager.generate_parallel([5], max_attempts=30, process_count=1)
        assert results[0].success
        assert results[0].tile_grid[3, 3] == 4

    def test_default_process_count(self, coast_manager):
        results = coast_manager.generate_parallel([11], max_attempts=30)
        assert len(results) == 1
        assert results[0].success
