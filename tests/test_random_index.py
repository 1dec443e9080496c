"""Tests for the weighted random index sampling."""

import numpy as np
import pytest

from model.random_index import random_index


class TestRandomIndex:

    def test_uniform_weights(self):
        assert random_index([1.0, 1.0], 0.25) == 0
        assert random_index([1.0, 1.0], 0.75) == 1

    def test_cumulative_boundary_is_inclusive(self):
        assert random_index([1.0, 1.0], 0.5) == 0

    def test_zero_weights_are_never_picked(self):
        for r in (0.0, 0.1, 0.5, 0.99):
            assert random_index([0.0, 3.0, 0.0], r) == 1

    def test_zero_sample_picks_first_positive_weight(self):
        assert random_index([0.0, 0.0, 2.0, 1.0], 0.0) == 2

    def test_sample_close_to_one_picks_last_positive_weight(self):
        assert random_index([1.0, 1.0, 0.0], 0.9999999) == 1

    def test_all_zero_weights(self):
        assert random_index([0.0, 0.0], 0.5) == 0

    def test_accepts_numpy_arrays(self):
        assert random_index(np.array([0.0, 1.0, 3.0]), 0.5) == 2

    def test_negative_weight(self):
        with pytest.raises(ValueError, match="must not be negative"):
            random_index([1.0, -1.0], 0.5)

    def test_frequencies_follow_weights(self):
        samples = [random_index([1.0, 3.0], (k + 0.5) / 1000) for k in range(1000)]
        assert samples.count(1) == 750
