"""Tests for the enums module."""

import pytest

from enums import GenerationState, HexDirection, HexLayout


class TestHexDirectionReverse:
    """Tests for HexDirection.reverse()."""

    @pytest.mark.parametrize(
        "direction, expected",
        [
            (HexDirection.WEST, HexDirection.EAST),
            (HexDirection.NORTHWEST, HexDirection.SOUTHEAST),
            (HexDirection.NORTHEAST, HexDirection.SOUTHWEST),
            (HexDirection.EAST, HexDirection.WEST),
            (HexDirection.SOUTHEAST, HexDirection.NORTHWEST),
            (HexDirection.SOUTHWEST, HexDirection.NORTHEAST),
        ],
    )
    def test_reverse(self, direction, expected):
        assert direction.reverse() is expected

    def test_reverse_twice_is_identity(self):
        for direction in HexDirection:
            assert direction.reverse().reverse() is direction


class TestHexDirectionClassicLayout:
    """The classic layout is a fixed table in which only directions 1 and 4 depend on the row parity."""

    def test_even_row_offsets(self):
        offsets = [direction.to_vector(0) for direction in HexDirection]
        assert offsets == [(-1, 0), (1, 0), (0, 1), (1, 1), (1, 1), (0, -1)]

    def test_odd_row_offsets(self):
        offsets = [direction.to_vector(1) for direction in HexDirection]
        assert offsets == [(-1, 0), (0, -1), (0, 1), (1, 1), (0, 1), (0, -1)]

    def test_only_directions_one_and_four_depend_on_parity(self):
        changed = [d.value for d in HexDirection if d.to_vector(2) != d.to_vector(3)]
        assert changed == [1, 4]

    def test_default_layout_is_classic(self):
        for direction in HexDirection:
            assert direction.to_vector(5) == direction.to_vector(5, HexLayout.CLASSIC)


class TestHexDirectionOddRLayout:
    """The odd-r layout is symmetric: going one step and back returns to the start cell."""

    @pytest.mark.parametrize("row", [0, 1, 2, 3])
    def test_step_and_back(self, row):
        for direction in HexDirection:
            dx, dy = direction.to_vector(row, HexLayout.ODD_R)
            back_dx, back_dy = direction.reverse().to_vector(row + dy, HexLayout.ODD_R)
            assert (dx + back_dx, dy + back_dy) == (0, 0)

    def test_six_distinct_neighbors(self):
        for row in (0, 1):
            offsets = {direction.to_vector(row, HexLayout.ODD_R) for direction in HexDirection}
            assert len(offsets) == 6


class TestHexDirectionFromName:
    """Tests for HexDirection.from_name()."""

    def test_case_insensitive(self):
        assert HexDirection.from_name("northEast") is HexDirection.NORTHEAST
        assert HexDirection.from_name(" west ") is HexDirection.WEST

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown hex direction"):
            HexDirection.from_name("up")


class TestGenerationState:
    """Tests for GenerationState.is_terminal()."""

    def test_terminal_states(self):
        assert GenerationState.SUCCEEDED.is_terminal()
        assert GenerationState.CONTRADICTION.is_terminal()

    def test_non_terminal_states(self):
        assert not GenerationState.UNINITIALIZED.is_terminal()
        assert not GenerationState.CLEARED.is_terminal()
        assert not GenerationState.RUNNING.is_terminal()
