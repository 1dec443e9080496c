"""Implements the core WFC algorithm on a hexagonal offset grid."""

from __future__ import annotations

import logging
import math
import random
from typing import Callable, TYPE_CHECKING

import numpy as np

import constants
from enums import GenerationState, HexDirection, HexLayout
from model.boundary import NoBoundary
from model.random_index import random_index

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from model.hex_tileset import HexTileset

logger = logging.getLogger(__name__)

BoundaryPredicate = Callable[[int, int], bool]
RandomSource = Callable[[], float]


class HexWFC:
    """Wave Function Collapse model for a hexagonal grid of 'width' x 'height' cells.

    All per-cell state is addressed by the flat cell index i = x + y * width and is stored as contiguous numpy arrays
    (structure of arrays). The wave holds which tiles are still possible at each cell. For every cell, tile and
    direction, a compatibility counter tracks how many still possible tiles of the neighbor cell support the tile. When
    a counter drops to zero the tile gets banned, which is pushed onto the propagation stack and may cascade further.

    Each generation attempt starts with 'clear()' and then alternates between observing (collapsing the cell with the
    lowest entropy to a single tile) and propagating, until either every cell holds exactly one tile (success) or some
    cell has no possible tile left (contradiction). There is no backtracking: a contradiction ends the attempt.

    Attributes:
        width: The width of the grid (in cells).
        height: The height of the grid (in cells).
        cell_count: The total number of cells (width * height).
        tileset: Tile weights and the propagator table.
        on_boundary: Predicate telling which (possibly out-of-range) coordinates are excluded from generation. An
            out-of-range coordinate that is not excluded wraps around to the opposite edge of the grid.
        recompute_interval: Number of steps between exact recomputations of the entropy sums (0 disables it).
        layout: The neighbor offset table of the grid.
        state: The lifecycle state of the current generation attempt.
        observed: The tile chosen for each cell, filled when an attempt succeeds (-1 for boundary cells).
        contradiction_cell: The index of the cell that ran out of tiles in a failed attempt, otherwise None.
    """

    width: int
    height: int
    cell_count: int
    tileset: HexTileset
    on_boundary: BoundaryPredicate
    recompute_interval: int
    layout: HexLayout
    state: GenerationState
    observed: NDArray[np.int_]
    contradiction_cell: int | None

    # (cell_count, tile_count) boolean array, True for each tile that is still possible at a cell.
    _wave: NDArray[np.bool_]
    # (cell_count, tile_count, 6) array counting the supporting neighbor tiles per cell, tile and direction.
    _compatible: NDArray[np.int_]
    # (tile_count, 6) array of the counter values every cell starts an attempt with.
    _initial_compatible: NDArray[np.int_]

    # Number of possible tiles per cell.
    _sums_of_ones: NDArray[np.int_]
    # Sum of the weights of the possible tiles per cell.
    _sums_of_weights: NDArray[np.double]
    # Sum of weight * log(weight) of the possible tiles per cell.
    _sums_of_weight_log_weights: NDArray[np.double]
    # Entropy per cell, derived from the two sums above.
    _entropies: NDArray[np.double]

    # Stack of (cell, tile) bans that have not been propagated yet.
    _stack: list[tuple[int, int]]

    # (cell_count, 6) array with the neighbor cell index in each direction, -1 where the boundary stops propagation.
    _neighbors: NDArray[np.int_]
    # (cell_count, 6) boolean array, True if some non-boundary cell propagates into the cell from that direction.
    _receives_propagation: NDArray[np.bool_]
    # True for each cell excluded by the boundary predicate.
    _boundary_cells: NDArray[np.bool_]

    # Tiles fixed for specific cells before each attempt (cell index -> tile index).
    _predetermined: dict[int, int]
    # Number of completed observe/propagate steps in the current attempt.
    _steps: int

    def __init__(
        self,
        width: int,
        height: int,
        tileset: HexTileset,
        on_boundary: BoundaryPredicate | None = None,
        recompute_interval: int = constants.ENTROPY_RECOMPUTE_INTERVAL_DEFAULT,
        layout: HexLayout = HexLayout.CLASSIC,
    ) -> None:
        """Initializes the model and allocates all per-cell data structures.

        Args:
            width: The width of the grid (in cells).
            height: The height of the grid (in cells).
            tileset: Tile weights and the propagator table.
            on_boundary: Predicate excluding coordinates from generation and propagation. Defaults to NoBoundary (the
                grid wraps around on every edge).
            recompute_interval: Number of steps between exact recomputations of the entropy sums (0 disables it).
            layout: The neighbor offset table of the grid.

        Raises:
            ValueError: If the grid size or the recompute interval is invalid, or the odd-r layout wraps around an odd
                number of rows.
        """
        if not isinstance(width, int) or not isinstance(height, int) or width <= 0 or height <= 0:
            raise ValueError(f"Grid width and height must be positive integers, got {width!r} x {height!r}.")
        if recompute_interval < 0:
            raise ValueError(f"The recompute interval must not be negative, got {recompute_interval}.")

        self.width = width
        self.height = height
        self.cell_count = width * height
        self.tileset = tileset
        self.on_boundary = on_boundary if on_boundary is not None else NoBoundary()
        self.recompute_interval = recompute_interval
        self.layout = layout

        self._predetermined = {}

        self.initialize()

    def initialize(self) -> None:
        """Allocates the wave, the counters and the per-cell sums, and precomputes the neighbor table.

        The boundary predicate is evaluated here once for every cell and every neighbor coordinate, so it has to be a
        pure function of its arguments.

        Raises:
            ValueError: If the odd-r layout links two cells in one direction only, which happens when the rows wrap
                around and the grid height is odd.
        """
        tile_count = self.tileset.tile_count

        self._wave = np.full((self.cell_count, tile_count), True, dtype=bool)
        self._compatible = np.zeros((self.cell_count, tile_count, constants.HEX_DIRECTION_COUNT), dtype=np.int_)

        # A tile at a cell is supported from direction d by the tiles of the neighbor that list it under direction d,
        # which (the propagator being reciprocal) are exactly the tiles it lists under the reverse direction.
        self._initial_compatible = np.zeros((tile_count, constants.HEX_DIRECTION_COUNT), dtype=np.int_)
        for t in range(tile_count):
            for direction in HexDirection:
                self._initial_compatible[t, direction.value] = len(
                    self.tileset.get_compatible_tiles(t, direction.reverse())
                )

        self._sums_of_ones = np.zeros(self.cell_count, dtype=np.int_)
        self._sums_of_weights = np.zeros(self.cell_count, dtype=np.double)
        self._sums_of_weight_log_weights = np.zeros(self.cell_count, dtype=np.double)
        self._entropies = np.zeros(self.cell_count, dtype=np.double)

        self._stack = []

        self._boundary_cells = np.array(
            [bool(self.on_boundary(i % self.width, i // self.width)) for i in range(self.cell_count)], dtype=bool
        )

        self._neighbors = np.full((self.cell_count, constants.HEX_DIRECTION_COUNT), -1, dtype=np.int_)
        self._receives_propagation = np.full((self.cell_count, constants.HEX_DIRECTION_COUNT), False, dtype=bool)
        for i in range(self.cell_count):
            x1 = i % self.width
            y1 = i // self.width
            for direction in HexDirection:
                dx, dy = direction.to_vector(y1, self.layout)
                x2 = x1 + dx
                y2 = y1 + dy

                # The predicate sees the unwrapped coordinate, so it can stop propagation across an edge.
                if self.on_boundary(x2, y2):
                    continue

                i2 = x2 % self.width + (y2 % self.height) * self.width
                self._neighbors[i, direction.value] = i2
                if not self._boundary_cells[i]:
                    self._receives_propagation[i2, direction.value] = True

        if self.layout == HexLayout.ODD_R:
            self._check_symmetric_neighbors()

        self.observed = np.full(self.cell_count, -1, dtype=np.int_)
        self.contradiction_cell = None
        self._steps = 0
        self.state = GenerationState.UNINITIALIZED

    def clear(self) -> None:
        """Resets the wave, the counters and the per-cell sums to start a new generation attempt.

        Afterwards every tile that has no support at all from a direction in which the cell has a neighbor gets banned,
        the predetermined tiles are applied and the resulting bans are propagated. This can already end the attempt in a
        contradiction (e.g. for a tileset where some tile is compatible with nothing).
        """
        self._wave[:] = True
        self._compatible[:] = self._initial_compatible
        self._sums_of_ones[:] = self.tileset.tile_count
        self._sums_of_weights[:] = self.tileset.sum_of_weights
        self._sums_of_weight_log_weights[:] = self.tileset.sum_of_weight_log_weights
        self._entropies[:] = self.tileset.starting_entropy
        self._stack.clear()

        self.observed = np.full(self.cell_count, -1, dtype=np.int_)
        self.contradiction_cell = None
        self._steps = 0
        self.state = GenerationState.CLEARED

        self._ban_unsupported_tiles()
        self._apply_predetermined()
        self.propagate()

        empty_cells = np.flatnonzero((self._sums_of_ones == 0) & ~self._boundary_cells)
        if len(empty_cells) > 0:
            self.contradiction_cell = int(empty_cells[0])
            self.state = GenerationState.CONTRADICTION
            logger.debug("Contradiction while clearing: cell %d has no possible tile.", self.contradiction_cell)
        else:
            logger.debug(
                "Cleared %dx%d grid with %d tiles (starting entropy %.4f).",
                self.width,
                self.height,
                self.tileset.tile_count,
                self.tileset.starting_entropy,
            )

    def ban(self, i: int, t: int) -> None:
        """Removes tile 't' from the possible tiles of cell 'i' and schedules the removal for propagation.

        Must only be called for a tile that is still possible at the cell, otherwise the per-cell sums count it twice.
        """
        # Zeroing the counters keeps propagation from banning the same tile at this cell again.
        self._compatible[i, t, :] = 0
        self._wave[i, t] = False

        self._stack.append((i, t))

        self._sums_of_ones[i] -= 1
        self._sums_of_weights[i] -= self.tileset.weights[t]
        self._sums_of_weight_log_weights[i] -= self.tileset.weight_log_weights[t]

        if self._sums_of_ones[i] > 1:
            weight_sum = float(self._sums_of_weights[i])
            self._entropies[i] = math.log(weight_sum) - float(self._sums_of_weight_log_weights[i]) / weight_sum
        else:
            # A cell with a single tile has an entropy of exactly zero. An empty cell's entropy is undefined and never
            # read, since contradictions are detected through the tile count.
            self._entropies[i] = 0.0

    def propagate(self) -> None:
        """Propagates all pending bans until the stack is empty.

        For each popped ban and each direction, the counters of the tiles in the neighbor cell that were supported by
        the banned tile are decremented. Tiles whose counter reaches zero are banned in turn.
        """
        propagator = self.tileset.propagator
        while self._stack:
            i1, t1 = self._stack.pop()

            for d in range(constants.HEX_DIRECTION_COUNT):
                i2 = self._neighbors[i1, d]
                if i2 < 0:
                    continue

                compat = self._compatible[i2]
                for t2 in propagator[d][t1]:
                    compat[t2, d] -= 1
                    if compat[t2, d] == 0:
                        self.ban(i2, t2)

    def observe(self, rng: RandomSource) -> bool | None:
        """Collapses the non-boundary cell with the lowest entropy to a single tile.

        Entropies are compared with a tiny random noise added, so that ties are broken randomly instead of by index.

        Args:
            rng: Source of uniform random values in [0, 1).

        Returns:
            False if some cell has no possible tile left, True if every cell is collapsed (the observed tiles are
            filled in), None if a cell was collapsed and its bans now have to be propagated.
        """
        min_entropy = constants.INITIAL_MIN_ENTROPY
        argmin = -1

        for i in range(self.cell_count):
            if self._boundary_cells[i]:
                continue

            amount = self._sums_of_ones[i]
            if amount == 0:
                self.contradiction_cell = i
                return False

            entropy = self._entropies[i]
            if amount > 1 and entropy <= min_entropy:
                noise = constants.ENTROPY_NOISE_SCALE * rng()
                if entropy + noise < min_entropy:
                    min_entropy = entropy + noise
                    argmin = i

        if argmin == -1:
            self._fill_observed()
            return True

        distribution = np.where(self._wave[argmin], self.tileset.weights, 0.0)
        r = random_index(distribution, rng())

        for t in range(self.tileset.tile_count):
            if self._wave[argmin, t] and t != r:
                self.ban(argmin, t)

        return None

    def single_iteration(self, rng: RandomSource) -> bool | None:
        """Executes one observation and, unless the attempt has ended, the propagation following it.

        Returns:
            True on success, False on contradiction, None if the attempt continues.
        """
        result = self.observe(rng)

        if result is not None:
            if result:
                self.state = GenerationState.SUCCEEDED
                logger.debug("Generation succeeded after %d steps.", self._steps)
            else:
                self.state = GenerationState.CONTRADICTION
                logger.debug(
                    "Contradiction after %d steps: cell %s has no possible tile.", self._steps, self.contradiction_cell
                )
            return result

        self.propagate()
        self.state = GenerationState.RUNNING
        self._steps += 1

        if self.recompute_interval > 0 and self._steps % self.recompute_interval == 0:
            self.recompute_entropies()

        return None

    def iterate(self, iterations: int = 0, rng: RandomSource | None = None) -> bool:
        """Executes up to 'iterations' steps of the current attempt (all remaining steps if 'iterations' is 0).

        The attempt is cleared first if none has been started yet. Once the attempt has ended, further calls return the
        same result without touching the wave.

        Args:
            iterations: The maximum number of steps to execute (0 for no limit).
            rng: Source of uniform random values in [0, 1). Defaults to random.random.

        Returns:
            False if the attempt ended in a contradiction, True otherwise (either because it succeeded or because the
            step budget was used up before the attempt ended).
        """
        if rng is None:
            rng = random.random

        if self.state == GenerationState.UNINITIALIZED:
            self.clear()

        if self.state.is_terminal():
            return self.state == GenerationState.SUCCEEDED

        i = 0
        while iterations == 0 or i < iterations:
            result = self.single_iteration(rng)
            if result is not None:
                return result
            i += 1

        return True

    def generate(self, rng: RandomSource | None = None) -> bool:
        """Executes a complete new generation attempt.

        Args:
            rng: Source of uniform random values in [0, 1). Defaults to random.random.

        Returns:
            True if every cell was collapsed, False if the attempt ended in a contradiction.
        """
        if rng is None:
            rng = random.random

        self.clear()
        if self.state.is_terminal():
            return self.state == GenerationState.SUCCEEDED

        while True:
            result = self.single_iteration(rng)
            if result is not None:
                return result

    def is_generation_complete(self) -> bool:
        """Returns True if the current attempt has successfully collapsed every cell."""
        return self.state == GenerationState.SUCCEEDED

    def predetermine(self, x: int, y: int, tile_index: int) -> None:
        """Fixes the tile of a cell for every following attempt (applied by 'clear()').

        Raises:
            ValueError: If the cell is out of range or excluded by the boundary predicate, or the tile is unknown.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValueError(f"Cell ({x}, {y}) is outside of the {self.width}x{self.height} grid.")
        i = x + y * self.width
        if self._boundary_cells[i]:
            raise ValueError(f"Cell ({x}, {y}) is excluded by the boundary predicate.")
        if not 0 <= tile_index < self.tileset.tile_count:
            raise ValueError(f"Tile index {tile_index} is out of range.")
        self._predetermined[i] = tile_index

    def clear_predetermined(self) -> None:
        """Removes all tiles fixed with 'predetermine()'."""
        self._predetermined.clear()

    def get_possible_tiles(self, x: int, y: int) -> list[int]:
        """Returns the indices of the tiles that are still possible at cell (x, y)."""
        return np.flatnonzero(self._wave[x + y * self.width]).tolist()

    def get_tile_grid(self) -> NDArray[np.int_]:
        """Returns a (height, width) array of tile indices.

        Cells that are collapsed hold their tile, all other cells (undecided, empty or boundary cells) hold -1. Can be
        called at any point of an attempt, e.g. to show its progress.
        """
        if self.state == GenerationState.SUCCEEDED:
            return self.observed.reshape(self.height, self.width).copy()

        tile_grid = np.full(self.cell_count, -1, dtype=np.int_)
        collapsed = (self._sums_of_ones == 1) & ~self._boundary_cells
        tile_grid[collapsed] = np.argmax(self._wave[collapsed], axis=1)
        return tile_grid.reshape(self.height, self.width)

    def recompute_entropies(self) -> None:
        """Recomputes the per-cell sums and entropies exactly from the wave.

        The sums are otherwise only updated incrementally, one ban at a time, and accumulate floating point error.
        """
        wave = self._wave.astype(np.double)
        self._sums_of_ones[:] = self._wave.sum(axis=1)
        self._sums_of_weights[:] = wave @ self.tileset.weights
        self._sums_of_weight_log_weights[:] = wave @ self.tileset.weight_log_weights

        multiple = self._sums_of_ones > 1
        self._entropies[:] = 0.0
        self._entropies[multiple] = (
            np.log(self._sums_of_weights[multiple])
            - self._sums_of_weight_log_weights[multiple] / self._sums_of_weights[multiple]
        )

    @property
    def predetermined(self) -> dict[int, int]:
        """Copy of the tiles fixed with 'predetermine()' (cell index -> tile index)."""
        return dict(self._predetermined)

    @property
    def collapsed_cell_count(self) -> int:
        """The number of non-boundary cells holding exactly one possible tile."""
        return int(((self._sums_of_ones == 1) & ~self._boundary_cells).sum())

    @property
    def wave(self) -> NDArray[np.bool_]:
        """Read-only view of the (cell_count, tile_count) wave."""
        return _read_only(self._wave)

    @property
    def compatible(self) -> NDArray[np.int_]:
        """Read-only view of the (cell_count, tile_count, 6) compatibility counters."""
        return _read_only(self._compatible)

    @property
    def sums_of_ones(self) -> NDArray[np.int_]:
        """Read-only view of the number of possible tiles per cell."""
        return _read_only(self._sums_of_ones)

    @property
    def sums_of_weights(self) -> NDArray[np.double]:
        """Read-only view of the weight sum of the possible tiles per cell."""
        return _read_only(self._sums_of_weights)

    @property
    def entropies(self) -> NDArray[np.double]:
        """Read-only view of the entropy per cell."""
        return _read_only(self._entropies)

    @property
    def boundary_cells(self) -> NDArray[np.bool_]:
        """Read-only view of the cells excluded by the boundary predicate."""
        return _read_only(self._boundary_cells)

    def _ban_unsupported_tiles(self) -> None:
        """Bans every tile whose counter is zero from a direction in which the cell has a propagating neighbor."""
        unsupported = ((self._compatible == 0) & self._receives_propagation[:, np.newaxis, :]).any(axis=2)
        unsupported[self._boundary_cells] = False
        for i, t in np.argwhere(unsupported):
            self.ban(int(i), int(t))

    def _check_symmetric_neighbors(self) -> None:
        """Checks that each link between two non-boundary cells also exists in the reverse direction."""
        for i in range(self.cell_count):
            if self._boundary_cells[i]:
                continue
            for direction in HexDirection:
                i2 = self._neighbors[i, direction.value]
                if i2 < 0 or self._boundary_cells[i2]:
                    continue
                if self._neighbors[i2, direction.reverse().value] != i:
                    raise ValueError(
                        f"The odd-r layout needs an even grid height when the rows wrap around, got height "
                        f"{self.height} (cell {i} reaches cell {i2} going {direction.name}, but not the other way "
                        f"around)."
                    )

    def _apply_predetermined(self) -> None:
        """Bans every tile other than the predetermined one in the predetermined cells."""
        for i, tile_index in self._predetermined.items():
            for t in range(self.tileset.tile_count):
                if t != tile_index and self._wave[i, t]:
                    self.ban(i, t)

    def _fill_observed(self) -> None:
        """Stores the single remaining tile of every non-boundary cell."""
        self.observed = np.where(self._boundary_cells, -1, np.argmax(self._wave, axis=1)).astype(np.int_)


def _read_only(array: NDArray) -> NDArray:
    view = array.view()
    view.flags.writeable = False
    return view
