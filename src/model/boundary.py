"""Contains the boundary predicates deciding which grid coordinates take part in generation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


class NoBoundary:
    """Boundary predicate that excludes nothing, so the grid wraps around on every edge (torus)."""

    def __call__(self, x: int, y: int) -> bool:
        return False

    def __repr__(self) -> str:
        return "NoBoundary()"


class OutsideGrid:
    """Boundary predicate that excludes every coordinate outside of the grid.

    With this predicate the grid behaves like a bounded map: propagation never crosses an edge and nothing wraps.
    """

    width: int
    height: int

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def __call__(self, x: int, y: int) -> bool:
        return x < 0 or y < 0 or x >= self.width or y >= self.height

    def __repr__(self) -> str:
        return f"OutsideGrid(width={self.width}, height={self.height})"


class MaskBoundary:
    """Boundary predicate backed by a boolean mask of excluded cells.

    Cells whose mask entry is True are excluded from observation and propagation. Coordinates outside of the mask are
    excluded as well, unless 'wrap' is set, in which case they are mapped back onto the grid and the mask is consulted
    at the wrapped position.

    Attributes:
        mask: 2D boolean array of shape (height, width), True for each excluded cell.
        wrap: If True, coordinates outside of the mask wrap around instead of being excluded.
    """

    mask: NDArray[np.bool_]
    wrap: bool

    def __init__(self, mask: NDArray[np.bool_], wrap: bool = False) -> None:
        self.mask = np.asarray(mask, dtype=bool)
        if self.mask.ndim != 2:
            raise ValueError(f"Boundary mask must be two-dimensional, got shape {self.mask.shape}.")
        self.wrap = wrap

    def __call__(self, x: int, y: int) -> bool:
        height, width = self.mask.shape
        if not (0 <= x < width and 0 <= y < height):
            if not self.wrap:
                return True
            x %= width
            y %= height
        return bool(self.mask[y, x])

    def __repr__(self) -> str:
        return f"MaskBoundary(shape={self.mask.shape}, wrap={self.wrap})"
