"""Contains all global enumeration classes used throughout the project."""

from __future__ import annotations

from enum import Enum

import constants


class HexLayout(Enum):
    """Defines the neighbor offset tables available for the hex offset grid."""

    CLASSIC = "classic"
    """The classic fixed lookup table. Directions 1 and 4 change their offset with the row parity. Not symmetric."""
    ODD_R = "odd-r"
    """Odd rows are shifted right by half a cell. Every direction is the exact reverse of its opposite direction."""


class HexDirection(Enum):
    """Defines the six neighbor directions of a cell on the hex offset grid.

    The value of each member is the direction index used by the propagator table and the compatibility counters. The
    opposite of direction d is direction (d + 3) % 6. The names describe the neighbor positions of the odd-r layout;
    the classic layout maps the same indices through its own fixed table (see 'to_vector()').
    """

    WEST = 0
    """Left neighbor in the same row."""
    NORTHWEST = 1
    """Upper left neighbor."""
    NORTHEAST = 2
    """Upper right neighbor."""
    EAST = 3
    """Right neighbor in the same row."""
    SOUTHEAST = 4
    """Lower right neighbor."""
    SOUTHWEST = 5
    """Lower left neighbor."""

    def reverse(self) -> HexDirection:
        """Returns the opposite direction of the current direction."""
        return HexDirection(constants.HEX_OPPOSITE_DIRECTIONS[self.value])

    def to_vector(self, row: int, layout: HexLayout = HexLayout.CLASSIC) -> tuple[int, int]:
        """Returns the (dx, dy) offset of the neighbor in this direction for a cell in the given row.

        The offsets are looked up from fixed tables per layout and row parity.
        """
        if layout == HexLayout.ODD_R:
            if row % 2 == 0:
                return constants.ODD_R_DX_EVEN_ROW[self.value], constants.ODD_R_DY_EVEN_ROW[self.value]
            return constants.ODD_R_DX_ODD_ROW[self.value], constants.ODD_R_DY_ODD_ROW[self.value]

        if row % 2 == 0:
            return constants.HEX_DX_EVEN_ROW[self.value], constants.HEX_DY_EVEN_ROW[self.value]
        return constants.HEX_DX_ODD_ROW[self.value], constants.HEX_DY_ODD_ROW[self.value]

    @classmethod
    def from_name(cls, name: str) -> HexDirection:
        """Looks up a direction by its (case-insensitive) member name."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown hex direction: {name!r}") from None


class GenerationState(Enum):
    """Defines the lifecycle states of a single generation attempt."""

    UNINITIALIZED = "Uninitialized"
    """No attempt has been started since the model was created."""
    CLEARED = "Cleared"
    """The wave has been reset and no cell has been observed yet."""
    RUNNING = "Running"
    """At least one observation has been made and the attempt has not finished."""
    SUCCEEDED = "Succeeded"
    """Every cell was collapsed to exactly one tile."""
    CONTRADICTION = "Contradiction"
    """Some cell ran out of possible tiles. The attempt failed."""

    def is_terminal(self) -> bool:
        """Returns True if the attempt has finished (successfully or not)."""
        return self in (GenerationState.SUCCEEDED, GenerationState.CONTRADICTION)
