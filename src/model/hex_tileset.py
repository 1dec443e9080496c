"""Manages the tile weights and adjacency rules (the propagator) of a hex tileset."""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Sequence, TYPE_CHECKING

import numpy as np

import constants
from enums import HexDirection, HexLayout

if TYPE_CHECKING:
    from numpy.typing import NDArray


class TilesetError(ValueError):
    """Raised when a tileset configuration is malformed."""


class HexTileset:
    """Immutable tile weights and adjacency rules used by the hex WFC model.

    The propagator lists, for every direction and tile, the tiles that may occupy the neighboring cell in that
    direction. It has to be reciprocal: if tile B is listed under (direction d, tile A), then tile A has to be listed
    under (reverse of d, tile B). The compatibility counters of the model rely on this, so it is checked here instead of
    surfacing later as a miscounted cell.

    Attributes:
        tile_count: The total number of tiles.
        weights: The weight of each tile (used as probability weight when collapsing a cell).
        weight_log_weights: weight * log(weight) of each tile.
        sum_of_weights: Sum of the weights of all tiles.
        sum_of_weight_log_weights: Sum of weight * log(weight) of all tiles.
        starting_entropy: The entropy of a cell in which every tile is still possible.
        propagator: propagator[d][t] holds the tiles compatible with tile t one step in direction d.
        tile_names: A display name for each tile.
        tile_colors: An RGB color for each tile (used for rendering).
    """

    tile_count: int
    weights: NDArray[np.double]
    weight_log_weights: NDArray[np.double]
    sum_of_weights: float
    sum_of_weight_log_weights: float
    starting_entropy: float
    propagator: tuple[tuple[tuple[int, ...], ...], ...]
    tile_names: list[str]
    tile_colors: list[tuple[int, int, int]]

    def __init__(
        self,
        weights: Sequence[float],
        propagator: Sequence[Sequence[Sequence[int]]],
        tile_names: Sequence[str] | None = None,
        tile_colors: Sequence[tuple[int, int, int]] | None = None,
    ) -> None:
        """Validates the tileset and precomputes the entropy baseline.

        Args:
            weights: The positive, finite weight of each tile.
            propagator: For each of the six directions and each tile, the indices of the compatible tiles.
            tile_names: Optional display name for each tile. Defaults to the tile indices.
            tile_colors: Optional RGB color for each tile. Defaults to constants.DEFAULT_TILE_COLOR.

        Raises:
            TilesetError: If the weights, propagator, names or colors are malformed.
        """
        self.weights = np.array(weights, dtype=np.double)
        if self.weights.ndim != 1 or len(self.weights) == 0:
            raise TilesetError("A tileset needs at least one tile weight.")
        if not np.isfinite(self.weights).all() or (self.weights <= 0).any():
            raise TilesetError(f"Tile weights must be positive and finite, got {self.weights.tolist()}.")
        self.tile_count = len(self.weights)

        self.propagator = self._validate_propagator(propagator)

        self.weight_log_weights = self.weights * np.log(self.weights)
        self.sum_of_weights = float(self.weights.sum())
        self.sum_of_weight_log_weights = float(self.weight_log_weights.sum())
        self.starting_entropy = math.log(self.sum_of_weights) - self.sum_of_weight_log_weights / self.sum_of_weights

        if tile_names is None:
            self.tile_names = [str(t) for t in range(self.tile_count)]
        else:
            if len(tile_names) != self.tile_count:
                raise TilesetError(f"Expected {self.tile_count} tile names, got {len(tile_names)}.")
            self.tile_names = [str(name) for name in tile_names]

        if tile_colors is None:
            self.tile_colors = [constants.DEFAULT_TILE_COLOR] * self.tile_count
        else:
            if len(tile_colors) != self.tile_count:
                raise TilesetError(f"Expected {self.tile_count} tile colors, got {len(tile_colors)}.")
            self.tile_colors = [_parse_color(color) for color in tile_colors]

    def get_compatible_tiles(self, tile_index: int, direction: HexDirection) -> tuple[int, ...]:
        """Returns the tiles that may be placed one step in 'direction' away from the given tile."""
        return self.propagator[direction.value][tile_index]

    def get_tile_index(self, tile_name: str) -> int:
        """Returns the index of the tile with the given name."""
        try:
            return self.tile_names.index(tile_name)
        except ValueError:
            raise TilesetError(f"Unknown tile name: {tile_name!r}") from None

    def _validate_propagator(
        self, propagator: Sequence[Sequence[Sequence[int]]]
    ) -> tuple[tuple[tuple[int, ...], ...], ...]:
        """Checks shape, index ranges and reciprocity of the propagator and freezes it."""
        if len(propagator) != constants.HEX_DIRECTION_COUNT:
            raise TilesetError(
                f"The propagator needs an entry for each of the {constants.HEX_DIRECTION_COUNT} directions, "
                f"got {len(propagator)}."
            )

        frozen = []
        for d, tiles in enumerate(propagator):
            if len(tiles) != self.tile_count:
                raise TilesetError(
                    f"Direction {d} of the propagator has {len(tiles)} entries, expected {self.tile_count}."
                )
            direction_entries = []
            for t, compatible_tiles in enumerate(tiles):
                entry = tuple(int(t2) for t2 in compatible_tiles)
                if len(set(entry)) != len(entry):
                    raise TilesetError(f"Duplicate compatible tiles for tile {t} in direction {d}: {entry}.")
                for t2 in entry:
                    if not 0 <= t2 < self.tile_count:
                        raise TilesetError(f"Compatible tile {t2} for tile {t} in direction {d} is out of range.")
                direction_entries.append(entry)
            frozen.append(tuple(direction_entries))

        for d in range(constants.HEX_DIRECTION_COUNT):
            opposite = constants.HEX_OPPOSITE_DIRECTIONS[d]
            for t in range(self.tile_count):
                for t2 in frozen[d][t]:
                    if t not in frozen[opposite][t2]:
                        raise TilesetError(
                            f"The propagator is not reciprocal: tile {t2} is compatible with tile {t} in direction "
                            f"{d}, but tile {t} is not compatible with tile {t2} in direction {opposite}."
                        )

        return tuple(frozen)

    @classmethod
    def from_adjacency_rules(
        cls,
        weights: Sequence[float],
        adjacency_rules: NDArray[np.bool_],
        tile_names: Sequence[str] | None = None,
        tile_colors: Sequence[tuple[int, int, int]] | None = None,
    ) -> HexTileset:
        """Creates a tileset from a boolean adjacency matrix.

        adjacency_rules[t1, t2, d] is True if it is legal for t2 to be positioned one step in direction d away from t1.
        The rules are made reciprocal first, so each allowed pair is also allowed in the reverse direction.

        Args:
            weights: The weight of each tile.
            adjacency_rules: 3D boolean array of shape (tile_count, tile_count, 6).
            tile_names: Optional display name for each tile.
            tile_colors: Optional RGB color for each tile.

        Returns:
            The new tileset.
        """
        rules = np.asarray(adjacency_rules, dtype=bool)
        tile_count = len(weights)
        if rules.shape != (tile_count, tile_count, constants.HEX_DIRECTION_COUNT):
            raise TilesetError(
                f"Adjacency rules must have shape {(tile_count, tile_count, constants.HEX_DIRECTION_COUNT)}, "
                f"got {rules.shape}."
            )

        symmetric_rules = _symmetrize(rules)
        propagator = [
            [np.flatnonzero(symmetric_rules[t, :, d]).tolist() for t in range(tile_count)]
            for d in range(constants.HEX_DIRECTION_COUNT)
        ]
        return cls(weights, propagator, tile_names, tile_colors)

    @classmethod
    def from_sample_array(cls, sample_array: NDArray[np.int_], layout: HexLayout = HexLayout.CLASSIC) -> HexTileset:
        """Extracts tiles, their frequencies and their adjacencies from a sample laid out on the hex grid.

        Each unique value of the sample becomes a tile, in the order of first appearance (row by row). Its weight is
        the number of its occurrences. Two tiles are compatible in a direction if they occur next to each other in that
        direction at least once in the sample. Neighbors outside of the sample are ignored.

        Args:
            sample_array: 2D array of shape (height, width) holding tile values.
            layout: The neighbor offset table used to find the neighbors in the sample.

        Returns:
            The new tileset. The tile names are the sample values.
        """
        sample = np.asarray(sample_array)
        if sample.ndim != 2 or sample.size == 0:
            raise TilesetError(f"A sample array must be a non-empty 2D array, got shape {sample.shape}.")

        tile_indices_by_value: dict[int, int] = {}
        frequencies: list[int] = []
        for row in range(sample.shape[0]):
            for col in range(sample.shape[1]):
                value = int(sample[row, col])
                if value not in tile_indices_by_value:
                    tile_indices_by_value[value] = len(frequencies)
                    frequencies.append(1)
                else:
                    frequencies[tile_indices_by_value[value]] += 1

        tile_count = len(frequencies)
        rules = np.full((tile_count, tile_count, constants.HEX_DIRECTION_COUNT), False, dtype=bool)
        for row in range(sample.shape[0]):
            for col in range(sample.shape[1]):
                tile_index = tile_indices_by_value[int(sample[row, col])]
                for direction in HexDirection:
                    dx, dy = direction.to_vector(row, layout)
                    neighbor_row, neighbor_col = row + dy, col + dx
                    if not (0 <= neighbor_row < sample.shape[0] and 0 <= neighbor_col < sample.shape[1]):
                        continue
                    neighbor_tile_index = tile_indices_by_value[int(sample[neighbor_row, neighbor_col])]
                    rules[tile_index, neighbor_tile_index, direction.value] = True

        names = [str(value) for value in tile_indices_by_value]
        return cls.from_adjacency_rules(frequencies, rules, tile_names=names)

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> HexTileset:
        """Creates a tileset from a configuration dictionary.

        The configuration lists the tiles and the rules naming which tiles may neighbor each other:

            {
                "tiles": [{"name": "water", "weight": 4, "color": "#2060c0"}, ...],
                "rules": [{"tile": "water", "neighbors": {"*": ["water", "sand"]}}, ...]
            }

        A rule key is either the name of a HexDirection or "*" for all six directions. Rules are made reciprocal.

        Args:
            config: The parsed configuration.

        Returns:
            The new tileset.

        Raises:
            TilesetError: If the configuration is malformed or refers to unknown tiles or directions.
        """
        if not isinstance(config, dict):
            raise TilesetError(f"A tileset configuration must be an object, got {type(config).__name__}.")
        tiles = config.get("tiles")
        if not tiles or not isinstance(tiles, list):
            raise TilesetError("A tileset configuration needs a non-empty 'tiles' list.")

        names = []
        weights = []
        colors = []
        for tile in tiles:
            if not isinstance(tile, dict) or "name" not in tile:
                raise TilesetError(f"Tile entry without a name: {tile!r}")
            names.append(str(tile["name"]))
            try:
                weights.append(float(tile.get("weight", 1.0)))
            except (TypeError, ValueError):
                raise TilesetError(f"Invalid weight for tile {tile['name']!r}: {tile.get('weight')!r}") from None
            colors.append(_parse_color(tile.get("color", constants.DEFAULT_TILE_COLOR)))
        if len(set(names)) != len(names):
            raise TilesetError(f"Tile names must be unique, got {names}.")

        indices_by_name = {name: index for index, name in enumerate(names)}

        def lookup(name: Any) -> int:
            if not isinstance(name, str) or name not in indices_by_name:
                raise TilesetError(f"Rule refers to unknown tile {name!r}.")
            return indices_by_name[name]

        rule_entries = config.get("rules", [])
        if not isinstance(rule_entries, list):
            raise TilesetError("The 'rules' of a tileset configuration must be a list.")

        rules = np.full((len(names), len(names), constants.HEX_DIRECTION_COUNT), False, dtype=bool)
        for rule in rule_entries:
            if not isinstance(rule, dict) or "tile" not in rule:
                raise TilesetError(f"Rule entry without a tile: {rule!r}")
            tile_index = lookup(rule["tile"])
            neighbors = rule.get("neighbors", {})
            if not isinstance(neighbors, dict):
                raise TilesetError(f"The neighbors of tile {rule['tile']!r} must map directions to tile lists.")
            for direction_key, neighbor_names in neighbors.items():
                if direction_key == "*":
                    directions = list(HexDirection)
                else:
                    try:
                        directions = [HexDirection.from_name(direction_key)]
                    except ValueError as e:
                        raise TilesetError(str(e)) from e
                if not isinstance(neighbor_names, list):
                    raise TilesetError(
                        f"Neighbors of tile {rule['tile']!r} in direction {direction_key!r} must be a list of tile "
                        f"names, got {neighbor_names!r}."
                    )
                for neighbor_name in neighbor_names:
                    neighbor_index = lookup(neighbor_name)
                    for direction in directions:
                        rules[tile_index, neighbor_index, direction.value] = True

        return cls.from_adjacency_rules(weights, rules, tile_names=names, tile_colors=colors)

    @classmethod
    def from_json_file(cls, path: str | Path) -> HexTileset:
        """Loads a tileset configuration from a JSON file (see 'from_config()')."""
        with open(path, encoding="utf-8") as f:
            try:
                config = json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise TilesetError(f"Invalid tileset file {path}: {e}") from e
        return cls.from_config(config)


def _symmetrize(adjacency_rules: NDArray[np.bool_]) -> NDArray[np.bool_]:
    """Adds the reverse of every allowed adjacency (t2 in direction d of t1 allows t1 in the reverse direction)."""
    symmetric_rules = adjacency_rules.copy()
    for d in range(constants.HEX_DIRECTION_COUNT):
        opposite = constants.HEX_OPPOSITE_DIRECTIONS[d]
        symmetric_rules[:, :, d] |= adjacency_rules[:, :, opposite].T
    return symmetric_rules


def _parse_color(color: Any) -> tuple[int, int, int]:
    """Converts '#rrggbb' strings or RGB sequences into an RGB tuple."""
    if isinstance(color, str):
        hex_str = color.lstrip("#")
        if len(hex_str) != 6:
            raise TilesetError(f"Invalid color string: {color!r}")
        try:
            return int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16)
        except ValueError:
            raise TilesetError(f"Invalid color string: {color!r}") from None
    try:
        rgb = tuple(int(channel) for channel in color)
    except (TypeError, ValueError):
        raise TilesetError(f"Invalid RGB color: {color!r}") from None
    if len(rgb) != 3 or not all(0 <= channel <= 255 for channel in rgb):
        raise TilesetError(f"Invalid RGB color: {color!r}")
    return rgb[0], rgb[1], rgb[2]
