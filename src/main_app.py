"""Serves as the command line entry point of the hex tilemap generator."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import TYPE_CHECKING

import constants
from enums import HexLayout
from logging_config import setup_logging
from model.boundary import NoBoundary, OutsideGrid
from model.hex_tileset import HexTileset, TilesetError
from model.tileset_manager import HexTilemapRenderer
from model.wfc_manager import HexWFCManager

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Creates the argument parser of the command line interface.

    Returns:
        The parser for the grid size, tileset, seed, layout, output and logging options.
    """
    parser = argparse.ArgumentParser(description="Generate a hex tilemap with the Wave Function Collapse algorithm")
    parser.add_argument(
        "--tileset",
        type=Path,
        default=Path(constants.EXAMPLE_TILESET_PATH),
        help=f"Path to a JSON tileset (default: {constants.EXAMPLE_TILESET_PATH})",
    )
    parser.add_argument("--width", type=int, default=constants.TILEMAP_SIZE_DEFAULT, help="Grid width in cells")
    parser.add_argument("--height", type=int, default=constants.TILEMAP_SIZE_DEFAULT, help="Grid height in cells")
    parser.add_argument("--seed", type=int, help="Seed of the first attempt (default: random)")
    parser.add_argument(
        "--attempts",
        type=int,
        default=constants.WFC_MAX_ATTEMPTS_DEFAULT,
        help=f"Maximum number of attempts (default: {constants.WFC_MAX_ATTEMPTS_DEFAULT})",
    )
    parser.add_argument(
        "--layout",
        choices=[layout.value for layout in HexLayout],
        default=HexLayout.ODD_R.value,
        help=f"Neighbor offset table of the grid (default: {HexLayout.ODD_R.value})",
    )
    parser.add_argument(
        "--bounded",
        action="store_true",
        help="Do not wrap around the grid edges",
    )
    parser.add_argument("--output", type=Path, help="Write the tilemap as an image to this path")
    parser.add_argument(
        "--tile-size",
        type=int,
        default=constants.HEX_TILE_SIZE_DEFAULT,
        help=f"Hexagon width in pixels for --output (default: {constants.HEX_TILE_SIZE_DEFAULT})",
    )
    parser.add_argument("--log-dir", type=Path, help="Also write a debug log file to this directory")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging on the console")
    return parser


def format_tile_grid(tile_grid: NDArray[np.int_], tileset: HexTileset) -> str:
    """Returns the tile grid as text, one character per cell, with odd rows indented by one space."""
    lines = []
    for row in range(tile_grid.shape[0]):
        symbols = [
            tileset.tile_names[tile_index][0] if tile_index >= 0 else "." for tile_index in tile_grid[row].tolist()
        ]
        lines.append((" " if row % 2 else "") + " ".join(symbols))
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """Generates a hex tilemap from the command line arguments and prints it.

    Args:
        argv: The command line arguments (defaults to sys.argv).

    Returns:
        The exit code: 0 on success, 1 if every attempt ended in a contradiction, 2 if the tileset could not be
        loaded. Invalid arguments exit with code 2 through the parser.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    console_level = logging.DEBUG if args.debug else logging.WARNING
    setup_logging(args.log_dir, console_level=console_level)

    for name in ("width", "height"):
        value = getattr(args, name)
        if not constants.TILEMAP_SIZE_MIN_LIMIT <= value <= constants.TILEMAP_SIZE_MAX_LIMIT:
            parser.error(
                f"--{name} must lie between {constants.TILEMAP_SIZE_MIN_LIMIT} and {constants.TILEMAP_SIZE_MAX_LIMIT}"
            )

    try:
        tileset = HexTileset.from_json_file(args.tileset)
    except (OSError, TilesetError) as e:
        logger.error("Could not load tileset %s: %s", args.tileset, e)
        return 2

    on_boundary = OutsideGrid(args.width, args.height) if args.bounded else NoBoundary()
    try:
        manager = HexWFCManager(args.width, args.height, tileset, on_boundary, layout=HexLayout(args.layout))
    except ValueError as e:
        parser.error(str(e))
    result = manager.generate_with_retries(args.attempts, args.seed)

    print(format_tile_grid(result.tile_grid, tileset))
    if not result.success:
        print(f"Generation failed after {result.attempts} attempt(s).", file=sys.stderr)
        return 1

    print(f"Generated with seed {result.seed} after {result.attempts} attempt(s).")

    if args.output is not None:
        renderer = HexTilemapRenderer(tileset, args.tile_size)
        renderer.save_tilemap_img(renderer.get_tilemap_img(result.tile_grid), str(args.output))
        print(f"Saved tilemap image to {args.output}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
