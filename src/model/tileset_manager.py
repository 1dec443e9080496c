"""Manages the visual representation of hex tilemaps."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from PIL import Image, ImageDraw

import constants

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

    from model.hex_tileset import HexTileset


class HexTilemapRenderer:
    """Renders a grid of tile indices as an image of hexagons.

    Rows are laid out with odd rows shifted right by half a hexagon. Each cell is drawn as a hexagon filled with the
    color of its tile, or with the tile's image if a tileset image has been set. Cells with the index -1 (undecided or
    boundary cells) are drawn in constants.UNCOLLAPSED_TILE_COLOR.
    """

    # The tileset providing the tile colors.
    _tileset: HexTileset
    # The width of a single hexagon in pixels.
    _hex_width: int
    # The height of a single hexagon in pixels.
    _hex_height: int
    # Optional dictionary mapping tile indices to tile images (resized to the hexagon's bounding box).
    _tiles: dict[int, Image.Image]
    # Hexagon shaped mask used to paste tile images.
    _hex_mask: Image.Image

    def __init__(self, tileset: HexTileset, tile_size: int = constants.HEX_TILE_SIZE_DEFAULT) -> None:
        """Initializes the renderer.

        Args:
            tileset: The tileset providing the tile colors.
            tile_size: The width of a single hexagon in pixels.
        """
        if tile_size < 2:
            raise ValueError(f"The tile size must be at least 2 pixels, got {tile_size}.")

        self._tileset = tileset
        self._hex_width = tile_size
        self._hex_height = int(round(tile_size * 2 / math.sqrt(3)))
        self._tiles = {}

        self._hex_mask = Image.new("L", (self._hex_width, self._hex_height), 0)
        ImageDraw.Draw(self._hex_mask).polygon(
            self._get_hex_polygon(self._hex_width / 2, self._hex_height / 2), fill=255
        )

    def set_tileset_img(self, tileset_img_path: str, tile_size: tuple[int, int]) -> None:
        """Loads a tileset image and extracts the individual tile images.

        The image is sliced into tiles of 'tile_size', indexed row by row. Tile images take precedence over the tile
        colors when rendering.

        Args:
            tileset_img_path: The file path to the source tileset image.
            tile_size: The dimensions (width, height) of a single tile in the tileset image in pixels.
        """
        self._tiles = {}

        with Image.open(tileset_img_path) as img:
            tileset_img = img.convert("RGB")

        rows = tileset_img.size[1] // tile_size[1]
        cols = tileset_img.size[0] // tile_size[0]
        for row in range(rows):
            for col in range(cols):
                box = (
                    col * tile_size[0],
                    row * tile_size[1],
                    (col + 1) * tile_size[0],
                    (row + 1) * tile_size[1],
                )
                self._tiles[row * cols + col] = tileset_img.crop(box).resize((self._hex_width, self._hex_height))

    def get_tilemap_img_size(self, tilemap_size: tuple[int, int]) -> tuple[int, int]:
        """Returns the (width, height) in pixels of the image for a tilemap of (rows, columns) cells."""
        rows, cols = tilemap_size
        img_width = int(math.ceil((cols + 0.5) * self._hex_width))
        img_height = int(math.ceil(self._hex_height + (rows - 1) * self._hex_height * 0.75))
        return img_width, img_height

    def get_tilemap_img(self, tilemap_array: NDArray[np.int_]) -> Image.Image:
        """Renders a tilemap array into a complete PIL Image object.

        Args:
            tilemap_array: A 2D array of shape (rows, columns) containing tile indices.

        Returns:
            A PIL Image representing the visual tilemap.
        """
        tilemap_img = Image.new("RGB", self.get_tilemap_img_size(tilemap_array.shape))
        draw = ImageDraw.Draw(tilemap_img)

        for row in range(tilemap_array.shape[0]):
            for col in range(tilemap_array.shape[1]):
                tile_index = int(tilemap_array[row, col])
                center_x, center_y = self._get_hex_center(row, col)

                if tile_index != -1 and tile_index in self._tiles:
                    offset = (int(round(center_x - self._hex_width / 2)), int(round(center_y - self._hex_height / 2)))
                    tilemap_img.paste(self._tiles[tile_index], offset, self._hex_mask)
                else:
                    if tile_index == -1:
                        color = constants.UNCOLLAPSED_TILE_COLOR
                    else:
                        color = self._tileset.tile_colors[tile_index]
                    draw.polygon(self._get_hex_polygon(center_x, center_y), fill=color)

        return tilemap_img

    def save_tilemap_img(self, tilemap_img: Image.Image, file_path: str) -> None:
        """Saves a generated tilemap image to the specified file path."""
        tilemap_img.save(file_path)

    def _get_hex_center(self, row: int, col: int) -> tuple[float, float]:
        """Returns the pixel center of the hexagon of a cell."""
        center_x = (col + 0.5 + 0.5 * (row % 2)) * self._hex_width
        center_y = self._hex_height / 2 + row * self._hex_height * 0.75
        return center_x, center_y

    def _get_hex_polygon(self, center_x: float, center_y: float) -> list[tuple[float, float]]:
        """Returns the corners of a pointy-topped hexagon around the given center."""
        radius = self._hex_height / 2
        return [
            (center_x + radius * math.cos(math.radians(angle)), center_y + radius * math.sin(math.radians(angle)))
            for angle in (30, 90, 150, 210, 270, 330)
        ]
