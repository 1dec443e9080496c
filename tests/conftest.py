"""Shared pytest fixtures for the hex tilemap generator tests."""

import logging
from pathlib import Path

import numpy as np
import pytest

from model.hex_tileset import HexTileset


COAST_TILESET_PATH = Path(__file__).resolve().parents[1] / "assets" / "tilesets" / "coast.json"


# =============================================================================
# Tilesets
# =============================================================================

@pytest.fixture
def single_tile_tileset() -> HexTileset:
    """One tile that may be placed next to itself in every direction."""
    return HexTileset([1.0], [[[0]] for _ in range(6)])


@pytest.fixture
def incompatible_tileset() -> HexTileset:
    """Two tiles that are compatible with nothing."""
    return HexTileset([1.0, 1.0], [[[], []] for _ in range(6)])


@pytest.fixture
def any_neighbor_tileset() -> HexTileset:
    """Three tiles that may all be placed next to each other."""
    return HexTileset([1.0, 2.0, 3.0], [[[0, 1, 2] for _ in range(3)] for _ in range(6)])


@pytest.fixture
def coast_tileset_path() -> Path:
    """Path to the example coast tileset (water - sand - grass - forest - mountain)."""
    return COAST_TILESET_PATH


@pytest.fixture
def coast_tileset(coast_tileset_path: Path) -> HexTileset:
    """The example coast tileset."""
    return HexTileset.from_json_file(coast_tileset_path)


@pytest.fixture
def two_tile_rules() -> np.ndarray:
    """Adjacency rules where tile 0 may neighbor anything, and tile 1 only tile 0."""
    rules = np.full((2, 2, 6), False, dtype=bool)
    rules[0, 0, :] = True
    rules[0, 1, :] = True
    return rules


# =============================================================================
# Logging
# =============================================================================

@pytest.fixture
def restore_root_logging():
    """Restores the root logger's handlers and level after a test reconfigured logging."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
