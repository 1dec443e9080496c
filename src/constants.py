"""Contains global constants and default values used throughout the project."""


EXAMPLE_TILESET_PATH: str = "./assets/tilesets/coast.json"

# === HEX GRID CONSTANTS ===

HEX_DIRECTION_COUNT: int = 6

# Neighbor offsets per direction index of the classic layout. Only directions 1 and 4 differ between even and odd rows.
# The mapping is not symmetric: on even rows, direction 1 is reached from two different cells.
HEX_DX_EVEN_ROW: tuple[int, ...] = (-1, 1, 0, 1, 1, 0)
HEX_DY_EVEN_ROW: tuple[int, ...] = (0, 0, 1, 1, 1, -1)
HEX_DX_ODD_ROW: tuple[int, ...] = (-1, 0, 0, 1, 0, 0)
HEX_DY_ODD_ROW: tuple[int, ...] = (0, -1, 1, 1, 1, -1)

# Neighbor offsets per direction index of the odd-r layout (odd rows shifted right by half a cell). Symmetric: the
# neighbor in direction d of a cell has the cell as its neighbor in the reverse direction (for an even grid height).
ODD_R_DX_EVEN_ROW: tuple[int, ...] = (-1, -1, 0, 1, 0, -1)
ODD_R_DY_EVEN_ROW: tuple[int, ...] = (0, -1, -1, 0, 1, 1)
ODD_R_DX_ODD_ROW: tuple[int, ...] = (-1, 0, 1, 1, 1, 0)
ODD_R_DY_ODD_ROW: tuple[int, ...] = (0, -1, -1, 0, 1, 1)

HEX_OPPOSITE_DIRECTIONS: tuple[int, ...] = (3, 4, 5, 0, 1, 2)

# === MODEL CONSTANTS ===

# Scale of the random noise added to a cell's entropy when looking for the minimum.
ENTROPY_NOISE_SCALE: float = 0.000001
# Upper bound for the minimum entropy search (any real cell entropy lies below it).
INITIAL_MIN_ENTROPY: float = 1000.0

# Number of observation steps between exact recomputations of the entropy sums (0 disables recomputation).
ENTROPY_RECOMPUTE_INTERVAL_DEFAULT: int = 0

WFC_MAX_ATTEMPTS_DEFAULT: int = 10

TILEMAP_SIZE_DEFAULT: int = 24
TILEMAP_SIZE_MIN_LIMIT: int = 1
TILEMAP_SIZE_MAX_LIMIT: int = 500

RANDOM_SEED_MAX: int = 999999999

# === VIEW CONSTANTS ===

HEX_TILE_SIZE_DEFAULT: int = 16
UNCOLLAPSED_TILE_COLOR: tuple[int, int, int] = (0, 0, 0)
DEFAULT_TILE_COLOR: tuple[int, int, int] = (255, 0, 255)
