"""
Configuration constants.

Centralizes all magic numbers and configuration values used by map generation
and prefab loading. Organized by functional area for easy maintenance.
"""

from pathlib import Path

from undercity.environment.tile_types import Tileset

# =============================================================================
# GENERAL
# =============================================================================

PACKAGE_ROOT_PATH = Path(__file__).resolve().parent

# Seed used by the CLI when none is given on the command line.
RANDOM_SEED = 0

# =============================================================================
# DUNGEON GENERATION
# =============================================================================

# Half-width of the square BSP starts from: (-60, -60) ..= (60, 60).
DUNGEON_RADIUS = 60

# Rectangles at this depth become room candidates (2**depth leaves).
BSP_DEPTH = 4

# Split point jitter is +/- extent // BSP_JITTER_DIVISOR (25% of the extent).
BSP_JITTER_DIVISOR = 4

# Inset (per side) between a BSP leaf and the room carved inside it.
ROOM_INSET_MIN = 3
ROOM_INSET_MAX = 6

# Smallest room extent (max - min) on either axis: border walls plus a
# 3x3 interior, so there is always a non-corner wall cell and a centre cell.
ROOM_MIN_SIZE = 4

# Doors per room, inclusive.
ROOM_DOORS_MIN = 1
ROOM_DOORS_MAX = 4

# Attempts at finding a legal border cell for each door.
DOOR_PLACEMENT_ATTEMPTS = 1000

# Corridors carved outward from a door give up after this many tiles.
DOOR_PATH_MAX_LENGTH = 250

# Player spawn candidates marked on every generated map.
SPAWN_POINT_COUNT = 5

# Random samples per spawn candidate before generation is abandoned.
SPAWN_ATTEMPTS = 1000

# Skin used for BSP corridors and for the walls inferred around them.
HALLWAY_TILESET = Tileset.ROCK

# =============================================================================
# PREFABS
# =============================================================================

PREFAB_ASSETS_PATH = PACKAGE_ROOT_PATH / "assets" / "prefabs"
DEFAULT_PREFAB = PREFAB_ASSETS_PATH / "test.json"

# Only this version of the prefab JSON layout is understood.
PREFAB_SCHEMA_VERSION = 1

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = "INFO"
