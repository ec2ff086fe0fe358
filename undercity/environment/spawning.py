"""Hand map features over to the dynamic entities that own them at runtime.

Static tiles that need behaviour (doors open and close, shrines react to the
player, the player needs a start position) are plucked from the grid here.
Plucking marks the cell so the static renderer stops drawing its foreground;
the caller builds whatever live object it needs from the returned tiles.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from undercity.environment.tile_types import (
    SHRINE_LANDMARKS,
    Landmark,
    LandmarkType,
    ShrineType,
    Tile,
)

if TYPE_CHECKING:
    from random import Random

    from undercity.environment.map import ChunkedTileGrid, TilePair
    from undercity.util.coordinates import TilePos

logger = logging.getLogger(__name__)


def _is_player_spawn(_pos: TilePos, pair: TilePair) -> bool:
    return pair.foreground.is_landmark(LandmarkType.SPAWN_PLAYER)


def pluck_player_spawn(grid: ChunkedTileGrid, rng: Random) -> TilePos | None:
    """Claim every player spawn marker and pick one of them to start from.

    Returns None when the map has no unplucked spawn markers.
    """
    spawns = grid.pluck_tiles(_is_player_spawn)
    if not spawns:
        logger.warning("No player spawn points left to pluck")
        return None
    pos, _tile = rng.choice(spawns)
    logger.debug(f"Player spawns at {pos} (of {len(spawns)} candidates)")
    return pos


def _is_shrine(_pos: TilePos, pair: TilePair) -> bool:
    foreground = pair.foreground
    return isinstance(foreground.kind, Landmark) and (
        foreground.kind.kind in SHRINE_LANDMARKS
    )


def pluck_shrines(grid: ChunkedTileGrid) -> list[tuple[TilePos, ShrineType, Tile]]:
    """Claim every shrine that has a behaviour, with that behaviour."""
    shrines = []
    for pos, tile in grid.pluck_tiles(_is_shrine):
        assert isinstance(tile.kind, Landmark)
        shrines.append((pos, ShrineType.from_landmark(tile.kind.kind), tile))
    return shrines


def pluck_doors(grid: ChunkedTileGrid) -> list[tuple[TilePos, Tile]]:
    return grid.pluck_tiles(lambda _pos, pair: pair.is_door())


def random_floor_near(grid: ChunkedTileGrid, rng: Random) -> TilePos | None:
    """Pick a random spot in the used area and find a bare floor from there.

    This is where a blink shrine sends the player.
    """
    used = grid.used_tiles()
    if used is None:
        return None
    start = used.random_tile(rng)
    return grid.find_tile(start, lambda _pos, pair: pair.is_floor())

