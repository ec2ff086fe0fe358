"""Maps drawn by hand instead of generated."""

from __future__ import annotations

import logging
from pathlib import Path

from undercity import config
from undercity.environment.prefab import load_prefab
from undercity.environment.tile_types import LandmarkType
from undercity.util.coordinates import TilePos

from .base import BaseMapGenerator, GeneratedMapData

logger = logging.getLogger(__name__)


class PrefabMapGenerator(BaseMapGenerator):
    """Loads a prefab file and stamps it onto a fresh grid at `origin`.

    Doors and player spawns are recovered by scanning the result, so the
    returned data looks the same as a generated dungeon's. A prefab has no
    rooms or hallways.
    """

    def __init__(
        self, path: str | Path = config.DEFAULT_PREFAB, origin: TilePos = TilePos(0, 0)
    ) -> None:
        self.path = Path(path)
        self.origin = origin

    def generate(self) -> GeneratedMapData:
        prefab = load_prefab(self.path)
        grid = prefab.to_grid(self.origin)

        doors: list[TilePos] = []
        spawn_points: list[TilePos] = []
        for pos, pair in grid.tiles():
            if pair.is_door():
                doors.append(pos)
            elif pair.foreground.is_landmark(LandmarkType.SPAWN_PLAYER):
                spawn_points.append(pos)

        if not spawn_points:
            logger.warning(f"Prefab {self.path} has no player spawn")
        return GeneratedMapData(grid=grid, doors=doors, spawn_points=spawn_points)
