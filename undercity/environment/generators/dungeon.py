"""Seeded BSP dungeon generation: rooms, doors, corridors and walls."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from undercity import config
from undercity.environment.map import ChunkedTileGrid
from undercity.environment.tile_types import (
    SHRINE_LANDMARKS,
    DoorEastWest,
    DoorNorthSouth,
    Floor,
    LandmarkType,
    Tile,
    Tileset,
)
from undercity.util.coordinates import Direction, TilePos, TileRect

from .base import BaseMapGenerator, GeneratedMapData

if TYPE_CHECKING:
    from undercity.types import RandomSeed

logger = logging.getLogger(__name__)

# Skins a room may be decorated with.
ROOM_TILESETS: tuple[Tileset, ...] = tuple(Tileset)


class GenerationError(RuntimeError):
    """Generation parameters turned out to be infeasible for this seed."""


class DungeonGenerator(BaseMapGenerator):
    """Generates rooms inside a binary space partition, linked by corridors.

    The partition's split lines become a network of one-tile corridors. Each
    leaf gets an inset room with walls, doors and a shrine; every door is
    joined to the corridor network by a straight corridor; finally every
    empty cell touching a floor becomes wall. The result is a pure function
    of the seed and the parameters.
    """

    def __init__(
        self,
        seed: RandomSeed,
        *,
        radius: int = config.DUNGEON_RADIUS,
        bsp_depth: int = config.BSP_DEPTH,
        jitter_divisor: int = config.BSP_JITTER_DIVISOR,
        room_inset_min: int = config.ROOM_INSET_MIN,
        room_inset_max: int = config.ROOM_INSET_MAX,
        room_min_size: int = config.ROOM_MIN_SIZE,
        doors_min: int = config.ROOM_DOORS_MIN,
        doors_max: int = config.ROOM_DOORS_MAX,
        door_attempts: int = config.DOOR_PLACEMENT_ATTEMPTS,
        door_path_max_length: int = config.DOOR_PATH_MAX_LENGTH,
        spawn_point_count: int = config.SPAWN_POINT_COUNT,
        spawn_attempts: int = config.SPAWN_ATTEMPTS,
        hallway_tileset: Tileset = config.HALLWAY_TILESET,
    ) -> None:
        if room_min_size < 4:
            raise ValueError("rooms need an extent of at least 4 to hold doors")
        self.seed = seed
        self.radius = radius
        self.bsp_depth = bsp_depth
        self.jitter_divisor = jitter_divisor
        self.room_inset_min = room_inset_min
        self.room_inset_max = room_inset_max
        self.room_min_size = room_min_size
        self.doors_min = doors_min
        self.doors_max = doors_max
        self.door_attempts = door_attempts
        self.door_path_max_length = door_path_max_length
        self.spawn_point_count = spawn_point_count
        self.spawn_attempts = spawn_attempts
        self.hallway_tileset = hallway_tileset

    def generate(self) -> GeneratedMapData:
        # One generator, threaded through every phase in a fixed order.
        rng = random.Random(self.seed)

        hallways, leaves = self._partition(rng)
        logger.debug(
            f"BSP produced {len(hallways)} hallway rects and {len(leaves)} leaves"
        )

        grid = ChunkedTileGrid()
        self._carve_hallways(grid, hallways)
        rooms, doors = self._place_rooms(grid, leaves, rng)
        self._pave_door_paths(grid, doors)
        self._wall_perimeter(grid)
        spawn_points = self._place_spawn_points(grid, rooms, rng)

        logger.info(
            f"Generated dungeon for seed {self.seed}: {len(rooms)} rooms, "
            f"{len(doors)} doors, {len(spawn_points)} spawn points"
        )
        return GeneratedMapData(
            grid=grid,
            rooms=rooms,
            hallways=hallways,
            doors=doors,
            spawn_points=spawn_points,
        )

    # --- Layout ---

    def _partition(self, rng: random.Random) -> tuple[list[TileRect], list[TileRect]]:
        """Split the map square recursively along alternating axes.

        Returns every visited rectangle (the corridor skeleton) and the
        leaves (room candidates).
        """
        map_rect = TileRect.from_corners(
            (-self.radius, -self.radius), (self.radius, self.radius)
        )
        hallways: list[TileRect] = []
        leaves: list[TileRect] = []
        stack: list[tuple[int, bool, TileRect]] = [(0, False, map_rect)]
        while stack:
            depth, x_axis, rect = stack.pop()
            hallways.append(rect)
            if depth >= self.bsp_depth:
                leaves.append(rect)
                continue

            dx, dy = rect.size()
            extent = dx if x_axis else dy
            quarter = extent // self.jitter_divisor
            jitter = rng.randrange(-quarter, quarter) if quarter > 0 else 0
            first, second = rect.split(x_axis, extent // 2 + jitter)
            stack.append((depth + 1, not x_axis, first))
            stack.append((depth + 1, not x_axis, second))
        return hallways, leaves

    def _carve_hallways(self, grid: ChunkedTileGrid, hallways: list[TileRect]) -> None:
        floor = Tile.floor(self.hallway_tileset)
        for rect in hallways:
            grid.fill_border(floor, rect.min, rect.max)

    # --- Rooms ---

    def _place_rooms(
        self, grid: ChunkedTileGrid, leaves: list[TileRect], rng: random.Random
    ) -> tuple[list[TileRect], list[TilePos]]:
        rooms: list[TileRect] = []
        doors: list[TilePos] = []
        for leaf in leaves:
            inset = rng.randint(self.room_inset_min, self.room_inset_max)
            # Narrow leaves get a thinner gap rather than an unusable room.
            inset = min(inset, (min(leaf.size()) - self.room_min_size) // 2)
            if inset < 1:
                logger.debug(f"Skipping BSP leaf {leaf}: too small for a room")
                continue

            rect = leaf.inset(inset)
            room, room_doors = self._generate_room(
                rng, rect.translated((-rect.min.x, -rect.min.y))
            )
            grid.copy_from(room, rect.min)
            rooms.append(rect)
            doors.extend(door + rect.min for door in room_doors)

        if not rooms:
            raise GenerationError("no BSP leaf was large enough to hold a room")
        return rooms, doors

    def _generate_room(
        self, rng: random.Random, rect: TileRect
    ) -> tuple[ChunkedTileGrid, list[TilePos]]:
        """Build one room as its own map: floor, walls, doors and a shrine."""
        room = ChunkedTileGrid()
        tileset = rng.choice(ROOM_TILESETS)
        room.fill(Tile.floor(tileset), rect.min, rect.max)
        room.fill_border(Tile.wall(tileset), rect.min, rect.max)

        doors: list[TilePos] = []
        for _ in range(rng.randint(self.doors_min, self.doors_max)):
            door = self._place_door(rng, room, rect, tileset)
            if door is not None:
                doors.append(door)
            if not doors:
                raise GenerationError(f"could not place any doors in room {rect}")
        logger.debug(f"Room {rect} ({tileset.name}) got {len(doors)} doors")

        self._place_shrine(rng, room, rect, tileset)
        return room, doors

    def _place_door(
        self,
        rng: random.Random,
        room: ChunkedTileGrid,
        rect: TileRect,
        tileset: Tileset,
    ) -> TilePos | None:
        for _ in range(self.door_attempts):
            pos = rect.tile_on_border(rng)
            if room[pos].is_door() or any(
                room[neighbor].is_door() for neighbor in pos.von_neumann_neighborhood()
            ):
                continue

            if (
                room[pos.neighbor(Direction.NORTH)].is_wall()
                and room[pos.neighbor(Direction.SOUTH)].is_wall()
            ):
                door = Tile(DoorNorthSouth(), tileset)
            elif (
                room[pos.neighbor(Direction.EAST)].is_wall()
                and room[pos.neighbor(Direction.WEST)].is_wall()
            ):
                door = Tile(DoorEastWest(), tileset)
            else:
                # Corner.
                continue

            room.get_or_create(pos).set(door)
            return pos
        return None

    def _place_shrine(
        self,
        rng: random.Random,
        room: ChunkedTileGrid,
        rect: TileRect,
        tileset: Tileset,
    ) -> None:
        # Two tiles in from the walls, so a shrine never blocks a doorway.
        pos = rect.inset(2).random_tile(rng)
        landmark = rng.choice(SHRINE_LANDMARKS)
        flipped = rng.random() < 0.5
        room.get_or_create(pos).set(Tile.landmark(landmark, flipped, tileset))

    # --- Connections ---

    def _pave_door_paths(self, grid: ChunkedTileGrid, doors: list[TilePos]) -> None:
        """Carve a straight corridor outward from every door to the nearest floor."""
        floor = Tile.floor(self.hallway_tileset)
        for door in doors:
            foreground = grid[door].foreground
            match foreground.kind:
                case DoorNorthSouth():
                    inside_east = grid[door.neighbor(Direction.EAST)].is_floor()
                    direction = Direction.WEST if inside_east else Direction.EAST
                case DoorEastWest():
                    inside_north = grid[door.neighbor(Direction.NORTH)].is_floor()
                    direction = Direction.SOUTH if inside_north else Direction.NORTH
                case _:
                    raise GenerationError(
                        f"expected a door at {door}, found {foreground!r}"
                    )

            step = TilePos(*direction.delta)
            for distance in range(1, self.door_path_max_length + 1):
                pos = door + step.scaled(distance)
                if not grid[pos].is_empty():
                    break
                grid.get_or_create(pos).set(floor)
            else:
                logger.warning(f"Couldn't connect door at {door} to hallways")

    def _wall_perimeter(self, grid: ChunkedTileGrid) -> None:
        """Turn every empty cell touching a floor into solid wall."""
        used = grid.used_tiles()
        if used is None:
            return
        wall = Tile.wall(self.hallway_tileset)
        for pos in used.tiles():
            if not grid[pos].is_floor():
                continue
            for neighbor in pos.moore_neighborhood():
                if grid[neighbor].is_empty():
                    grid.get_or_create(neighbor).set(wall)

    # --- Spawns ---

    def _place_spawn_points(
        self, grid: ChunkedTileGrid, rooms: list[TileRect], rng: random.Random
    ) -> list[TilePos]:
        spawn_points: list[TilePos] = []
        for _ in range(self.spawn_point_count):
            for _ in range(self.spawn_attempts):
                pos = rng.choice(rooms).random_tile(rng)
                pair = grid.get_or_create(pos)
                if not pair.is_floor():
                    continue
                background = pair.background
                assert isinstance(background.kind, Floor)
                spawn = Tile.landmark(
                    LandmarkType.SPAWN_PLAYER, tileset=background.tileset
                )
                pair.set_with_floor(spawn, background.kind.variant)
                spawn_points.append(pos)
                break
            else:
                raise GenerationError("couldn't find anywhere to spawn player")
        return spawn_points


def generate_map(seed: RandomSeed, **params: object) -> GeneratedMapData:
    """Generate a dungeon for `seed`. Keyword arguments override parameters."""
    return DungeonGenerator(seed, **params).generate()  # type: ignore[arg-type]
