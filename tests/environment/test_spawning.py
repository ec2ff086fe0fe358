import random

from undercity.environment.generators import DungeonGenerator, PrefabMapGenerator
from undercity.environment.map import ChunkedTileGrid
from undercity.environment.spawning import (
    pluck_doors,
    pluck_player_spawn,
    pluck_shrines,
    random_floor_near,
)
from undercity.environment.tile_types import LandmarkType, ShrineType, Tile
from undercity.util.coordinates import TilePos


def test_player_spawn_plucks_every_marker() -> None:
    data = DungeonGenerator(3).generate()
    pos = pluck_player_spawn(data.grid, random.Random(0))

    assert pos in data.spawn_points
    for spawn in data.spawn_points:
        pair = data.grid[spawn]
        assert pair.plucked
        assert pair.visible_foreground.is_empty()
    # Nothing is left to claim a second time.
    assert pluck_player_spawn(data.grid, random.Random(0)) is None


def test_player_spawn_on_empty_map(grid: ChunkedTileGrid, rng: random.Random) -> None:
    assert pluck_player_spawn(grid, rng) is None


def test_shrines_carry_their_behaviour() -> None:
    grid = PrefabMapGenerator().generate().grid
    shrines = pluck_shrines(grid)

    assert {(pos, shrine) for pos, shrine, _tile in shrines} == {
        (TilePos(3, 2), ShrineType.HEAL),
        (TilePos(7, 2), ShrineType.DAMAGE),
        (TilePos(19, 5), ShrineType.BLINK),
    }
    flipped = next(tile for pos, _, tile in shrines if pos == TilePos(7, 2))
    assert flipped.kind.flipped  # type: ignore[union-attr]
    # The well has no behaviour and stays a static tile.
    assert not grid[19, 3].plucked
    assert pluck_shrines(grid) == []


def test_doors_are_plucked() -> None:
    data = DungeonGenerator(5).generate()
    doors = pluck_doors(data.grid)

    assert len(doors) == len(data.doors)
    assert {pos for pos, _ in doors} == set(data.doors)
    assert all(tile.is_door() and not tile.is_open for _, tile in doors)
    assert all(data.grid[pos].plucked for pos in data.doors)


def test_random_floor_near(rng: random.Random) -> None:
    data = PrefabMapGenerator().generate()
    for _ in range(20):
        pos = random_floor_near(data.grid, rng)
        assert pos is not None
        assert data.grid[pos].is_floor()


def test_random_floor_near_without_floors(
    grid: ChunkedTileGrid, rng: random.Random
) -> None:
    assert random_floor_near(grid, rng) is None
    grid.fill(Tile.wall(), (0, 0), (3, 3))
    assert random_floor_near(grid, rng) is None
    grid.get_or_create((2, 2)).set(Tile.landmark(LandmarkType.WELL))
    assert random_floor_near(grid, rng) is None
