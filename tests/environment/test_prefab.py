from pathlib import Path

import pytest

from undercity import config
from undercity.environment.prefab import Prefab, PrefabError, load_prefab
from undercity.environment.tile_types import (
    DoorEastWest,
    FloorType,
    LandmarkType,
    Tile,
    Tileset,
    WallShape,
)
from undercity.util.coordinates import TilePos, TileRect

ROOM = {
    "schema_version": 1,
    "key": {
        "#": {"kind": "wall", "tileset": "rock"},
        ".": {"kind": "floor", "tileset": "rock"},
    },
    "map": ["###", "#.#", "###"],
}


def test_load_small_room(write_prefab) -> None:
    prefab = load_prefab(write_prefab(ROOM))
    assert prefab.size == (3, 3)

    grid = prefab.to_grid()
    assert grid.used_tiles() == TileRect(TilePos(0, 0), TilePos(2, 2))
    assert grid[1, 1].is_floor()
    assert grid[1, 1].background == Tile.floor(Tileset.ROCK)
    walls = [pos for pos, pair in grid.tiles() if pair.is_wall()]
    assert len(walls) == 8
    assert sum(1 for _ in grid.tiles()) == 9
    assert grid[0, 0].foreground == Tile.wall(Tileset.ROCK)


def test_iteration_skips_spaces(write_prefab) -> None:
    document = dict(ROOM, map=["# #", " . ", "#"])
    prefab = load_prefab(write_prefab(document))
    cells = list(prefab.iter())
    assert [pos for pos, _ in cells] == [
        TilePos(0, 0),
        TilePos(2, 0),
        TilePos(1, 1),
        TilePos(0, 2),
    ]
    # Iteration restarts from the top every time.
    assert list(prefab) == cells

    # Yielded cells are copies; editing one leaves the legend alone.
    cells[0][1].set(Tile.floor(Tileset.MOSS))
    assert prefab.key["#"].is_wall()
    assert next(iter(prefab))[1].is_wall()
    assert prefab.size == (3, 3)


def test_spaces_leave_destination_untouched(write_prefab) -> None:
    prefab = load_prefab(write_prefab(dict(ROOM, map=["# #"])))
    grid = prefab.to_grid()
    grid.get_or_create((1, 0)).set(Tile.wall(Tileset.MOSS))
    prefab.copy_into(grid)
    assert grid[1, 0].foreground == Tile.wall(Tileset.MOSS)


def test_copy_into_with_origin(write_prefab) -> None:
    prefab = load_prefab(write_prefab(ROOM))
    grid = prefab.to_grid(TilePos(-10, 5))
    assert grid.used_tiles() == TileRect(TilePos(-10, 5), TilePos(-8, 7))
    assert grid[-9, 6].is_floor()


def test_legend_entry_options(write_prefab) -> None:
    document = {
        "schema_version": 1,
        "key": {
            "a": {"kind": "wall", "shape": "NorthEast", "tileset": "hive"},
            "b": {"kind": "door_ew", "open": True, "floor": "slab"},
            "c": {"kind": "landmark", "landmark": "shrine_idol", "flipped": True},
            "d": {"kind": "floor", "floor": "lava_blue"},
            "e": {"kind": "empty"},
        },
        "map": ["abcde"],
    }
    grid = load_prefab(write_prefab(document)).to_grid()

    assert grid[0, 0].foreground == Tile.wall(Tileset.HIVE, WallShape.NORTHEAST)
    assert grid[1, 0].foreground == Tile(DoorEastWest(open=True))
    assert grid[1, 0].background == Tile.floor(variant=FloorType.SLAB)
    assert grid[2, 0].foreground == Tile.landmark(LandmarkType.SHRINE_IDOL, True)
    assert grid[3, 0].background == Tile.floor(variant=FloorType.LAVA_BLUE)
    assert grid[4, 0].is_empty()


@pytest.mark.parametrize(
    ("document", "message"),
    [
        ([], "must be an object"),
        (dict(ROOM, schema_version=2), "unsupported schema_version"),
        ({"key": {}, "map": []}, "schema_version"),
        (dict(ROOM, key=[]), "'key' must be an object"),
        (dict(ROOM, map="###"), "'map' must be a list of strings"),
        (dict(ROOM, map=["#x#"]), "'x' has no legend entry"),
        (dict(ROOM, key={"##": {"kind": "wall"}}), "one non-space character"),
        (dict(ROOM, key={"#": {"kind": "lava"}}, map=["#"]), "unknown tile kind"),
        (
            dict(ROOM, key={"#": {"kind": "wall", "tileset": "marble"}}, map=["#"]),
            "unknown Tileset",
        ),
        (dict(ROOM, key={"#": {"kind": "landmark"}}, map=["#"]), "'landmark'"),
        (
            dict(ROOM, key={"#": {"kind": "door_ns", "open": "yes"}}, map=["#"]),
            "'open' must be true or false",
        ),
    ],
)
def test_invalid_documents(write_prefab, document, message: str) -> None:
    with pytest.raises(PrefabError, match=message):
        load_prefab(write_prefab(document))


def test_malformed_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{ not json", encoding="utf-8")
    with pytest.raises(PrefabError, match="Malformed prefab JSON"):
        load_prefab(path)


def test_non_utf8_file(tmp_path: Path) -> None:
    path = tmp_path / "latin1.json"
    path.write_bytes(b'{"schema_version": 1, "key": {}, "map": ["\xff"]}')
    with pytest.raises(PrefabError, match="Malformed prefab JSON") as excinfo:
        load_prefab(path)
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(PrefabError, match="Failed to read prefab") as excinfo:
        load_prefab(tmp_path / "nope.json")
    assert isinstance(excinfo.value.__cause__, FileNotFoundError)


def test_from_dict_without_file() -> None:
    prefab = Prefab.from_dict(ROOM)
    assert prefab.source is None
    assert len(list(prefab)) == 9


def test_bundled_prefab_loads() -> None:
    prefab = load_prefab(config.DEFAULT_PREFAB)
    grid = prefab.to_grid()

    spawns = [
        pos
        for pos, pair in grid.tiles()
        if pair.foreground.is_landmark(LandmarkType.SPAWN_PLAYER)
    ]
    assert spawns == [TilePos(5, 4)]
    assert sum(1 for _, pair in grid.tiles() if pair.is_door()) == 3
