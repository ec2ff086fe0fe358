"""Hand-authored map layouts loaded from JSON.

A prefab is a legend mapping single characters to cells, plus rows of text
drawn with those characters::

    {
      "schema_version": 1,
      "key": {
        "#": {"kind": "wall", "tileset": "rock"},
        ".": {"kind": "floor", "tileset": "rock"}
      },
      "map": ["###", "#.#", "###"]
    }

A space in the map means "no tile here": nothing is written, so whatever the
destination grid already holds at that position survives. Every other
character must have a legend entry.
"""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any

from undercity import config
from undercity.environment.map import ChunkedTileGrid, TilePair
from undercity.environment.tile_types import (
    DoorEastWest,
    DoorNorthSouth,
    FloorType,
    LandmarkType,
    Tile,
    Tileset,
    WallShape,
)
from undercity.util.coordinates import TilePos

logger = logging.getLogger(__name__)

NO_TILE = " "


class PrefabError(Exception):
    """A prefab asset could not be read, decoded or validated."""


@dataclass(frozen=True)
class Prefab:
    """A parsed prefab: legend and rows. Immutable once loaded."""

    key: Mapping[str, TilePair]
    map: tuple[str, ...]
    source: Path | None = None

    @functools.cached_property
    def size(self) -> tuple[int, int]:
        """``(width, height)``: longest row length and row count."""
        width = max((len(row) for row in self.map), default=0)
        return width, len(self.map)

    def iter(self) -> Iterator[tuple[TilePos, TilePair]]:
        """Every drawn cell as ``(position, pair)``, position = (column, row).

        Each call starts a fresh pass and yields detached copies of the
        legend cells. Spaces are skipped entirely.
        """
        for y, row in enumerate(self.map):
            for x, char in enumerate(row):
                if char == NO_TILE:
                    continue
                yield TilePos(x, y), self.key[char].copy()

    def __iter__(self) -> Iterator[tuple[TilePos, TilePair]]:
        return self.iter()

    def copy_into(
        self, grid: ChunkedTileGrid, origin: TilePos = TilePos(0, 0)
    ) -> None:
        """Write every drawn cell into `grid`, offset by `origin`."""
        for pos, pair in self.iter():
            grid[pos + origin] = pair

    def to_grid(self, origin: TilePos | None = None) -> ChunkedTileGrid:
        grid = ChunkedTileGrid()
        self.copy_into(grid, origin or TilePos(0, 0))
        return grid

    @classmethod
    def from_dict(cls, data: object, source: Path | None = None) -> Prefab:
        """Validate decoded JSON and build a prefab from it.

        Raises:
            PrefabError: on any schema violation or unknown map character.
        """
        where = str(source) if source is not None else "<prefab>"
        if not isinstance(data, dict):
            raise PrefabError(f"{where}: prefab JSON must be an object")

        version = data.get("schema_version")
        if not isinstance(version, int):
            raise PrefabError(f"{where}: missing integer schema_version")
        if version != config.PREFAB_SCHEMA_VERSION:
            raise PrefabError(f"{where}: unsupported schema_version {version}")

        raw_key = data.get("key")
        if not isinstance(raw_key, dict):
            raise PrefabError(f"{where}: 'key' must be an object")
        raw_map = data.get("map")
        if not isinstance(raw_map, list) or not all(
            isinstance(row, str) for row in raw_map
        ):
            raise PrefabError(f"{where}: 'map' must be a list of strings")

        key: dict[str, TilePair] = {}
        for char, entry in raw_key.items():
            if len(char) != 1 or char == NO_TILE:
                raise PrefabError(
                    f"{where}: legend key {char!r} must be one non-space character"
                )
            key[char] = _parse_legend_entry(entry, f"{where}: key[{char!r}]")

        for row_index, row in enumerate(raw_map):
            for column, char in enumerate(row):
                if char != NO_TILE and char not in key:
                    raise PrefabError(
                        f"{where}: row {row_index}, column {column}: "
                        f"character {char!r} has no legend entry"
                    )

        return cls(key=key, map=tuple(raw_map), source=source)


def load_prefab(path: str | Path) -> Prefab:
    """Read and parse a prefab file.

    Raises:
        PrefabError: if the file cannot be read, is not valid JSON, or does
            not describe a prefab.
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise PrefabError(f"Failed to read prefab {path}: {e}") from e
    try:
        data = json.loads(raw)
    except ValueError as e:
        # JSONDecodeError, or UnicodeDecodeError for a non-UTF-8 file.
        raise PrefabError(f"Malformed prefab JSON in {path}: {e}") from e

    prefab = Prefab.from_dict(data, source=path)
    width, height = prefab.size
    logger.info(
        f"Loaded prefab: {path} ({width}x{height}, {len(prefab.key)} legend entries)"
    )
    return prefab


def _parse_legend_entry(entry: Any, where: str) -> TilePair:
    if not isinstance(entry, dict):
        raise PrefabError(f"{where} must be an object")

    tileset = _enum_member(Tileset, entry.get("tileset", "brick_blue"), where)
    kind = entry.get("kind")
    pair = TilePair()
    match kind:
        case "empty":
            return pair
        case "floor":
            variant = _enum_member(FloorType, entry.get("floor", "tileset"), where)
            pair.set(Tile.floor(tileset, variant))
            return pair
        case "wall":
            shape = _enum_member(WallShape, entry.get("shape", "solid"), where)
            tile = Tile.wall(tileset, shape)
        case "door_ns":
            tile = Tile(DoorNorthSouth(_flag(entry, "open", where)), tileset)
        case "door_ew":
            tile = Tile(DoorEastWest(_flag(entry, "open", where)), tileset)
        case "landmark":
            if "landmark" not in entry:
                raise PrefabError(f"{where}: landmark entries need a 'landmark'")
            landmark = _enum_member(LandmarkType, entry["landmark"], where)
            tile = Tile.landmark(landmark, _flag(entry, "flipped", where), tileset)
        case _:
            raise PrefabError(f"{where}: unknown tile kind {kind!r}")

    if "floor" in entry:
        pair.set_with_floor(tile, _enum_member(FloorType, entry["floor"], where))
    else:
        pair.set(tile)
    return pair


def _enum_member[E: IntEnum](enum_cls: type[E], name: Any, where: str) -> E:
    if not isinstance(name, str):
        raise PrefabError(f"{where}: {enum_cls.__name__} must be given by name")
    try:
        return enum_cls[name.upper()]
    except KeyError:
        raise PrefabError(f"{where}: unknown {enum_cls.__name__} {name!r}") from None


def _flag(entry: dict, field: str, where: str) -> bool:
    value = entry.get(field, False)
    if not isinstance(value, bool):
        raise PrefabError(f"{where}: '{field}' must be true or false")
    return value
