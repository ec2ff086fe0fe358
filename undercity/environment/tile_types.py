"""
Tile catalog: every kind of tile the map can hold, and where its sprite lives.

This module defines:
- The skin and atlas enums (`Tileset`, `FloorType`, `WallShape`, `LandmarkType`).
  Their integer values are sprite indices into the atlases, so they double as
  the on-disk/in-array encoding.
- The closed set of tile kinds: `Empty`, `Floor`, `Wall`, `DoorNorthSouth`,
  `DoorEastWest` and `Landmark`. `TileKind` is their union; code that
  dispatches on a kind uses `match` with `assert_never` so adding a variant
  is caught by the type checker.
- `Tile`, a kind plus the tileset skin it is drawn with, and its packed
  record form (`TileData`) used by chunk storage.
- Atlas addressing (`Tile.texture_info`) for the external renderer, and a
  one-character glyph per tile for ASCII dumps.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import assert_never

import numpy as np

# Pixel size of one tile in every atlas.
TILE_DIAMETER = 64

# Tileset atlases are 8 sprites wide; the shared misc atlas is 16.
TILESET_ATLAS_COLUMNS = 8
MISC_ATLAS_COLUMNS = 16
MISC_ATLAS_PATH = "tiles/misc.png"

# Door sprites in the tileset atlases. Open variants sit two slots later.
DOOR_EW_SPRITE_INDEX = 16
DOOR_NS_SPRITE_INDEX = 17
DOOR_OPEN_SPRITE_OFFSET = 2

# Packed form of one tile inside a chunk's numpy storage.
TileData = np.dtype(
    [
        ("kind", np.uint8),  # TileKindTag
        ("variant", np.uint8),  # FloorType / WallShape / LandmarkType value
        ("flag", np.bool_),  # door open / landmark flipped
        ("tileset", np.uint8),  # Tileset
    ]
)

type TileRecord = tuple[int, int, bool, int]


class Tileset(IntEnum):
    """Visual skin for floors, walls and doors. Landmarks ignore it."""

    BRICK_BLUE = 0
    BRICK_CYAN = 1
    BRICK_GREEN = 2
    BRICK_PURPLE = 3
    BRICK_RED = 4
    BRICK_YELLOW = 5
    CATACOMB = 6
    COCUTOS = 7
    CRYPT = 8
    GALLERY = 9
    GEHENA = 10
    HIVE = 11
    LAIR = 12
    LAPIS = 13
    MOSS = 14
    MUCUS = 15
    NORMAL = 16
    PANDEM_BLUE = 17
    PANDEM_GREEN = 18
    PANDEM_PURPLE = 19
    PANDEM_RED = 20
    PANDEM_YELLOW = 21
    ROCK = 22
    TUNNEL = 23

    @property
    def asset_path(self) -> str:
        return f"tiles/{self.name.lower()}.png"


class FloorType(IntEnum):
    """Floor sprites. `TILESET` uses the tile's own skin, the rest the misc atlas."""

    TILESET = 20  # index in the tileset atlas

    BLACK = 0
    LAVA_RED = 71
    LAVA_BLUE = 72
    LAVA_CYAN = 73
    SLAB = 74


class WallShape(IntEnum):
    """Wall sprite per connectivity. Bits: 1=N, 2=E, 4=W, 8=S."""

    PILLAR = 0

    NORTH = 1
    EAST = 2
    SOUTH = 8
    WEST = 4

    NORTHEAST = 3
    NORTHWEST = 5
    SOUTHEAST = 10
    SOUTHWEST = 12

    EASTWEST = 6
    NORTHSOUTH = 9

    SOLID = 15
    SOLID_NORTH = 7
    SOLID_EAST = 11
    SOLID_SOUTH = 14
    SOLID_WEST = 13


class LandmarkType(IntEnum):
    """Single-tile features, indexed into the misc atlas."""

    WELL = 67

    STATUE_DRAGON = 68
    STATUE_FACE = 69
    STATUE_BRONZE = 70

    STAIRS_MARBLE_TOP = 81
    STAIRS_MARBLE_BOTTOM = 85
    STAIRS_SANDSTONE_TOP = 89
    STAIRS_SANDSTONE_BOTTOM = 90

    TRAP_ARROW = 78
    TRAP_PENTAGRAM = 79
    TRAP_SKULL = 80

    PORTAL_LIGHT = 91
    PORTAL_DARK = 92
    PORTAL_RED = 93
    PORTAL_BLUE = 94
    PORTAL_GREEN = 95
    PORTAL_SKULLS = 96
    PORTAL_STAR = 97
    PORTAL_ARCH = 98
    PORTAL_DEMON = 99
    PORTAL_WORMHOLE = 101
    PORTAL_BLANK = 102

    SHRINE_PALM = 103
    SHRINE_IDOL = 104
    SHRINE_SKULLS = 105
    SHRINE_GEODE = 106
    SHRINE_FACE = 107
    SHRINE_SCROLL = 108
    SHRINE_CROSS = 109
    SHRINE_FLAME = 110
    SHRINE_LAPIS = 111
    SHRINE_SACRIFICE = 112
    SHRINE_DEMON = 113
    SHRINE_URN = 114
    SHRINE_CHAIR = 115

    SPAWN_PLAYER = 116
    SPAWN_WITCH = 119
    SPAWN_WITCHETTE = 120
    SPAWN_JESTER = 124
    SPAWN_RED_DEMON = 125
    SPAWN_YELLOW_DEMON = 127
    SPAWN_GREEN_DEMON = 130
    SPAWN_BLUE_DEMON = 131
    SPAWN_WINGED_DEMON = 132

    # Sprite-only entries, never placed on a map.
    CURSOR = 165
    EXPLOSION_RED = 168
    EXPLOSION_BLUE = 171
    EXPLOSION_GREEN = 174
    EXPLOSION_SMOKE_LIGHT = 179
    EXPLOSION_SMOKE_DARK = 180

    @property
    def glyph(self) -> str:
        name = self.name
        if name.startswith("SPAWN_PLAYER"):
            return "@"
        if name.startswith("SHRINE_"):
            return "_"
        if name.startswith("PORTAL_"):
            return "O"
        if name.startswith("STAIRS_"):
            return ">"
        if name.startswith("TRAP_"):
            return "^"
        if name.startswith("SPAWN_"):
            return "&"
        if name.startswith("STATUE_"):
            return "%"
        if self is LandmarkType.WELL:
            return "o"
        return "*"


_LAVA_FLOORS = (FloorType.LAVA_RED, FloorType.LAVA_BLUE, FloorType.LAVA_CYAN)


class ShrineType(Enum):
    """Behaviour attached to the shrines that rooms are decorated with."""

    HEAL = "heal"
    DAMAGE = "damage"
    BLINK = "blink"

    @classmethod
    def from_landmark(cls, landmark: LandmarkType) -> ShrineType:
        try:
            return _SHRINE_BY_LANDMARK[landmark]
        except KeyError:
            raise ValueError(f"no shrine for landmark {landmark.name}") from None


_SHRINE_BY_LANDMARK: dict[LandmarkType, ShrineType] = {
    LandmarkType.SHRINE_IDOL: ShrineType.HEAL,
    LandmarkType.SHRINE_SKULLS: ShrineType.DAMAGE,
    LandmarkType.SHRINE_SCROLL: ShrineType.BLINK,
}

# Shrine landmarks that have a behaviour, in a stable order for seeded choice.
SHRINE_LANDMARKS: tuple[LandmarkType, ...] = tuple(_SHRINE_BY_LANDMARK)


class TileKindTag(IntEnum):
    """Discriminant stored in `TileData.kind`."""

    EMPTY = 0
    FLOOR = 1
    WALL = 2
    DOOR_NS = 3
    DOOR_EW = 4
    LANDMARK = 5


# --- Tile kinds ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Empty:
    pass


@dataclass(frozen=True, slots=True)
class Floor:
    variant: FloorType = FloorType.TILESET


@dataclass(frozen=True, slots=True)
class Wall:
    shape: WallShape = WallShape.SOLID


@dataclass(frozen=True, slots=True)
class DoorNorthSouth:
    """A door set in a north-south running wall (walls above and below)."""

    open: bool = False


@dataclass(frozen=True, slots=True)
class DoorEastWest:
    """A door set in an east-west running wall (walls left and right)."""

    open: bool = False


@dataclass(frozen=True, slots=True)
class Landmark:
    kind: LandmarkType
    flipped: bool = False


type TileKind = Empty | Floor | Wall | DoorNorthSouth | DoorEastWest | Landmark


@dataclass(frozen=True, slots=True)
class AtlasRegion:
    """Where a tile's sprite lives: texture path and pixel rectangle."""

    texture: str
    x: int
    y: int
    width: int
    height: int
    flip: bool = False


@dataclass(frozen=True, slots=True)
class Tile:
    """A single rendering/physics unit: a tile kind drawn with a tileset skin."""

    kind: TileKind = Empty()
    tileset: Tileset = Tileset.BRICK_BLUE

    # --- Constructors ---

    @classmethod
    def floor(
        cls,
        tileset: Tileset = Tileset.BRICK_BLUE,
        variant: FloorType = FloorType.TILESET,
    ) -> Tile:
        return cls(Floor(variant), tileset)

    @classmethod
    def wall(
        cls, tileset: Tileset = Tileset.BRICK_BLUE, shape: WallShape = WallShape.SOLID
    ) -> Tile:
        return cls(Wall(shape), tileset)

    @classmethod
    def landmark(
        cls,
        kind: LandmarkType,
        flipped: bool = False,
        tileset: Tileset = Tileset.BRICK_BLUE,
    ) -> Tile:
        return cls(Landmark(kind, flipped), tileset)

    # --- Predicates ---

    @property
    def tag(self) -> TileKindTag:
        match self.kind:
            case Empty():
                return TileKindTag.EMPTY
            case Floor():
                return TileKindTag.FLOOR
            case Wall():
                return TileKindTag.WALL
            case DoorNorthSouth():
                return TileKindTag.DOOR_NS
            case DoorEastWest():
                return TileKindTag.DOOR_EW
            case Landmark():
                return TileKindTag.LANDMARK
            case _:
                assert_never(self.kind)

    def is_empty(self) -> bool:
        return isinstance(self.kind, Empty)

    def is_floor(self) -> bool:
        return isinstance(self.kind, Floor)

    def is_wall(self) -> bool:
        return isinstance(self.kind, Wall)

    def is_door(self) -> bool:
        return isinstance(self.kind, DoorNorthSouth | DoorEastWest)

    def is_landmark(self, kind: LandmarkType | None = None) -> bool:
        if not isinstance(self.kind, Landmark):
            return False
        return kind is None or self.kind.kind is kind

    @property
    def is_open(self) -> bool:
        """Whether a door is open. Non-doors are never open."""
        match self.kind:
            case DoorNorthSouth(open=is_open) | DoorEastWest(open=is_open):
                return is_open
            case _:
                return False

    def toggled(self) -> Tile:
        """Return this door with its open state flipped."""
        match self.kind:
            case DoorNorthSouth() | DoorEastWest():
                return replace(self, kind=replace(self.kind, open=not self.kind.open))
            case _:
                raise ValueError(f"cannot toggle non-door tile {self!r}")

    # --- Presentation ---

    def texture_info(self) -> AtlasRegion:
        """Resolve the atlas texture and pixel rectangle for this tile.

        Raises:
            ValueError: for `Empty` tiles, which are never materialized.
        """
        texture: str | None
        flip = False
        match self.kind:
            case Empty():
                raise ValueError("should never convert empty tiles into a sprite")
            case Floor(variant=variant):
                texture = None if variant is FloorType.TILESET else MISC_ATLAS_PATH
                index = int(variant)
            case Wall(shape=shape):
                texture = None
                index = int(shape)
            case DoorNorthSouth(open=is_open):
                texture = None
                index = DOOR_NS_SPRITE_INDEX + DOOR_OPEN_SPRITE_OFFSET * is_open
            case DoorEastWest(open=is_open):
                texture = None
                index = DOOR_EW_SPRITE_INDEX + DOOR_OPEN_SPRITE_OFFSET * is_open
            case Landmark(kind=landmark, flipped=flipped):
                texture = MISC_ATLAS_PATH
                index = int(landmark)
                flip = flipped
            case _:
                assert_never(self.kind)

        columns = TILESET_ATLAS_COLUMNS if texture is None else MISC_ATLAS_COLUMNS
        return AtlasRegion(
            texture=texture or self.tileset.asset_path,
            x=(index % columns) * TILE_DIAMETER,
            y=(index // columns) * TILE_DIAMETER,
            width=TILE_DIAMETER,
            height=TILE_DIAMETER,
            flip=flip,
        )

    @property
    def glyph(self) -> str:
        """Single character used by ASCII dumps."""
        match self.kind:
            case Empty():
                return " "
            case Floor(variant=variant):
                if variant in _LAVA_FLOORS:
                    return "~"
                return "." if variant is not FloorType.BLACK else ":"
            case Wall():
                return "#"
            case DoorNorthSouth(open=is_open) | DoorEastWest(open=is_open):
                return "/" if is_open else "+"
            case Landmark(kind=landmark):
                return landmark.glyph
            case _:
                assert_never(self.kind)

    # --- Packed storage ---

    def to_record(self) -> TileRecord:
        """Pack into a `TileData`-compatible tuple."""
        match self.kind:
            case Empty():
                return (TileKindTag.EMPTY, 0, False, self.tileset)
            case Floor(variant=variant):
                return (TileKindTag.FLOOR, variant, False, self.tileset)
            case Wall(shape=shape):
                return (TileKindTag.WALL, shape, False, self.tileset)
            case DoorNorthSouth(open=is_open):
                return (TileKindTag.DOOR_NS, 0, is_open, self.tileset)
            case DoorEastWest(open=is_open):
                return (TileKindTag.DOOR_EW, 0, is_open, self.tileset)
            case Landmark(kind=landmark, flipped=flipped):
                return (TileKindTag.LANDMARK, landmark, flipped, self.tileset)
            case _:
                assert_never(self.kind)

    @classmethod
    def from_record(cls, record: np.void | TileRecord) -> Tile:
        """Unpack a `TileData` record (or the equivalent tuple)."""
        tag, variant, flag, tileset = (
            int(record[0]),
            int(record[1]),
            bool(record[2]),
            Tileset(int(record[3])),
        )
        kind: TileKind
        match TileKindTag(tag):
            case TileKindTag.EMPTY:
                kind = EMPTY_KIND
            case TileKindTag.FLOOR:
                kind = Floor(FloorType(variant))
            case TileKindTag.WALL:
                kind = Wall(WallShape(variant))
            case TileKindTag.DOOR_NS:
                kind = DoorNorthSouth(flag)
            case TileKindTag.DOOR_EW:
                kind = DoorEastWest(flag)
            case TileKindTag.LANDMARK:
                kind = Landmark(LandmarkType(variant), flag)
        return cls(kind, tileset)


EMPTY_KIND = Empty()
EMPTY_TILE = Tile()
