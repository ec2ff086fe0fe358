"""Tile and chunk coordinate systems for the unbounded tile plane.

Tiles live on an infinite signed integer grid. Storage groups them into
square chunks of ``CHUNK_DIAMETER`` tiles per side, so every tile position
splits into a chunk position (arithmetic shift) and a chunk-relative offset
(bit mask). Two's-complement AND behaves as a floor-modulo for power-of-two
divisors, which keeps negative coordinates correct without special cases.

Screen-space conventions: north is -y, east is +x.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from random import Random

    from undercity.types import ChunkCoord, TileCoord, WorldTilePos

CHUNK_SHIFT = 5
CHUNK_DIAMETER = 1 << CHUNK_SHIFT  # 32 tiles per side
CHUNK_MASK = CHUNK_DIAMETER - 1
CHUNK_AREA = CHUNK_DIAMETER * CHUNK_DIAMETER


class Direction(Enum):
    """Unit steps to the eight neighbors of a tile."""

    NORTH = (0, -1)
    NORTH_EAST = (1, -1)
    EAST = (1, 0)
    SOUTH_EAST = (1, 1)
    SOUTH = (0, 1)
    SOUTH_WEST = (-1, 1)
    WEST = (-1, 0)
    NORTH_WEST = (-1, -1)

    @property
    def delta(self) -> tuple[int, int]:
        return self.value


# Moore neighborhood: 8-connected, includes corners.
MOORE_DIRECTIONS: tuple[Direction, ...] = (
    Direction.NORTH,
    Direction.NORTH_EAST,
    Direction.EAST,
    Direction.SOUTH_EAST,
    Direction.SOUTH,
    Direction.SOUTH_WEST,
    Direction.WEST,
    Direction.NORTH_WEST,
)

# von Neumann neighborhood: 4-connected, excludes corners.
VON_NEUMANN_DIRECTIONS: tuple[Direction, ...] = (
    Direction.NORTH,
    Direction.EAST,
    Direction.SOUTH,
    Direction.WEST,
)


@dataclass(frozen=True, slots=True)
class TilePos:
    """A single tile on the unbounded plane."""

    x: TileCoord
    y: TileCoord

    @classmethod
    def of(cls, x: TileCoord, y: TileCoord) -> TilePos:
        return cls(x, y)

    @classmethod
    def coerce(cls, pos: TilePos | WorldTilePos) -> TilePos:
        """Accept either a TilePos or a plain ``(x, y)`` tuple."""
        if isinstance(pos, TilePos):
            return pos
        x, y = pos
        return cls(x, y)

    def __add__(self, delta: TilePos | tuple[int, int]) -> TilePos:
        dx, dy = (delta.x, delta.y) if isinstance(delta, TilePos) else delta
        return TilePos(self.x + dx, self.y + dy)

    def __sub__(self, delta: TilePos | tuple[int, int]) -> TilePos:
        dx, dy = (delta.x, delta.y) if isinstance(delta, TilePos) else delta
        return TilePos(self.x - dx, self.y - dy)

    def scaled(self, factor: int) -> TilePos:
        return TilePos(self.x * factor, self.y * factor)

    def min(self, other: TilePos) -> TilePos:
        """Component-wise minimum."""
        return TilePos(min(self.x, other.x), min(self.y, other.y))

    def max(self, other: TilePos) -> TilePos:
        """Component-wise maximum."""
        return TilePos(max(self.x, other.x), max(self.y, other.y))

    def chunk_relative(self) -> TilePos:
        """Return this position relative to its chunk, i.e. in ``0..32``."""
        return TilePos(self.x & CHUNK_MASK, self.y & CHUNK_MASK)

    def chunk_index(self) -> int:
        """Index of this position in a chunk's flat cell array.

        Only meaningful on a chunk-relative position.
        """
        assert 0 <= self.x < CHUNK_DIAMETER and 0 <= self.y < CHUNK_DIAMETER, (
            "can only get chunk index of chunk-relative TilePos"
        )
        return self.y * CHUNK_DIAMETER + self.x

    def neighbor(self, direction: Direction) -> TilePos:
        dx, dy = direction.value
        return TilePos(self.x + dx, self.y + dy)

    def moore_neighborhood(self) -> Iterator[TilePos]:
        """All eight neighbors, clockwise from north."""
        for direction in MOORE_DIRECTIONS:
            yield self.neighbor(direction)

    def von_neumann_neighborhood(self) -> Iterator[TilePos]:
        """The four orthogonal neighbors, clockwise from north."""
        for direction in VON_NEUMANN_DIRECTIONS:
            yield self.neighbor(direction)


@dataclass(frozen=True, slots=True)
class ChunkPos:
    """Position of one 32x32 chunk."""

    x: ChunkCoord
    y: ChunkCoord

    @classmethod
    def of(cls, x: ChunkCoord, y: ChunkCoord) -> ChunkPos:
        return cls(x, y)

    @classmethod
    def from_tile(cls, pos: TilePos) -> ChunkPos:
        # Arithmetic shift floors toward negative infinity.
        return cls(pos.x >> CHUNK_SHIFT, pos.y >> CHUNK_SHIFT)

    def min_tile(self) -> TilePos:
        """The northwesternmost tile in this chunk."""
        return TilePos(self.x * CHUNK_DIAMETER, self.y * CHUNK_DIAMETER)

    def max_tile(self) -> TilePos:
        """The southeasternmost tile in this chunk."""
        return self.min_tile() + (CHUNK_MASK, CHUNK_MASK)

    def min(self, other: ChunkPos) -> ChunkPos:
        return ChunkPos(min(self.x, other.x), min(self.y, other.y))

    def max(self, other: ChunkPos) -> ChunkPos:
        return ChunkPos(max(self.x, other.x), max(self.y, other.y))

    def tile_positions(self) -> Iterator[TilePos]:
        """Every absolute tile position in this chunk, in chunk-index order."""
        base_x = self.x << CHUNK_SHIFT
        base_y = self.y << CHUNK_SHIFT
        for y in range(CHUNK_DIAMETER):
            for x in range(CHUNK_DIAMETER):
                yield TilePos(base_x | x, base_y | y)


@dataclass(frozen=True, slots=True)
class TileRect:
    """Axis-aligned rectangle of tiles, inclusive on both ends.

    The constructor trusts that ``min`` is component-wise <= ``max``; use
    :meth:`from_corners` when the corners may come in any order.
    """

    min: TilePos
    max: TilePos

    @classmethod
    def from_corners(
        cls, a: TilePos | WorldTilePos, b: TilePos | WorldTilePos
    ) -> TileRect:
        a = TilePos.coerce(a)
        b = TilePos.coerce(b)
        return cls(a.min(b), a.max(b))

    def size(self) -> tuple[int, int]:
        """Extent as ``max - min`` per axis (one less than the tile count)."""
        return (self.max.x - self.min.x, self.max.y - self.min.y)

    @property
    def width(self) -> int:
        """Number of tile columns covered."""
        return self.max.x - self.min.x + 1

    @property
    def height(self) -> int:
        """Number of tile rows covered."""
        return self.max.y - self.min.y + 1

    def translated(self, by: TilePos | tuple[int, int]) -> TileRect:
        return TileRect(self.min + by, self.max + by)

    def inset(self, amount: int) -> TileRect:
        """Shrink by ``amount`` tiles on every side."""
        return TileRect(self.min + (amount, amount), self.max - (amount, amount))

    def contains(self, pos: TilePos) -> bool:
        return (
            self.min.x <= pos.x <= self.max.x and self.min.y <= pos.y <= self.max.y
        )

    def intersects(self, other: TileRect) -> bool:
        return (
            self.min.x <= other.max.x
            and other.min.x <= self.max.x
            and self.min.y <= other.max.y
            and other.min.y <= self.max.y
        )

    def intersection(self, other: TileRect) -> TileRect | None:
        if not self.intersects(other):
            return None
        return TileRect(self.min.max(other.min), self.max.min(other.max))

    def tiles(self) -> Iterator[TilePos]:
        """Every tile in the rectangle, row by row."""
        for y in range(self.min.y, self.max.y + 1):
            for x in range(self.min.x, self.max.x + 1):
                yield TilePos(x, y)

    def border_tiles(self) -> Iterator[TilePos]:
        """Every tile on the rectangle's perimeter, each exactly once."""
        for pos in self.tiles():
            if pos.x in (self.min.x, self.max.x) or pos.y in (self.min.y, self.max.y):
                yield pos

    def split(self, x_axis: bool, first_extent: int) -> tuple[TileRect, TileRect]:
        """Divide into two rectangles that share the boundary line.

        With ``x_axis`` the cut is the column ``min.x + first_extent``,
        otherwise the row ``min.y + first_extent``.
        """
        if x_axis:
            mid = self.min.x + first_extent
            return (
                TileRect(self.min, TilePos(mid, self.max.y)),
                TileRect(TilePos(mid, self.min.y), self.max),
            )
        mid = self.min.y + first_extent
        return (
            TileRect(self.min, TilePos(self.max.x, mid)),
            TileRect(TilePos(self.min.x, mid), self.max),
        )

    def tile_on_border(self, rng: Random) -> TilePos:
        """Pick a random edge, then a uniformly random cell along it."""
        edge = rng.randrange(4)
        if edge < 2:
            x = rng.randint(self.min.x, self.max.x)
            y = self.min.y if edge == 0 else self.max.y
        else:
            x = self.min.x if edge == 2 else self.max.x
            y = rng.randint(self.min.y, self.max.y)
        return TilePos(x, y)

    def random_tile(self, rng: Random) -> TilePos:
        return TilePos(
            rng.randint(self.min.x, self.max.x), rng.randint(self.min.y, self.max.y)
        )

    def __repr__(self) -> str:
        return (
            f"TileRect(min=({self.min.x}, {self.min.y}), "
            f"max=({self.max.x}, {self.max.y}))"
        )
