"""Sparse, chunked two-layer tile storage.

The map is an unbounded plane of `TilePair` cells stored in 32x32 chunks that
are allocated lazily. Each chunk keeps its cells in one numpy structured array
(`TilePairData`), so whole-chunk questions ("is anything here?", "where is the
outermost used cell?") are vectorised.

Reads and writes are deliberately asymmetric:

- `ChunkedTileGrid.get` never allocates. A read inside a chunk that does not
  exist observes a shared, read-only, all-empty "ghost" chunk; writing
  through such a view raises `ValueError`.
- `ChunkedTileGrid.get_or_create` allocates the chunk on first touch and
  returns a writable view.

Cells can be "plucked": claimed by an externally managed dynamic entity (a
door, a shrine, the player spawn). A plucked cell keeps its data but its
foreground is never drawn again and it is skipped by later plucks.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from undercity.environment.tile_types import (
    EMPTY_TILE,
    Floor,
    FloorType,
    Tile,
    TileData,
    TileKindTag,
)
from undercity.util.coordinates import (
    CHUNK_AREA,
    CHUNK_DIAMETER,
    ChunkPos,
    TilePos,
    TileRect,
)

if TYPE_CHECKING:
    from undercity.types import WorldTilePos

# One grid cell: foreground, background and the sticky "plucked" flag.
TilePairData = np.dtype(
    [
        ("fg", TileData),
        ("bg", TileData),
        ("plucked", np.bool_),
    ]
)

_DOOR_TAGS = (TileKindTag.DOOR_NS, TileKindTag.DOOR_EW)

# Shared backing store for reads of unallocated chunks.
_GHOST_CELLS = np.zeros(CHUNK_AREA, dtype=TilePairData)
_GHOST_CELLS.flags.writeable = False


class RenderLayer(Enum):
    BACKGROUND = "background"
    FOREGROUND = "foreground"


class TilePair:
    """The addressable cell of the grid: a foreground over a background floor.

    A pair obtained from a grid is a live view onto that grid's storage;
    mutating it mutates the map. A pair constructed directly owns a private
    one-cell buffer and can be assigned into a grid with ``grid[pos] = pair``.

    Invariants:
        - A floor never sits in the foreground; it is demoted to background.
        - A non-floor foreground always sits on a floor background. When
          none is given, it gets the default floor of its own tileset.
    """

    __slots__ = ("_cells", "_index")

    def __init__(
        self,
        foreground: Tile = EMPTY_TILE,
        background: Tile = EMPTY_TILE,
        plucked: bool = False,
    ) -> None:
        if foreground.is_floor():
            foreground, background = EMPTY_TILE, foreground
        if not (background.is_empty() or background.is_floor()):
            raise ValueError(f"background must be a floor, got {background!r}")
        if background.is_empty() and not foreground.is_empty():
            background = Tile(Floor(FloorType.TILESET), foreground.tileset)
        self._cells = np.zeros(1, dtype=TilePairData)
        self._index = 0
        self._cells[0] = (foreground.to_record(), background.to_record(), plucked)

    @classmethod
    def _view(cls, cells: np.ndarray, index: int) -> TilePair:
        pair = cls.__new__(cls)
        pair._cells = cells
        pair._index = index
        return pair

    # --- Layers ---

    @property
    def foreground(self) -> Tile:
        return Tile.from_record(self._cells["fg"][self._index])

    @property
    def background(self) -> Tile:
        return Tile.from_record(self._cells["bg"][self._index])

    @property
    def plucked(self) -> bool:
        return bool(self._cells["plucked"][self._index])

    @property
    def visible_foreground(self) -> Tile:
        """Foreground as the static renderer must see it (empty once plucked)."""
        return EMPTY_TILE if self.plucked else self.foreground

    # --- Queries on the raw record ---

    def _tag(self, layer: str) -> int:
        return int(self._cells[layer]["kind"][self._index])

    def is_empty(self) -> bool:
        fg, bg = self._tag("fg"), self._tag("bg")
        return fg == TileKindTag.EMPTY and bg == TileKindTag.EMPTY

    def is_floor(self) -> bool:
        """A bare floor: floor background and nothing standing on it."""
        fg, bg = self._tag("fg"), self._tag("bg")
        return fg == TileKindTag.EMPTY and bg == TileKindTag.FLOOR

    def is_wall(self) -> bool:
        return self._tag("fg") == TileKindTag.WALL

    def is_door(self) -> bool:
        return self._tag("fg") in _DOOR_TAGS

    def is_landmark(self) -> bool:
        return self._tag("fg") == TileKindTag.LANDMARK

    # --- Mutation ---

    def set(self, tile: Tile) -> None:
        """Set foreground or background depending on the kind of `tile`.

        A floor replaces the background and clears the foreground. Anything
        else becomes the foreground over a default floor of its own tileset,
        discarding any custom background floor; use `set_with_floor` to pick
        the floor explicitly.
        """
        if tile.is_floor():
            self._cells["fg"][self._index] = EMPTY_TILE.to_record()
            self._cells["bg"][self._index] = tile.to_record()
        else:
            self.set_with_floor(tile, FloorType.TILESET)

    def set_with_floor(self, tile: Tile, floor: FloorType) -> None:
        """Set a non-floor foreground over a chosen floor type."""
        if tile.is_floor():
            raise ValueError("set_with_floor expects a non-floor tile")
        self._cells["fg"][self._index] = tile.to_record()
        self._cells["bg"][self._index] = Tile(Floor(floor), tile.tileset).to_record()

    def clear(self) -> None:
        """Empty both layers. The plucked flag is sticky and survives."""
        self._cells["fg"][self._index] = EMPTY_TILE.to_record()
        self._cells["bg"][self._index] = EMPTY_TILE.to_record()

    def pluck(self) -> Tile:
        """Hand the foreground to a dynamic entity and return it."""
        self._cells["plucked"][self._index] = True
        return self.foreground

    def assign(self, other: TilePair) -> None:
        """Overwrite this cell with a copy of `other`, plucked flag included."""
        self._cells[self._index] = other._cells[other._index]

    def copy(self) -> TilePair:
        """A detached copy that no longer aliases grid storage."""
        pair = TilePair()
        pair.assign(self)
        return pair

    # --- Materialization ---

    def render_layers(self) -> list[tuple[RenderLayer, Tile]]:
        """The tiles a static renderer must draw here, bottom layer first.

        Empty layers are never returned, and a plucked foreground is treated
        as empty.
        """
        layers: list[tuple[RenderLayer, Tile]] = []
        background = self.background
        if not background.is_empty():
            layers.append((RenderLayer.BACKGROUND, background))
        foreground = self.visible_foreground
        if not foreground.is_empty():
            layers.append((RenderLayer.FOREGROUND, foreground))
        return layers

    @property
    def glyph(self) -> str:
        foreground = self.visible_foreground
        if not foreground.is_empty():
            return foreground.glyph
        return self.background.glyph

    def record(self) -> tuple:
        """The raw ``((fg), (bg), plucked)`` record as plain Python values."""
        return self._cells[self._index].item()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TilePair):
            return NotImplemented
        return self.record() == other.record()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"TilePair(foreground={self.foreground!r}, "
            f"background={self.background!r}, plucked={self.plucked})"
        )


type TilePredicate = Callable[[TilePos, TilePair], bool]


class Chunk:
    """Dense 32x32 block of cells, owned by exactly one grid."""

    __slots__ = ("cells", "pos")

    def __init__(self, pos: ChunkPos, cells: np.ndarray | None = None) -> None:
        self.pos = pos
        if cells is None:
            cells = np.zeros(CHUNK_AREA, dtype=TilePairData)
        self.cells = cells

    def pair_at(self, pos: TilePos) -> TilePair:
        return TilePair._view(self.cells, pos.chunk_relative().chunk_index())

    def occupied_mask(self) -> np.ndarray:
        """Boolean ``(y, x)`` array of cells with anything in either layer."""
        occupied = (self.cells["fg"]["kind"] != TileKindTag.EMPTY) | (
            self.cells["bg"]["kind"] != TileKindTag.EMPTY
        )
        return occupied.reshape(CHUNK_DIAMETER, CHUNK_DIAMETER)

    def is_empty(self) -> bool:
        return not self.occupied_mask().any()

    def __repr__(self) -> str:
        return f"Chunk(pos={self.pos!r}, tiles=<{len(self.cells)} tiles>)"


class ChunkedTileGrid:
    """An unbounded tile map stored as lazily allocated chunks."""

    def __init__(self) -> None:
        self.chunks: dict[ChunkPos, Chunk] = {}

    # --- Chunk access ---

    def get_chunk(self, pos: ChunkPos) -> Chunk | None:
        return self.chunks.get(pos)

    def chunk_or_create(self, pos: ChunkPos) -> Chunk:
        chunk = self.chunks.get(pos)
        if chunk is None:
            chunk = self.chunks[pos] = Chunk(pos)
        return chunk

    # --- Cell access ---

    def get(self, pos: TilePos | WorldTilePos) -> TilePair:
        """Read a cell without allocating.

        Cells of unallocated chunks come back as read-only empty pairs.
        """
        pos = TilePos.coerce(pos)
        chunk = self.get_chunk(ChunkPos.from_tile(pos))
        index = pos.chunk_relative().chunk_index()
        if chunk is None:
            return TilePair._view(_GHOST_CELLS, index)
        return TilePair._view(chunk.cells, index)

    def get_or_create(self, pos: TilePos | WorldTilePos) -> TilePair:
        """Return a writable view of a cell, allocating its chunk if needed."""
        pos = TilePos.coerce(pos)
        return self.chunk_or_create(ChunkPos.from_tile(pos)).pair_at(pos)

    def __getitem__(self, pos: TilePos | WorldTilePos) -> TilePair:
        return self.get(pos)

    def __setitem__(self, pos: TilePos | WorldTilePos, pair: TilePair) -> None:
        self.get_or_create(pos).assign(pair)

    # --- Bounds ---

    def used_chunks(self) -> tuple[ChunkPos, ChunkPos] | None:
        """Min/max chunk positions over chunks holding any non-empty cell.

        Allocated chunks with only empty cells are ignored. Returns None when
        nothing is used.
        """
        lo: ChunkPos | None = None
        hi: ChunkPos | None = None
        for pos, chunk in self.chunks.items():
            if chunk.is_empty():
                continue
            lo = pos if lo is None else lo.min(pos)
            hi = pos if hi is None else hi.max(pos)
        if lo is None or hi is None:
            return None
        return lo, hi

    def used_tiles(self) -> TileRect | None:
        """Tightest rectangle around the non-empty cells.

        Only chunks on the border of the `used_chunks` rectangle are scanned.
        That is exact as long as every extreme cell lives in a border chunk,
        which holds for anything grown outward from its edges (generation and
        prefab loading both do); content confined to interior chunks does not
        affect the result.
        """
        bounds = self.used_chunks()
        if bounds is None:
            return None
        lo, hi = bounds

        min_x = min_y = None
        max_x = max_y = None
        for pos, chunk in self.chunks.items():
            if pos.x not in (lo.x, hi.x) and pos.y not in (lo.y, hi.y):
                continue
            ys, xs = np.nonzero(chunk.occupied_mask())
            if xs.size == 0:
                continue
            base = pos.min_tile()
            chunk_min_x, chunk_max_x = base.x + int(xs.min()), base.x + int(xs.max())
            chunk_min_y, chunk_max_y = base.y + int(ys.min()), base.y + int(ys.max())
            min_x = chunk_min_x if min_x is None else min(min_x, chunk_min_x)
            min_y = chunk_min_y if min_y is None else min(min_y, chunk_min_y)
            max_x = chunk_max_x if max_x is None else max(max_x, chunk_max_x)
            max_y = chunk_max_y if max_y is None else max(max_y, chunk_max_y)

        assert min_x is not None and min_y is not None
        assert max_x is not None and max_y is not None
        return TileRect(TilePos(min_x, min_y), TilePos(max_x, max_y))

    # --- Bulk edits ---

    def copy_from(self, other: ChunkedTileGrid, destination: TilePos) -> None:
        """Copy `other`'s used area so its min used tile lands at `destination`.

        Empty cells inside that area are copied too and overwrite this grid.
        """
        rect = other.used_tiles()
        if rect is None:
            return
        offset = destination - rect.min
        for pos in rect.tiles():
            self[pos + offset] = other[pos]

    def fill(
        self, tile: Tile, start: TilePos | WorldTilePos, end: TilePos | WorldTilePos
    ) -> None:
        """Set every cell in the rectangle spanning ``start ..= end``."""
        for pos in TileRect.from_corners(start, end).tiles():
            self.get_or_create(pos).set(tile)

    def fill_line(
        self, tile: Tile, start: TilePos | WorldTilePos, end: TilePos | WorldTilePos
    ) -> None:
        """Set every cell on an axis-aligned line.

        Raises:
            ValueError: if the line is diagonal.
        """
        rect = TileRect.from_corners(start, end)
        if rect.min.x != rect.max.x and rect.min.y != rect.max.y:
            raise ValueError(f"cannot fill diagonal line {start} -> {end}")
        for pos in rect.tiles():
            self.get_or_create(pos).set(tile)

    def fill_border(
        self, tile: Tile, start: TilePos | WorldTilePos, end: TilePos | WorldTilePos
    ) -> None:
        """Set every cell on the perimeter of the rectangle ``start ..= end``."""
        rect = TileRect.from_corners(start, end)
        lo, hi = rect.min, rect.max
        self.fill_line(tile, lo, TilePos(hi.x, lo.y))
        self.fill_line(tile, TilePos(lo.x, hi.y), hi)
        self.fill_line(tile, lo, TilePos(lo.x, hi.y))
        self.fill_line(tile, TilePos(hi.x, lo.y), hi)

    # --- Searches ---

    def tiles(self) -> Iterator[tuple[TilePos, TilePair]]:
        """Every non-empty cell as a live view, in a stable chunk order."""
        for chunk_pos in sorted(self.chunks, key=lambda p: (p.y, p.x)):
            chunk = self.chunks[chunk_pos]
            base = chunk_pos.min_tile()
            for index in np.flatnonzero(chunk.occupied_mask()):
                index = int(index)
                y, x = divmod(index, CHUNK_DIAMETER)
                pos = TilePos(base.x + x, base.y + y)
                yield pos, TilePair._view(chunk.cells, index)

    def find_tile(
        self, start: TilePos | WorldTilePos, predicate: TilePredicate
    ) -> TilePos | None:
        """Breadth-first search (8-connected) from `start` for a matching cell.

        The search is confined to the chunk rectangle of `used_chunks`. The
        first match in visitation order is returned, which is not necessarily
        the nearest one.
        """
        bounds = self.used_chunks()
        if bounds is None:
            return None
        area = TileRect(bounds[0].min_tile(), bounds[1].max_tile())

        start = TilePos.coerce(start)
        queue = deque([start])
        seen = {start}
        while queue:
            pos = queue.popleft()
            if predicate(pos, self.get(pos)):
                return pos
            for neighbor in pos.moore_neighborhood():
                if neighbor not in seen and area.contains(neighbor):
                    seen.add(neighbor)
                    queue.append(neighbor)
        return None

    def pluck_tiles(self, predicate: TilePredicate) -> list[tuple[TilePos, Tile]]:
        """Claim every not-yet-plucked cell matching `predicate`.

        Matching cells are marked plucked and their foreground tiles returned;
        the caller now owns them. A cell is never returned twice.
        """
        plucked: list[tuple[TilePos, Tile]] = []
        for pos, pair in self.tiles():
            if pair.plucked:
                continue
            if predicate(pos, pair):
                plucked.append((pos, pair.pluck()))
        return plucked

    # --- Comparison ---

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChunkedTileGrid):
            return NotImplemented
        if self.chunks.keys() != other.chunks.keys():
            return False
        return all(
            chunk.cells.tobytes() == other.chunks[pos].cells.tobytes()
            for pos, chunk in self.chunks.items()
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ChunkedTileGrid(chunks={len(self.chunks)})"


def render_ascii(grid: ChunkedTileGrid, rect: TileRect | None = None) -> str:
    """Draw `rect` (default: the used area) one glyph per cell."""
    rect = rect or grid.used_tiles()
    if rect is None:
        return ""
    rows = []
    for y in range(rect.min.y, rect.max.y + 1):
        row = "".join(grid.get((x, y)).glyph for x in range(rect.min.x, rect.max.x + 1))
        rows.append(row.rstrip())
    return "\n".join(rows)
