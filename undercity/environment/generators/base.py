"""Base classes for map generation."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from undercity.environment.map import ChunkedTileGrid
    from undercity.util.coordinates import TilePos, TileRect


@dataclass
class GeneratedMapData:
    """A container for everything a map generator produces.

    Attributes:
        grid: The populated tile map, handed over to the caller.
        rooms: Room rectangles (walls included).
        hallways: Every rectangle whose border was carved as corridor.
        doors: Positions of every placed door.
        spawn_points: Candidate player spawn positions, each marked with a
            `SPAWN_PLAYER` landmark in `grid`.
    """

    grid: ChunkedTileGrid
    rooms: list[TileRect] = field(default_factory=list)
    hallways: list[TileRect] = field(default_factory=list)
    doors: list[TilePos] = field(default_factory=list)
    spawn_points: list[TilePos] = field(default_factory=list)


class BaseMapGenerator(abc.ABC):
    """Abstract base class for ways of producing a map."""

    @abc.abstractmethod
    def generate(self) -> GeneratedMapData:
        """Produce the map layout and its structural data."""
        raise NotImplementedError
