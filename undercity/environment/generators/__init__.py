"""Map sources for Undercity.

This package provides the two ways of obtaining a populated map:
- DungeonGenerator: seeded BSP rooms and corridors
- PrefabMapGenerator: a hand-authored JSON layout
"""

from .base import BaseMapGenerator, GeneratedMapData
from .dungeon import DungeonGenerator, GenerationError, generate_map
from .prefab import PrefabMapGenerator

__all__ = [
    "BaseMapGenerator",
    "DungeonGenerator",
    "GeneratedMapData",
    "GenerationError",
    "PrefabMapGenerator",
    "generate_map",
]
