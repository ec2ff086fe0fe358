from __future__ import annotations

# =============================================================================
# SPATIAL TYPES
# =============================================================================

type TileCoord = int  # Always integer tile position

# World coordinates - absolute positions on the unbounded tile plane
type WorldTileCoord = TileCoord  # Example: x=-5, y=3
type WorldTilePos = tuple[
    WorldTileCoord, WorldTileCoord
]  # Example: (-5, 3) = tile -5,3 on map

# Chunk coordinates - one unit per 32x32 block of tiles
type ChunkCoord = int

# =============================================================================
# GENERATION TYPES
# =============================================================================

# Seeds are plain integers (up to 64 bits are meaningful).
type RandomSeed = int
