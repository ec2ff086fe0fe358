"""Undercity: seeded dungeon layouts on a sparse, chunked tile map."""
