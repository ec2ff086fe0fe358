from __future__ import annotations

import json
import random
from collections.abc import Callable
from pathlib import Path

import pytest

from undercity.environment.generators import DungeonGenerator, GeneratedMapData
from undercity.environment.map import ChunkedTileGrid


@pytest.fixture
def grid() -> ChunkedTileGrid:
    return ChunkedTileGrid()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(0)


@pytest.fixture(scope="session")
def dungeon() -> GeneratedMapData:
    """A default dungeon shared across tests. Do not mutate it."""
    return DungeonGenerator(0).generate()


@pytest.fixture
def write_prefab(tmp_path: Path) -> Callable[[object], Path]:
    """Serialize a prefab document to a temporary JSON file."""

    def _write(document: object, name: str = "prefab.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write
