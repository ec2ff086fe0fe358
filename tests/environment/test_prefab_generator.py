import logging

import pytest

from undercity.environment.generators import PrefabMapGenerator
from undercity.environment.prefab import PrefabError
from undercity.util.coordinates import TilePos


def test_bundled_prefab_map() -> None:
    data = PrefabMapGenerator().generate()
    assert data.spawn_points == [TilePos(5, 4)]
    assert data.doors == [TilePos(10, 4), TilePos(17, 4), TilePos(5, 7)]
    assert data.rooms == []
    assert data.hallways == []


def test_origin_offsets_everything() -> None:
    data = PrefabMapGenerator(origin=TilePos(-100, 3)).generate()
    assert data.spawn_points == [TilePos(-95, 7)]
    assert data.grid[-95, 7].foreground.is_landmark()


def test_missing_spawn_is_logged(
    write_prefab, caplog: pytest.LogCaptureFixture
) -> None:
    path = write_prefab(
        {"schema_version": 1, "key": {"#": {"kind": "wall"}}, "map": ["#"]}
    )
    with caplog.at_level(logging.WARNING):
        data = PrefabMapGenerator(path).generate()
    assert data.spawn_points == []
    assert "has no player spawn" in caplog.text


def test_bad_prefab_raises(tmp_path) -> None:
    with pytest.raises(PrefabError):
        PrefabMapGenerator(tmp_path / "missing.json").generate()
