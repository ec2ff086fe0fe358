import json

from undercity.__main__ import main


def test_generate_prints_map(capsys) -> None:
    assert main(["generate", "--seed", "3"]) == 0
    out = capsys.readouterr().out
    assert "@" in out
    assert "rooms" in out.splitlines()[-1]


def test_prefab_prints_map(capsys) -> None:
    assert main(["prefab"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "###########"
    assert lines[4] == "#....@....+,,,,,,+,,,#".replace(",", ".")
    assert "3 doors, 1 spawn points" in lines[-1]


def test_errors_go_to_stderr(tmp_path, capsys) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"schema_version": 99}), encoding="utf-8")
    assert main(["prefab", str(path)]) == 1
    captured = capsys.readouterr()
    assert captured.err.startswith("error: ")
    assert "unsupported schema_version" in captured.err
    assert captured.out == ""
