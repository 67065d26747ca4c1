from __future__ import annotations

import base64
import json
from pathlib import Path

import pytest

import main
from infrastructure.sqlite_store import SqliteWorkStore
from infrastructure.template import build_import_template


@pytest.fixture
def cli(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(main, "init_logging", lambda *a, **kw: None)
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"database": {"path": str(tmp_path / "cli.db")}}))

    def run(*args: str) -> int:
        return main.main(["--settings", str(settings), *args])

    return run


def test_import_list_export(cli, tmp_path: Path, capsys) -> None:
    csv_path = tmp_path / "in.csv"
    csv_path.write_bytes(build_import_template())
    assert cli("import", str(csv_path), "--yes") == 0
    assert "Imported 2 work(s)" in capsys.readouterr().out

    assert cli("list", "--year", "2024") == 0
    assert "示例电视剧" in capsys.readouterr().out

    out_dir = tmp_path / "out"
    assert cli("export", "--archive", "--output", str(out_dir)) == 0
    assert len(list(out_dir.glob("poster-collection-*.zip"))) == 1


def test_unsupported_file_exits_with_error(cli, tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("x")
    assert cli("import", str(path), "--yes") == 1


def _stored(tmp_path: Path):
    store = SqliteWorkStore(tmp_path / "cli.db")
    store.init()
    return store.get_all()


def test_add_edit_and_remove_photo(cli, tmp_path: Path, inline_image) -> None:
    photos = []
    for i, size in enumerate([(30, 20), (40, 10)]):
        path = tmp_path / f"shot{i}.png"
        path.write_bytes(base64.b64decode(inline_image(*size).split(",", 1)[1]))
        photos.append(str(path))

    assert cli("add", " Night Watch ", "2019", "--character", "", "--episode", "3",
               "--photo", photos[0], "--photo", photos[1]) == 0
    [work] = _stored(tmp_path)
    assert (work.title, work.year, work.episode, work.character) == ("Night Watch", 2019, 3, None)
    assert len(work.photos) == 2
    assert work.created_at

    assert cli("edit", str(work.id), "--identity", "lead", "--year", "2020") == 0
    [edited] = _stored(tmp_path)
    assert (edited.title, edited.year, edited.identity) == ("Night Watch", 2020, "lead")
    assert edited.created_at == work.created_at

    assert cli("remove-photo", str(work.id), "1") == 0
    [trimmed] = _stored(tmp_path)
    assert trimmed.photos == work.photos[1:]


def test_edit_and_remove_photo_report_missing_targets(cli, tmp_path: Path) -> None:
    assert cli("edit", "42", "--title", "x") == 1
    assert cli("add", "Solo", "2001") == 0
    [work] = _stored(tmp_path)
    assert cli("remove-photo", str(work.id), "1") == 1
    assert _stored(tmp_path)[0].photos == []
