from __future__ import annotations

import json
from pathlib import Path

import pytest

from app.services.import_coordinator import ImportCoordinator, ImportState, detect_and_parse
from core.errors import FormatUnsupportedError, ImportStateError, ParseError, StoreError
from core.models import WorkRecord
from infrastructure.sqlite_store import SqliteWorkStore

THREE_ROWS = "剧名,年份,集数\n甲,2001,1\n乙,,2\n丙,2003,3\n".encode("utf-8")


class FlakyStore(SqliteWorkStore):
    """Fails the Nth call to add()."""

    def __init__(self, db_path: Path, fail_on: int) -> None:
        super().__init__(db_path)
        self._calls = 0
        self._fail_on = fail_on

    def add(self, record: WorkRecord) -> int:
        self._calls += 1
        if self._calls == self._fail_on:
            raise StoreError("disk full")
        return super().add(record)


def test_three_row_csv_scenario(store: SqliteWorkStore) -> None:
    outcome = detect_and_parse(THREE_ROWS, "works.csv")
    assert [c.title for c in outcome.candidates] == ["甲", "丙"]
    assert outcome.skipped == 1

    result = ImportCoordinator(store).commit_import(outcome.candidates)
    assert result.committed == 2
    assert result.errors == []
    assert [w.id for w in store.get_all()] == [1, 2]


def test_ids_follow_candidate_order(store: SqliteWorkStore) -> None:
    rows = "title,year\n" + "".join(f"w{i},{2000 + i}\n" for i in range(6))
    coordinator = ImportCoordinator(store)
    coordinator.load_file(rows.encode("utf-8"), "bulk.csv")
    result = coordinator.commit_import()
    stored = store.get_all()
    assert result.ids == [w.id for w in stored]
    assert [w.title for w in stored] == [f"w{i}" for i in range(6)]
    assert result.ids == sorted(result.ids)


def test_state_machine_and_preview_limit(store: SqliteWorkStore) -> None:
    rows = "Title,Year\n" + "".join(f"t{i},2000\n" for i in range(15))
    coordinator = ImportCoordinator(store)
    assert coordinator.state is ImportState.IDLE

    preview = coordinator.load_file(rows.encode("utf-8"), "many.CSV")
    assert coordinator.state is ImportState.PREVIEWED
    assert preview.total == 15
    assert len(preview.preview) == 10
    assert preview.source_format == "csv"
    assert store.count() == 0

    coordinator.commit_import()
    assert coordinator.state is ImportState.DONE
    assert store.count() == 15
    with pytest.raises(ImportStateError):
        coordinator.commit_import()


def test_parse_error_returns_to_idle(store: SqliteWorkStore) -> None:
    coordinator = ImportCoordinator(store)
    with pytest.raises(ParseError):
        coordinator.load_file(b"{not json", "backup.json")
    assert coordinator.state is ImportState.IDLE
    with pytest.raises(FormatUnsupportedError):
        coordinator.load_file(b"whatever", "notes.txt")
    assert coordinator.state is ImportState.IDLE
    assert coordinator.preview is None


def test_commit_is_not_atomic(tmp_path: Path) -> None:
    store = FlakyStore(tmp_path / "db.sqlite", fail_on=2)
    store.init()
    candidates = [WorkRecord(title=t, year=2000) for t in ("a", "b", "c", "d")]

    result = ImportCoordinator(store).commit_import(candidates[:3])
    assert result.committed == 2
    assert len(result.errors) == 1
    assert result.errors[0].index == 1
    assert result.errors[0].title == "b"
    assert "disk full" in result.errors[0].reason
    assert [w.title for w in store.get_all()] == ["a", "c"]


def test_commit_drops_source_ids_and_keeps_created_at(store: SqliteWorkStore) -> None:
    doc = {
        "works": [
            {"id": 77, "title": "old", "year": 1990, "photos": ["x", "y"],
             "createdAt": "2001-01-01T00:00:00.000Z"},
            {"id": 78, "title": "new", "year": "1991"},
            {"title": "", "year": 1992},
        ]
    }
    coordinator = ImportCoordinator(store)
    preview = coordinator.load_file(json.dumps(doc).encode("utf-8"), "export.json")
    assert preview.skipped == 1
    result = coordinator.commit_import()

    assert result.committed == 2
    old, new = store.get_all()
    assert old.id not in (77, 78)
    assert old.photos == ["x", "y"]
    assert old.created_at == "2001-01-01T00:00:00.000Z"
    assert new.year == 1991
    assert new.created_at and new.created_at.endswith("Z")
    # candidates are not mutated by the commit
    assert preview.candidates[0].id == 77


def test_committed_records_satisfy_validation(store: SqliteWorkStore) -> None:
    rows = "Title,Year\n,2000\nok,abc\nfine,1999\n  ,2001\n".encode("utf-8")
    coordinator = ImportCoordinator(store)
    coordinator.load_file(rows, "mixed.csv")
    coordinator.commit_import()
    for work in store.get_all():
        assert work.title.strip()
        assert isinstance(work.year, int)


def test_progress_reported_per_record(store: SqliteWorkStore) -> None:
    seen: list[float] = []
    candidates = [WorkRecord(title=str(i), year=2000) for i in range(4)]
    ImportCoordinator(store).commit_import(candidates, on_progress=seen.append)
    assert seen == [0.25, 0.5, 0.75, 1.0]


def test_out_of_range_year_fails_only_its_row(store: SqliteWorkStore) -> None:
    rows = b"title,year\na,2001\nb,99999999999999999999\nc,2003\n"
    coordinator = ImportCoordinator(store)
    coordinator.load_file(rows, "huge.csv")
    result = coordinator.commit_import()
    assert result.committed == 2
    assert [e.index for e in result.errors] == [1]
    assert result.errors[0].title == "b"
    assert [w.title for w in store.get_all()] == ["a", "c"]
    assert coordinator.state is ImportState.DONE
