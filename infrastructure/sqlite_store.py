"""SQLite persistence for work records.

Each public operation opens its own connection and runs inside a single
transaction, so a failure in one call never affects another.
"""

from __future__ import annotations

import json
from pathlib import Path
import sqlite3

from loguru import logger

from core.errors import RecordNotFoundError, StoreError
from core.models import WorkRecord
from core.services.interfaces import IWorkStore

_COLUMNS = "id, title, year, episode, character, identity, timestamp, photos, created_at"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS works (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    year INTEGER,
    episode INTEGER,
    character TEXT,
    identity TEXT,
    timestamp TEXT,
    photos TEXT NOT NULL DEFAULT '[]',
    created_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_works_title ON works(title);
CREATE INDEX IF NOT EXISTS idx_works_year ON works(year);
"""


def _row_to_record(row: tuple) -> WorkRecord:
    """Convert a database row to a `WorkRecord`."""
    try:
        photos = json.loads(row[7]) if row[7] else []
    except json.JSONDecodeError as ex:
        raise StoreError(f"Corrupt photo list for work {row[0]}: {ex}") from ex
    return WorkRecord(
        id=row[0],
        title=row[1],
        year=row[2],
        episode=row[3],
        character=row[4],
        identity=row[5],
        timestamp=row[6],
        photos=list(photos),
        created_at=row[8],
    )


def _field_values(record: WorkRecord) -> tuple:
    return (
        record.title,
        record.year,
        record.episode,
        record.character,
        record.identity,
        record.timestamp,
        json.dumps(list(record.photos), ensure_ascii=False),
    )


class SqliteWorkStore(IWorkStore):
    """Work store backed by a single SQLite database file."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        if not self._initialized:
            raise StoreError("Store is not initialized; call init() first")
        try:
            return sqlite3.connect(str(self.db_path))
        except sqlite3.Error as ex:
            raise StoreError(f"Cannot open database {self.db_path}: {ex}") from ex

    def init(self) -> None:
        """Create the works table and its indexes if missing."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path))
            try:
                with conn:
                    conn.executescript(_SCHEMA)
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as ex:
            raise StoreError(f"Cannot initialize database {self.db_path}: {ex}") from ex
        self._initialized = True
        logger.info("Work store ready: {}", self.db_path)

    def add(self, record: WorkRecord) -> int:
        """Insert `record` under a new id; any id on the record is ignored."""
        conn = self._connect()
        try:
            with conn:
                cursor = conn.execute(
                    "INSERT INTO works (title, year, episode, character, identity, timestamp,"
                    " photos, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (*_field_values(record), record.created_at),
                )
                new_id = int(cursor.lastrowid)
        except (sqlite3.Error, OverflowError) as ex:
            raise StoreError(f"Add failed for '{record.title}': {ex}") from ex
        finally:
            conn.close()
        logger.debug("Added work {} '{}'", new_id, record.title)
        return new_id

    def update(self, record: WorkRecord) -> int:
        """Replace an existing record; the stored `created_at` is kept."""
        if record.id is None:
            raise RecordNotFoundError(None)
        conn = self._connect()
        try:
            with conn:
                cursor = conn.execute(
                    "UPDATE works SET title = ?, year = ?, episode = ?, character = ?,"
                    " identity = ?, timestamp = ?, photos = ? WHERE id = ?",
                    (*_field_values(record), record.id),
                )
                if cursor.rowcount == 0:
                    raise RecordNotFoundError(record.id)
        except (sqlite3.Error, OverflowError) as ex:
            raise StoreError(f"Update failed for work {record.id}: {ex}") from ex
        finally:
            conn.close()
        return record.id

    def delete(self, work_id: int) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM works WHERE id = ?", (work_id,))
        except (sqlite3.Error, OverflowError) as ex:
            raise StoreError(f"Delete failed for work {work_id}: {ex}") from ex
        finally:
            conn.close()

    def get_all(self) -> list[WorkRecord]:
        conn = self._connect()
        try:
            with conn:
                rows = conn.execute(f"SELECT {_COLUMNS} FROM works ORDER BY id").fetchall()
        except sqlite3.Error as ex:
            raise StoreError(f"Read failed: {ex}") from ex
        finally:
            conn.close()
        return [_row_to_record(row) for row in rows]

    def get_by_id(self, work_id: int) -> WorkRecord | None:
        conn = self._connect()
        try:
            with conn:
                row = conn.execute(
                    f"SELECT {_COLUMNS} FROM works WHERE id = ?", (work_id,)
                ).fetchone()
        except (sqlite3.Error, OverflowError) as ex:
            raise StoreError(f"Read failed for work {work_id}: {ex}") from ex
        finally:
            conn.close()
        return _row_to_record(row) if row else None

    def count(self) -> int:
        """Return the number of stored works."""
        conn = self._connect()
        try:
            with conn:
                return int(conn.execute("SELECT COUNT(*) FROM works").fetchone()[0])
        except sqlite3.Error as ex:
            raise StoreError(f"Count failed: {ex}") from ex
        finally:
            conn.close()
