"""Row normalization and validation for import candidates.

CSV and spreadsheet rows arrive as label -> string mappings and are mapped
onto canonical fields through the alias table. JSON and archive documents
already carry canonical field names and only get their year/episode coerced.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from loguru import logger

from core.aliases import parse_int, resolve_field
from core.models import WorkRecord


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class RowNormalizer:
    """Map raw rows and exported documents to candidate `WorkRecord`s."""

    def normalize(self, row: Mapping[str, Any]) -> WorkRecord:
        """Map a tabular row to a candidate; unknown labels are ignored."""
        return WorkRecord(
            title=resolve_field(row, "title") or "",
            year=parse_int(resolve_field(row, "year")),
            episode=parse_int(resolve_field(row, "episode")),
            character=_optional_text(resolve_field(row, "character")),
            identity=_optional_text(resolve_field(row, "identity")),
            timestamp=_optional_text(resolve_field(row, "timestamp")),
            photos=[],
        )

    def clean(self, record: WorkRecord) -> WorkRecord:
        """Trim the title and collapse blank optional text to None, as import does."""
        return replace(
            record,
            title=str(record.title or "").strip(),
            character=_optional_text(record.character),
            identity=_optional_text(record.identity),
            timestamp=_optional_text(record.timestamp),
        )

    def normalize_rows(self, rows: Iterable[Mapping[str, Any]]) -> list[WorkRecord]:
        return [self.normalize(row) for row in rows]

    def from_document(self, item: Any) -> WorkRecord | None:
        """Pass an already-shaped record through; None for non-object entries."""
        if not isinstance(item, Mapping):
            logger.debug("Skipping non-object work entry: {!r}", item)
            return None
        photos = item.get("photos") or []
        if not isinstance(photos, list):
            photos = []
        work_id = item.get("id")
        created_at = item.get("createdAt")
        return WorkRecord(
            id=work_id if isinstance(work_id, int) and not isinstance(work_id, bool) else None,
            title=str(item.get("title") or "").strip(),
            year=parse_int(item.get("year")),
            episode=parse_int(item.get("episode")),
            character=_optional_text(item.get("character")),
            identity=_optional_text(item.get("identity")),
            timestamp=_optional_text(item.get("timestamp")),
            photos=[str(p) for p in photos],
            created_at=str(created_at) if created_at else None,
        )


def is_importable(record: WorkRecord | None) -> bool:
    """True when the record has a non-empty title and an integer year."""
    if record is None:
        return False
    return bool(record.title and record.title.strip()) and isinstance(record.year, int)


def filter_candidates(
    records: Iterable[WorkRecord | None],
) -> tuple[list[WorkRecord], int]:
    """Split records into importable candidates and a skipped count."""
    kept: list[WorkRecord] = []
    skipped = 0
    for record in records:
        if is_importable(record):
            kept.append(record)  # type: ignore[arg-type]
        else:
            skipped += 1
    if skipped:
        logger.debug("Validation skipped {} row(s) without title or year", skipped)
    return kept, skipped
