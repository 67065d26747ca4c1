"""Import workflow: detect, parse, normalize, validate, preview, commit."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from loguru import logger

from core.errors import CatalogError, ImportStateError, StoreError
from core.models import CommitError, CommitResult, ImportPreview, WorkRecord, utc_now_iso
from core.services.interfaces import IWorkStore
from core.services.normalizer import RowNormalizer, filter_candidates
from core.services.task_runner import ProgressCallback, SequentialTaskRunner
from infrastructure.parsers import SourceFormat, parse_file

DEFAULT_PREVIEW_LIMIT = 10


class ImportState(str, Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    PARSED = "parsed"
    PREVIEWED = "previewed"
    COMMITTING = "committing"
    DONE = "done"


@dataclass
class ParseOutcome:
    """Validated candidates from one file plus the number of rows dropped."""

    candidates: list[WorkRecord]
    skipped: int
    source_format: SourceFormat


def detect_and_parse(
    data: bytes, declared_name: str, normalizer: RowNormalizer | None = None
) -> ParseOutcome:
    """Parse `data` as the format implied by `declared_name` into candidates.

    Raises `FormatUnsupportedError` or `ParseError`; rows without a title or
    integer year are dropped and counted.
    """
    normalizer = normalizer or RowNormalizer()
    fmt, items = parse_file(data, declared_name)
    if fmt.is_tabular:
        records = [normalizer.normalize(row) for row in items]
    else:
        records = [normalizer.from_document(item) for item in items]
    candidates, skipped = filter_candidates(records)
    return ParseOutcome(candidates=candidates, skipped=skipped, source_format=fmt)


class ImportCoordinator:
    """Drives one import at a time against a work store.

    `load_file` parses and previews; `commit_import` writes the candidates
    one by one. A failed record does not stop the batch and nothing is
    rolled back.
    """

    def __init__(
        self,
        store: IWorkStore,
        runner: SequentialTaskRunner | None = None,
        normalizer: RowNormalizer | None = None,
        preview_limit: int = DEFAULT_PREVIEW_LIMIT,
    ) -> None:
        self._store = store
        self._runner = runner or SequentialTaskRunner()
        self._normalizer = normalizer or RowNormalizer()
        self._preview_limit = max(0, int(preview_limit))
        self._state = ImportState.IDLE
        self._preview: ImportPreview | None = None

    @property
    def state(self) -> ImportState:
        return self._state

    @property
    def preview(self) -> ImportPreview | None:
        return self._preview

    def reset(self) -> None:
        """Discard any pending candidates and return to idle."""
        self._state = ImportState.IDLE
        self._preview = None

    def load_file(self, data: bytes, declared_name: str) -> ImportPreview:
        """Parse a selected file and hold its candidates for confirmation."""
        self._preview = None
        self._state = ImportState.FILE_SELECTED
        try:
            outcome = detect_and_parse(data, declared_name, self._normalizer)
        except CatalogError as ex:
            logger.error("Import parse failed for {}: {}", declared_name, ex)
            self._state = ImportState.IDLE
            raise
        self._state = ImportState.PARSED

        self._preview = ImportPreview(
            candidates=outcome.candidates,
            preview=outcome.candidates[: self._preview_limit],
            skipped=outcome.skipped,
            source_format=outcome.source_format.value,
        )
        self._state = ImportState.PREVIEWED
        logger.info(
            "Import preview for {}: {} candidate(s), {} skipped",
            declared_name,
            self._preview.total,
            outcome.skipped,
        )
        return self._preview

    def load_path(self, path: str | Path) -> ImportPreview:
        """Read `path` from disk and load it like a selected file."""
        p = Path(path)
        return self.load_file(p.read_bytes(), p.name)

    def _commit_one(self, candidate: WorkRecord) -> int:
        record = replace(
            candidate,
            id=None,
            photos=list(candidate.photos),
            created_at=candidate.created_at or utc_now_iso(),
        )
        return self._store.add(record)

    def commit_import(
        self,
        candidates: list[WorkRecord] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> CommitResult:
        """Add candidates to the store sequentially, in input order.

        Without explicit `candidates` the previewed list is committed, which
        requires a preview to be pending.
        """
        if candidates is None:
            if self._state != ImportState.PREVIEWED or self._preview is None:
                raise ImportStateError(f"Nothing to commit in state {self._state.value}")
            candidates = self._preview.candidates

        self._state = ImportState.COMMITTING
        outcomes = self._runner.run(
            candidates, self._commit_one, recoverable=(StoreError,), on_progress=on_progress
        )

        result = CommitResult(committed=0)
        for outcome in outcomes:
            if outcome.ok:
                result.committed += 1
                result.ids.append(int(outcome.value))  # type: ignore[arg-type]
            else:
                candidate = candidates[outcome.index]
                result.errors.append(
                    CommitError(index=outcome.index, title=candidate.title, reason=str(outcome.error))
                )
        self._state = ImportState.DONE
        self._preview = None
        logger.info(
            "Import committed {} of {} work(s), {} failed",
            result.committed,
            len(candidates),
            len(result.errors),
        )
        return result
