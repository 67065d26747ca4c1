"""Error kinds raised by the catalog import/export pipeline and store."""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for all catalog errors."""


class FormatUnsupportedError(CatalogError):
    """The declared file type is not one of the importable formats."""

    def __init__(self, declared_name: str) -> None:
        super().__init__(f"Unsupported file format: {declared_name}")
        self.declared_name = declared_name


class ParseError(CatalogError):
    """Malformed CSV/spreadsheet/JSON/archive input.

    Raised before any preview is built; the import attempt is abandoned.
    """


class StoreError(CatalogError):
    """The underlying storage medium failed or is unavailable."""


class RecordNotFoundError(StoreError):
    """An update targeted an id that is not stored."""

    def __init__(self, work_id: int | None) -> None:
        super().__init__(f"Work not found: {work_id}")
        self.work_id = work_id


class CodecError(CatalogError):
    """An inline image could not be decoded or re-encoded."""


class ImportStateError(CatalogError):
    """An import step was requested from the wrong coordinator state."""
