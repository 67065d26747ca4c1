"""Core service interfaces shared by the store and the coordinators."""

from __future__ import annotations

from core.models import WorkRecord


class IWorkStore:
    """Interface for transactional work storage.

    Every method runs in its own transaction; no cross-call atomicity.
    Failures of the underlying medium raise `StoreError`.
    """

    def init(self) -> None:
        """Open or create the work collection; idempotent."""
        raise NotImplementedError

    def add(self, record: WorkRecord) -> int:
        """Persist `record` under a freshly assigned id and return the id."""
        raise NotImplementedError

    def update(self, record: WorkRecord) -> int:
        """Replace the stored record with `record.id`, keeping its creation time."""
        raise NotImplementedError

    def delete(self, work_id: int) -> None:
        """Remove the record if present."""
        raise NotImplementedError

    def get_all(self) -> list[WorkRecord]:
        """Return independent copies of every stored record, ordered by id."""
        raise NotImplementedError

    def get_by_id(self, work_id: int) -> WorkRecord | None:
        """Return a copy of the record, or None when absent."""
        raise NotImplementedError
