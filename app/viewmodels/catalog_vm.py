"""ViewModel holding the catalog session: cached works and active filters."""

from __future__ import annotations

from dataclasses import replace

from loguru import logger

from core.errors import RecordNotFoundError
from core.models import WorkRecord, utc_now_iso
from core.services.filter_service import FilterService, WorkFilter
from core.services.interfaces import IWorkStore
from core.services.normalizer import RowNormalizer


class CatalogVM:
    """Catalog session view-model.

    Mediates between a work store and whatever renders the catalog. The
    cached `works` list is refreshed after every mutation.
    """

    def __init__(self, store: IWorkStore, filter_service: FilterService | None = None) -> None:
        """Create a CatalogVM.

        Args:
            store: Initialized work store.
            filter_service: Filtering service (defaults to `FilterService`).
        """
        self._store = store
        self._filter_service = filter_service or FilterService()
        self._normalizer = RowNormalizer()
        self.works: list[WorkRecord] = []
        self.filters = WorkFilter()

    def reload(self) -> None:
        """Reload all works from the store."""
        self.works = self._store.get_all()

    def filtered_works(self) -> list[WorkRecord]:
        """Works matching the active filters, newest id first."""
        return self._filter_service.apply(self.works, self.filters)

    def available_years(self) -> list[int]:
        return self._filter_service.distinct_years(self.works)

    def set_search(self, search: str = "", year: str | int = "") -> None:
        self.filters.search = search
        self.filters.year = year

    def apply_filters(self, character: str = "", identity: str = "") -> None:
        self.filters.character = character
        self.filters.identity = identity

    def reset_filters(self) -> None:
        """Clear the character and identity filters; search and year stay."""
        self.filters.character = ""
        self.filters.identity = ""

    def get_work(self, work_id: int) -> WorkRecord | None:
        return self._store.get_by_id(work_id)

    def save_work(self, work: WorkRecord) -> int:
        """Add `work` when it has no id, otherwise update it.

        Text fields are cleaned the same way import cleans them. Edits keep
        the stored creation time.
        """
        work = self._normalizer.clean(work)
        if work.id is None:
            new_work = replace(work, created_at=work.created_at or utc_now_iso())
            work_id = self._store.add(new_work)
            logger.info("Created work {} '{}'", work_id, work.title)
        else:
            existing = self._store.get_by_id(work.id)
            if existing is None:
                raise RecordNotFoundError(work.id)
            work_id = self._store.update(replace(work, created_at=existing.created_at))
            logger.info("Updated work {} '{}'", work_id, work.title)
        self.reload()
        return work_id

    def delete_work(self, work_id: int) -> None:
        self._store.delete(work_id)
        logger.info("Deleted work {}", work_id)
        self.reload()

    @property
    def work_count(self) -> int:
        """Number of works currently loaded."""
        return len(self.works)
