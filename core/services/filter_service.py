"""Filtering and ordering of catalog works for display."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from core.models import WorkRecord


def _contains(haystack: str | None, needle: str) -> bool:
    return bool(haystack) and needle.lower() in str(haystack).lower()


@dataclass
class WorkFilter:
    """Active catalog filters; empty values disable a criterion.

    Attributes:
        search: Substring matched against title or character.
        year: Exact year, as entered (string or int).
        character: Substring matched against character.
        identity: Substring matched against identity.
    """

    search: str = ""
    year: str | int = ""
    character: str = ""
    identity: str = ""

    def matches(self, work: WorkRecord) -> bool:
        """True when `work` satisfies every active criterion."""
        if self.search and not (
            _contains(work.title, self.search) or _contains(work.character, self.search)
        ):
            return False
        if self.year != "" and self.year is not None and str(work.year) != str(self.year).strip():
            return False
        if self.character and not _contains(work.character, self.character):
            return False
        if self.identity and not _contains(work.identity, self.identity):
            return False
        return True


class FilterService:
    """Applies a `WorkFilter` and orders results newest-first."""

    def apply(self, works: Iterable[WorkRecord], criteria: WorkFilter) -> list[WorkRecord]:
        """Return matching works sorted by id descending."""
        matched = [w for w in works if criteria.matches(w)]
        matched.sort(key=lambda w: w.id or 0, reverse=True)
        return matched

    def distinct_years(self, works: Iterable[WorkRecord]) -> list[int]:
        """Distinct years present in `works`, newest first."""
        return sorted({w.year for w in works if isinstance(w.year, int)}, reverse=True)
