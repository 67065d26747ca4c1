"""Core domain models for work records, import results and export envelopes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

DEFAULT_MAX_WIDTH = 1920
DEFAULT_QUALITY = 0.7


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a `Z` suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class WorkRecord:
    """A single catalogued work.

    `photos` holds inline images in display order; index 0 is the cover.
    `id` is only ever assigned by the store.
    """

    title: str
    year: int | None
    episode: int | None = None
    character: str | None = None
    identity: str | None = None
    timestamp: str | None = None
    photos: list[str] = field(default_factory=list)
    created_at: str | None = None
    id: int | None = None

    @property
    def cover(self) -> str | None:
        """First photo, used as the card thumbnail."""
        return self.photos[0] if self.photos else None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the exported (camelCase) field names."""
        return {
            "id": self.id,
            "title": self.title,
            "year": self.year,
            "episode": self.episode,
            "character": self.character,
            "identity": self.identity,
            "timestamp": self.timestamp,
            "photos": list(self.photos),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkRecord:
        """Build a record from a serialized dict without any coercion."""
        return cls(
            id=data.get("id"),
            title=data.get("title") or "",
            year=data.get("year"),
            episode=data.get("episode"),
            character=data.get("character"),
            identity=data.get("identity"),
            timestamp=data.get("timestamp"),
            photos=list(data.get("photos") or []),
            created_at=data.get("createdAt"),
        )


@dataclass
class ExportOptions:
    """Caller-selected export options.

    Attributes:
        compress_images: Recompress every photo before serialization.
        max_width: Maximum photo width in pixels when compressing.
        quality: Lossy encoder quality in (0, 1].
        archive: Package the envelope as `data.json` inside a zip archive.
    """

    compress_images: bool = False
    max_width: int = DEFAULT_MAX_WIDTH
    quality: float = DEFAULT_QUALITY
    archive: bool = False

    def __post_init__(self) -> None:
        if int(self.max_width) <= 0:
            raise ValueError(f"max_width must be positive: {self.max_width}")
        if not 0 < float(self.quality) <= 1:
            raise ValueError(f"quality must be in (0, 1]: {self.quality}")
        self.max_width = int(self.max_width)
        self.quality = float(self.quality)

    def to_dict(self) -> dict[str, Any]:
        """Envelope representation (packaging choice is not recorded)."""
        return {
            "compressImages": self.compress_images,
            "maxWidth": self.max_width,
            "quality": self.quality,
        }


@dataclass
class ExportEnvelope:
    """Versioned wrapper written by export and accepted by import."""

    version: str
    export_date: str
    options: ExportOptions
    works: list[WorkRecord] = field(default_factory=list)

    @property
    def total_works(self) -> int:
        return len(self.works)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "exportDate": self.export_date,
            "totalWorks": self.total_works,
            "options": self.options.to_dict(),
            "works": [w.to_dict() for w in self.works],
        }


@dataclass
class ExportArtifact:
    """Output of an export run, ready to be written or downloaded."""

    data: bytes
    suggested_filename: str
    mime_type: str


@dataclass
class ImportPreview:
    """Parsed candidates awaiting confirmation.

    Attributes:
        candidates: All importable candidates in input order.
        preview: Leading slice of `candidates` for display.
        skipped: Number of rows dropped by validation.
        source_format: Detected format name.
    """

    candidates: list[WorkRecord]
    preview: list[WorkRecord]
    skipped: int
    source_format: str

    @property
    def total(self) -> int:
        return len(self.candidates)

    @property
    def is_empty(self) -> bool:
        return not self.candidates


@dataclass
class CommitError:
    """A single record that failed to commit."""

    index: int
    title: str
    reason: str


@dataclass
class CommitResult:
    """Outcome of a batch commit.

    The batch is not atomic: `ids` lists records that were stored even when
    `errors` is non-empty.
    """

    committed: int
    errors: list[CommitError] = field(default_factory=list)
    ids: list[int] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.errors)
