"""Export workflow: snapshot, optional recompression, envelope, optional zip."""

from __future__ import annotations

from datetime import date
import io
import json
import zipfile

from loguru import logger

from core.errors import CodecError
from core.models import ExportArtifact, ExportEnvelope, ExportOptions, WorkRecord, utc_now_iso
from core.services.interfaces import IWorkStore
from core.services.task_runner import ProgressCallback, SequentialTaskRunner
from infrastructure.image_codec import ImageCodec
from infrastructure.parsers import ARCHIVE_DATA_ENTRY

ENVELOPE_VERSION = "1.0"
FILENAME_PREFIX = "poster-collection"


def build_envelope(
    works: list[WorkRecord], options: ExportOptions, version: str = ENVELOPE_VERSION
) -> ExportEnvelope:
    """Wrap a snapshot with version, export date and the options used."""
    return ExportEnvelope(version=version, export_date=utc_now_iso(), options=options, works=works)


def serialize_envelope(envelope: ExportEnvelope) -> bytes:
    """Serialize an envelope as UTF-8 JSON text."""
    return json.dumps(envelope.to_dict(), ensure_ascii=False, indent=2).encode("utf-8")


def package_archive(payload: bytes) -> bytes:
    """Write `payload` as the single `data.json` entry of a new zip archive."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(ARCHIVE_DATA_ENTRY, payload)
    return buf.getvalue()


def suggested_filename(archive: bool, today: date | None = None) -> str:
    """Return `poster-collection-YYYY-MM-DD.json` (or `.zip`)."""
    day = (today or date.today()).isoformat()
    return f"{FILENAME_PREFIX}-{day}.{'zip' if archive else 'json'}"


class ExportCoordinator:
    """Produces export artifacts from a read-only store snapshot."""

    def __init__(
        self,
        store: IWorkStore,
        codec: ImageCodec | None = None,
        runner: SequentialTaskRunner | None = None,
        version: str = ENVELOPE_VERSION,
    ) -> None:
        self._store = store
        self._codec = codec or ImageCodec()
        self._runner = runner or SequentialTaskRunner()
        self._version = version

    def _compress_photos(
        self,
        works: list[WorkRecord],
        options: ExportOptions,
        on_progress: ProgressCallback | None,
    ) -> None:
        """Recompress every photo in place; undecodable photos are kept as-is."""
        slots = [(w, i) for w in works for i in range(len(w.photos))]
        failed = 0

        def _step(slot: tuple[WorkRecord, int]) -> None:
            nonlocal failed
            work, index = slot
            original = work.photos[index]
            try:
                work.photos[index] = self._codec.recompress(
                    original, max_width=options.max_width, quality=options.quality
                )
            except CodecError as ex:
                failed += 1
                logger.warning("Keeping original photo {} of work {}: {}", index, work.id, ex)

        self._runner.run(slots, _step, on_progress=on_progress)
        logger.info("Compressed {} photo(s), {} kept unmodified", len(slots) - failed, failed)

    def export_snapshot(
        self,
        options: ExportOptions | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ExportArtifact:
        """Export the whole catalog; the store is never modified."""
        options = options or ExportOptions()
        works = self._store.get_all()
        if options.compress_images:
            self._compress_photos(works, options, on_progress)

        envelope = build_envelope(works, options, self._version)
        payload = serialize_envelope(envelope)
        if options.archive:
            data, mime_type = package_archive(payload), "application/zip"
        else:
            data, mime_type = payload, "application/json"
        logger.info(
            "Exported {} work(s), {} bytes ({})", envelope.total_works, len(data), mime_type
        )
        return ExportArtifact(
            data=data, suggested_filename=suggested_filename(options.archive), mime_type=mime_type
        )
