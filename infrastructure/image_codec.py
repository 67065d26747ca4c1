"""Inline image decoding and recompression.

Photos are stored as data URLs (`data:image/<type>;base64,<payload>`).
Recompression downsizes wide images and re-encodes them as JPEG; anything
that is not an inline image passes through untouched.
"""

from __future__ import annotations

import base64
import binascii
import io
import mimetypes
from pathlib import Path
import re

from loguru import logger
from PIL import Image, ImageOps, UnidentifiedImageError

from core.errors import CodecError
from core.models import DEFAULT_MAX_WIDTH, DEFAULT_QUALITY

try:  # pragma: no cover - optional dependency
    from pillow_heif import register_heif_opener  # type: ignore

    register_heif_opener()
    PIL_HEIF_AVAILABLE = True
except ImportError:  # pragma: no cover - optional dependency
    PIL_HEIF_AVAILABLE = False

_DATA_URL = re.compile(r"^data:(image/[\w.+-]+);base64,(.*)$", re.DOTALL)

OUTPUT_MIME = "image/jpeg"


def is_inline_image(value: object) -> bool:
    """True when `value` is a base64 image data URL."""
    return isinstance(value, str) and _DATA_URL.match(value) is not None


def to_data_url(payload: bytes, mime_type: str = OUTPUT_MIME) -> str:
    """Encode raw image bytes as a data URL."""
    return f"data:{mime_type};base64,{base64.b64encode(payload).decode('ascii')}"


def _decode_payload(value: str) -> bytes:
    match = _DATA_URL.match(value)
    if match is None:
        raise CodecError("Not an inline image")
    try:
        return base64.b64decode(match.group(2), validate=False)
    except (binascii.Error, ValueError) as ex:
        raise CodecError(f"Invalid base64 image payload: {ex}") from ex


def _scaled_size(width: int, height: int, max_width: int) -> tuple[int, int]:
    """Shrink to `max_width` keeping aspect ratio; never upscale."""
    if width <= max_width:
        return width, height
    return max_width, max(1, round(height * max_width / width))


class ImageCodec:
    """Decode, downsize and re-encode inline images with Pillow."""

    def __init__(self) -> None:
        self._heif_available = bool(PIL_HEIF_AVAILABLE)
        resampling = getattr(Image, "Resampling", Image)
        self._resample = getattr(resampling, "LANCZOS", getattr(resampling, "BICUBIC", 3))

    def _open(self, value: str) -> Image.Image:
        """Decode to a detached, orientation-corrected image the caller must close."""
        payload = _decode_payload(value)
        try:
            with Image.open(io.BytesIO(payload)) as src:
                src.load()
                try:
                    return ImageOps.exif_transpose(src)
                except (OSError, ValueError, AttributeError):
                    return src.copy()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as ex:
            raise CodecError(f"Cannot decode image: {ex}") from ex

    def image_size(self, value: str) -> tuple[int, int]:
        """Return (width, height) of an inline image."""
        with self._open(value) as im:
            return im.width, im.height

    def recompress(
        self,
        value: str,
        max_width: int = DEFAULT_MAX_WIDTH,
        quality: float = DEFAULT_QUALITY,
    ) -> str:
        """Downsize to `max_width` and re-encode as JPEG at `quality` (0-1).

        Non-image input is returned unchanged. Undecodable images raise
        `CodecError`.
        """
        if not is_inline_image(value):
            return value
        stages = [self._open(value)]
        try:
            im = stages[0]
            new_size = _scaled_size(im.width, im.height, int(max_width))
            if new_size != im.size:
                im = im.resize(new_size, self._resample)
                stages.append(im)
            if im.mode != "RGB":
                im = im.convert("RGB")
                stages.append(im)
            out = io.BytesIO()
            jpeg_quality = min(100, max(1, round(float(quality) * 100)))
            try:
                im.save(out, format="JPEG", quality=jpeg_quality)
            except (OSError, ValueError) as ex:
                raise CodecError(f"Cannot encode image: {ex}") from ex
        finally:
            for stage in stages:
                stage.close()
        logger.debug("Recompressed image to {}x{} at q={}", new_size[0], new_size[1], quality)
        return to_data_url(out.getvalue())

    def encode_file(self, path: str | Path) -> str:
        """Read an image file into an inline image, keeping its original encoding."""
        p = Path(path)
        mime_type, _ = mimetypes.guess_type(p.name)
        if not mime_type or not mime_type.startswith("image/"):
            try:
                with Image.open(p) as im:
                    fmt = (im.format or "").lower()
            except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as ex:
                raise CodecError(f"Not an image file: {p}") from ex
            mime_type = f"image/{fmt or 'jpeg'}"
        return to_data_url(p.read_bytes(), mime_type)
