"""Shared pytest fixtures."""

from __future__ import annotations

import io
from pathlib import Path

from PIL import Image
import pytest

from infrastructure.image_codec import to_data_url
from infrastructure.sqlite_store import SqliteWorkStore


@pytest.fixture
def store(tmp_path: Path) -> SqliteWorkStore:
    s = SqliteWorkStore(tmp_path / "catalog.db")
    s.init()
    return s


def make_inline_image(width: int, height: int, fmt: str = "PNG", color=(200, 30, 30)) -> str:
    """Render a solid image and return it as a data URL."""
    mode = "RGBA" if fmt == "PNG" else "RGB"
    im = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    im.save(buf, format=fmt)
    return to_data_url(buf.getvalue(), f"image/{fmt.lower()}")


@pytest.fixture
def inline_image():
    return make_inline_image
