from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
import pytest

from core.models import ExportOptions
from infrastructure.logging import get_log_directory, init_logging
from infrastructure.settings import JsonSettings


def test_missing_file_uses_defaults(tmp_path: Path) -> None:
    settings = JsonSettings(tmp_path / "absent.json")
    assert settings.get_int("import.preview_limit", 0) == 10
    assert settings.get_float("export.quality", 0.0) == 0.7
    assert settings.get("nope.nothing", "fallback") == "fallback"


def test_file_overrides_nested_keys(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"export": {"max_width": 800, "archive": "yes"}}), encoding="utf-8")
    settings = JsonSettings(path)
    assert settings.get_int("export.max_width", 0) == 800
    assert settings.get_bool("export.archive", False) is True
    assert settings.get_bool("export.compress_images", True) is False


def test_export_options_validation() -> None:
    with pytest.raises(ValueError):
        ExportOptions(quality=0)
    with pytest.raises(ValueError):
        ExportOptions(quality=1.5)
    with pytest.raises(ValueError):
        ExportOptions(max_width=0)
    assert ExportOptions(quality=1).quality == 1.0


def test_init_logging_writes_dated_file(tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"
    init_logging(str(log_dir), level="DEBUG")
    logger.debug("catalog opened")
    logger.remove()
    [log_file] = list(log_dir.glob("app_*.log"))
    assert "catalog opened" in log_file.read_text(encoding="utf-8")


def test_default_log_directory_is_per_user() -> None:
    assert get_log_directory().startswith(str(Path.home()))
