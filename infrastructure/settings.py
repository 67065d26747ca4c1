"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from loguru import logger

APP_DIR = Path.home() / "AppData" / "Local" / "PosterCatalog"

DEFAULT_SETTINGS: dict[str, Any] = {
    "database": {"path": str(APP_DIR / "catalog.db")},
    "logging": {"dir": str(APP_DIR / "logs"), "level": "INFO"},
    "import": {"preview_limit": 10},
    "export": {
        "compress_images": False,
        "max_width": 1920,
        "quality": 0.7,
        "archive": False,
        "output_dir": ".",
    },
}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access.

    Values from the file override `defaults`; a missing file leaves the
    defaults in effect.
    """

    def __init__(self, settings_path: str | Path, defaults: dict[str, Any] | None = None) -> None:
        self._path = Path(settings_path)
        self._data: dict[str, Any] = copy.deepcopy(
            DEFAULT_SETTINGS if defaults is None else defaults
        )
        if not self._path.exists():
            logger.warning("settings.json not found, using defaults: {}", self._path)
            return
        with self._path.open("r", encoding="utf-8") as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise ValueError(f"settings.json must contain an object: {self._path}")
        _merge(self._data, loaded)

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(self.get(key, default))
        except (ValueError, TypeError):
            logger.warning("Setting {} is not an integer, using {}", key, default)
            return default

    def get_float(self, key: str, default: float) -> float:
        try:
            return float(self.get(key, default))
        except (ValueError, TypeError):
            logger.warning("Setting {} is not a number, using {}", key, default)
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        value = self.get(key, default)
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)
