"""Canonical work fields and the header labels accepted for each of them."""

from __future__ import annotations

from collections.abc import Mapping
import re
from typing import Any

# Probed in order; first present label wins.
ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("剧名", "title", "Title"),
    "year": ("年份", "year", "Year"),
    "episode": ("集数", "episode", "Episode"),
    "character": ("人物", "character", "Character"),
    "identity": ("身份", "identity", "Identity"),
    "timestamp": ("时间戳", "timestamp", "Timestamp"),
}

# Header row written by the import template, one label per canonical field.
TEMPLATE_HEADERS: tuple[str, ...] = tuple(labels[0] for labels in ALIASES.values())

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def resolve_field(row: Mapping[str, Any], field_name: str) -> str | None:
    """Return the trimmed value of the first alias of `field_name` present in `row`."""
    try:
        labels = ALIASES[field_name]
    except KeyError as ex:
        raise KeyError(f"Unknown canonical field: {field_name}") from ex
    for label in labels:
        value = row.get(label)
        if value is not None:
            return str(value).strip()
    return None


def parse_int(value: Any) -> int | None:
    """Parse the leading integer of `value`; None when there is none.

    Accepts spreadsheet renderings such as "2024.0" and ints as-is.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None
