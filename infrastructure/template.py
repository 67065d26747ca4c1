"""Downloadable CSV template for bulk import."""

from __future__ import annotations

from core.aliases import TEMPLATE_HEADERS

TEMPLATE_FILENAME = "剧照导入模板.csv"

SAMPLE_ROWS: tuple[tuple[str, ...], ...] = (
    ("示例电视剧", "2024", "1", "张三", "主角", "00:15:30"),
    ("另一部剧", "2023", "5", "李四", "配角", "01:02:30"),
)


def build_import_template() -> bytes:
    """Return a BOM-prefixed UTF-8 CSV with headers and sample rows, all cells quoted."""
    lines = [",".join(f'"{cell}"' for cell in row) for row in (TEMPLATE_HEADERS, *SAMPLE_ROWS)]
    return ("\ufeff" + "\n".join(lines)).encode("utf-8")
