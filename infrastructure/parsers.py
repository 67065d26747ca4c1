"""Format detection and parsers for importable files.

CSV and spreadsheet parsers yield label -> string rows for the normalizer.
JSON and archive parsers yield already-shaped work dicts from a `works` list.
"""

from __future__ import annotations

from enum import Enum
import io
import json
from pathlib import PurePath
from typing import Any
import zipfile

from loguru import logger
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from core.errors import FormatUnsupportedError, ParseError

ARCHIVE_DATA_ENTRY = "data.json"


class SourceFormat(str, Enum):
    """Importable file formats, in detection priority order."""

    ARCHIVE = "archive"
    JSON = "json"
    SPREADSHEET = "spreadsheet"
    CSV = "csv"

    @property
    def is_tabular(self) -> bool:
        """Tabular formats need alias mapping; document formats do not."""
        return self in (SourceFormat.SPREADSHEET, SourceFormat.CSV)


_EXTENSIONS: tuple[tuple[SourceFormat, tuple[str, ...]], ...] = (
    (SourceFormat.ARCHIVE, (".zip",)),
    (SourceFormat.JSON, (".json",)),
    (SourceFormat.SPREADSHEET, (".xlsx", ".xlsm", ".xls")),
    (SourceFormat.CSV, (".csv",)),
)


def detect_format(declared_name: str) -> SourceFormat:
    """Return the format for `declared_name` based on its extension."""
    suffix = PurePath(declared_name or "").suffix.lower()
    for fmt, extensions in _EXTENSIONS:
        if suffix in extensions:
            return fmt
    raise FormatUnsupportedError(declared_name)


def parse_csv_line(line: str) -> list[str]:
    """Split one CSV line on commas outside double quotes.

    Quote characters toggle quoting and are dropped; `""` escapes are not
    supported. Fields are whitespace-trimmed.
    """
    result: list[str] = []
    current: list[str] = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            result.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    result.append("".join(current).strip())
    return result


def _rows_from_table(headers: list[str], records: list[list[str]]) -> list[dict[str, str]]:
    rows: list[dict[str, str]] = []
    for values in records:
        rows.append(
            {header: (values[i] if i < len(values) else "") for i, header in enumerate(headers)}
        )
    return rows


def parse_csv(data: bytes) -> list[dict[str, str]]:
    """Parse UTF-8 CSV bytes into header-keyed rows."""
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as ex:
        raise ParseError(f"CSV is not valid UTF-8: {ex}") from ex
    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < 2:
        return []
    headers = [h.strip() for h in parse_csv_line(lines[0])]
    return _rows_from_table(headers, [parse_csv_line(line) for line in lines[1:]])


def _cell_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_spreadsheet(data: bytes) -> list[dict[str, str]]:
    """Parse the first worksheet; the first row holds the headers."""
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as ex:
        raise ParseError(f"Cannot read spreadsheet: {ex}") from ex
    try:
        sheet = workbook.worksheets[0]
        table = [[_cell_to_str(v) for v in row] for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()
    if len(table) < 2:
        return []
    headers = [h.strip() for h in table[0]]
    return _rows_from_table(headers, table[1:])


def parse_json(data: bytes) -> list[Any]:
    """Parse a `{works: [...]}` document and return its works list."""
    try:
        doc = json.loads(data.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as ex:
        raise ParseError(f"Invalid JSON: {ex}") from ex
    if not isinstance(doc, dict) or not isinstance(doc.get("works"), list):
        raise ParseError("JSON document must be an object with a 'works' list")
    return doc["works"]


def parse_archive(data: bytes) -> list[Any]:
    """Read `data.json` from a zip archive and parse it like JSON."""
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            try:
                payload = archive.read(ARCHIVE_DATA_ENTRY)
            except KeyError as ex:
                raise ParseError(f"Archive has no {ARCHIVE_DATA_ENTRY} entry") from ex
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as ex:
        raise ParseError(f"Invalid archive: {ex}") from ex
    return parse_json(payload)


_PARSERS = {
    SourceFormat.ARCHIVE: parse_archive,
    SourceFormat.JSON: parse_json,
    SourceFormat.SPREADSHEET: parse_spreadsheet,
    SourceFormat.CSV: parse_csv,
}


def parse_file(data: bytes, declared_name: str) -> tuple[SourceFormat, list[Any]]:
    """Detect the format of `declared_name` and parse `data` accordingly."""
    fmt = detect_format(declared_name)
    items = _PARSERS[fmt](data)
    logger.info("Parsed {} as {}: {} item(s)", declared_name, fmt.value, len(items))
    return fmt, items
