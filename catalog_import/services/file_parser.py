"""
File parsing: raw upload bytes -> ordered SourceRow records.

Delimited text and workbooks both normalise to the same row shape
(canonical column name -> stripped string), so later stages never care
which format was uploaded.
"""

from __future__ import annotations

import csv
import io
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any, Iterator

from django.conf import settings
from openpyxl import load_workbook

from catalog_import.models import ImportJob
from catalog_import.services.errors import ParseError

logger = logging.getLogger(__name__)

FileFormat = ImportJob.FileFormat


# ---------------------------------------------------------------------------
# Column adapters
# ---------------------------------------------------------------------------

CANONICAL_FIELDS = [
    "sku",
    "name",
    "description",
    "price_base",
    "promo_price",
    "stock_quantity",
    "pack_size",
    "moq",
    "tax_rate",
    "is_active",
]

# Lower-cased header text -> canonical field
COLUMN_ALIASES: dict[str, str] = {
    "code": "sku",
    "reference": "sku",
    "name_fr": "name",
    "product name": "name",
    "description_fr": "description",
    "baseprice": "price_base",
    "base_price": "price_base",
    "price": "price_base",
    "promoprice": "promo_price",
    "stockquantity": "stock_quantity",
    "stock": "stock_quantity",
    "packsize": "pack_size",
    "vatrate": "tax_rate",
    "vat_rate": "tax_rate",
    "isactive": "is_active",
    "active": "is_active",
}

EXTENSION_FORMATS: dict[str, str] = {
    ".csv": FileFormat.DELIMITED,
    ".txt": FileFormat.DELIMITED,
    ".xlsx": FileFormat.WORKBOOK,
    ".xlsm": FileFormat.WORKBOOK,
}


def canonical_column(header: str) -> str:
    """Map a header cell to its canonical field name (unknown headers pass through)."""
    cleaned = header.strip()
    lowered = cleaned.lower()
    if lowered in CANONICAL_FIELDS:
        return lowered
    return COLUMN_ALIASES.get(lowered, cleaned)


def detect_format(file_name: str) -> str:
    """Pick the file format from the upload's extension."""
    suffix = PurePath(file_name or "").suffix.lower()
    try:
        return EXTENSION_FORMATS[suffix]
    except KeyError:
        raise ParseError(
            f"Unsupported file type {suffix or '(none)'!r}: "
            f"upload a CSV or Excel workbook"
        )


# ---------------------------------------------------------------------------
# Row records
# ---------------------------------------------------------------------------


@dataclass
class SourceRow:
    """One data line of the upload, keyed by canonical column name."""

    line_number: int
    values: dict[str, str] = field(default_factory=dict)

    def get(self, field_name: str) -> str:
        return self.values.get(field_name, "")

    def has(self, field_name: str) -> bool:
        """True when the column exists and the cell is not blank."""
        return bool(self.values.get(field_name, ""))


def _cell_text(value: Any) -> str:
    """Normalise a raw cell (CSV string or workbook value) to stripped text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _build_columns(header_cells: list[Any]) -> list[str | None]:
    """
    Turn the header line into canonical column names.

    Blank header cells become None so their values are dropped.
    """
    columns: list[str | None] = []
    seen: set[str] = set()
    for cell in header_cells:
        text = _cell_text(cell)
        if not text:
            columns.append(None)
            continue
        name = canonical_column(text)
        if name in seen:
            raise ParseError(f"Duplicate column {name!r} in header row")
        seen.add(name)
        columns.append(name)
    return columns


def _zip_row(columns: list[str | None], cells: Any) -> dict[str, str]:
    values = {name: "" for name in columns if name}
    for name, cell in zip(columns, cells):
        if name:
            values[name] = _cell_text(cell)
    return values


# ---------------------------------------------------------------------------
# Parsed file
# ---------------------------------------------------------------------------

# Tried in order; Excel's "CSV (semicolon)" export is Windows-1252.
TEXT_ENCODINGS = ("utf-8-sig", "cp1252")


def _is_blank(cells: Any) -> bool:
    return not any(_cell_text(cell) for cell in cells)


def _take_header(records: Iterator[tuple[int, Any]]) -> tuple[int, Any] | None:
    """Consume leading blank lines and return the header record."""
    for line_number, cells in records:
        if not _is_blank(cells):
            return line_number, cells
    return None


class ParsedFile:
    """
    Restartable, lazy sequence of SourceRow records.

    The header is read eagerly so that an unreadable file fails before any
    row is produced; each iteration re-reads the retained bytes.
    """

    def __init__(self, content: bytes, file_format: str):
        if not content or not content.strip():
            raise ParseError("File is empty")
        if file_format not in FileFormat.values:
            raise ParseError(f"Unknown file format {file_format!r}")
        self.content = content
        self.file_format = file_format
        self.columns = self._read_columns()

    def __iter__(self) -> Iterator[SourceRow]:
        records = self._records()
        _take_header(records)
        for line_number, cells in records:
            if _is_blank(cells):
                continue
            yield SourceRow(line_number, _zip_row(self.columns, cells))

    def _records(self) -> Iterator[tuple[int, Any]]:
        if self.file_format == FileFormat.WORKBOOK:
            return self._workbook_records()
        return self._delimited_records()

    # -- delimited text -----------------------------------------------------

    def _text(self) -> str:
        for encoding in TEXT_ENCODINGS:
            try:
                return self.content.decode(encoding)
            except UnicodeDecodeError:
                continue
        raise ParseError("File is neither UTF-8 nor Windows-1252 text")

    def _reader(self, text: str):
        first_line = text.lstrip("\r\n").split("\n", 1)[0]
        try:
            dialect = csv.Sniffer().sniff(first_line, delimiters=",;\t")
            delimiter = dialect.delimiter
        except csv.Error:
            delimiter = ","
        return csv.reader(io.StringIO(text), delimiter=delimiter)

    def _delimited_records(self) -> Iterator[tuple[int, list[str]]]:
        reader = self._reader(self._text())
        try:
            for line_number, record in enumerate(reader, start=1):
                yield line_number, record
        except csv.Error as e:
            raise ParseError(f"Malformed delimited text: {e}")

    # -- workbook -------------------------------------------------------------

    def _workbook_records(self) -> Iterator[tuple[int, tuple]]:
        try:
            workbook = load_workbook(
                io.BytesIO(self.content), read_only=True, data_only=True
            )
        except (zipfile.BadZipFile, OSError, KeyError, ValueError) as e:
            raise ParseError(f"Could not read workbook: {e}")
        try:
            worksheet = workbook.worksheets[0]
            for line_number, cells in enumerate(
                worksheet.iter_rows(values_only=True), start=1
            ):
                yield line_number, cells
        finally:
            workbook.close()

    # -- header -------------------------------------------------------------

    def _read_columns(self) -> list[str | None]:
        records = self._records()
        try:
            header = _take_header(records)
        finally:
            records.close()
        if header is None:
            raise ParseError("File has no header row")
        _line_number, header_cells = header
        return _build_columns(list(header_cells))


def parse_file(content: bytes, file_format: str) -> ParsedFile:
    """
    Parse uploaded bytes into a ParsedFile.

    Raises:
        ParseError: empty file, unreadable header, or too many data rows.
    """
    parsed = ParsedFile(content, file_format)
    max_rows = getattr(settings, "CATALOG_IMPORT_MAX_ROWS", 0)
    if max_rows:
        count = sum(1 for _ in parsed)
        if count > max_rows:
            raise ParseError(
                f"File has {count} data rows; the limit is {max_rows}"
            )
    logger.debug(
        "Parsed %s upload with columns %s",
        file_format,
        [c for c in parsed.columns if c],
    )
    return parsed
