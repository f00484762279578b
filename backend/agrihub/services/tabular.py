"""
Parse uploaded CSV / XLSX content into header-keyed rows.

Both readers yield the same shape: one dict per data row, keyed by the raw
header text of the first non-empty line. Structural problems are collected and
raised together as ImportParseError so that nothing is processed from a file
that could not be read cleanly.
"""

from __future__ import annotations

import csv
import io
import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Union

from openpyxl import load_workbook

from agrihub.core.exceptions import ImportParseError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

SUPPORTED_FILE_TYPES = ("csv", "xlsx")

Row = Dict[str, str]


def normalize_file_type(file_type: str | None) -> str:
    """Lowercase an extension and strip any leading dot; reject unsupported ones."""
    normalized = (file_type or "").strip().lower().lstrip(".")
    if normalized not in SUPPORTED_FILE_TYPES:
        raise UnsupportedFileTypeError(normalized)
    return normalized


def parse_rows(content: Union[bytes, str], file_type: str) -> List[Row]:
    """Dispatch to the reader for ``file_type``."""
    file_type = normalize_file_type(file_type)
    if file_type == "xlsx":
        return parse_xlsx(content)
    return parse_csv(content)


def parse_csv(content: Union[bytes, str]) -> List[Row]:
    """
    Read CSV text with the first line as headers.

    Blank lines are skipped. Unbalanced quoting and rows whose field count
    differs from the header are structural errors.
    """
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ImportParseError([f"File is not valid UTF-8 text: {exc.reason}"]) from exc
    else:
        text = content.lstrip("\ufeff")

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    headers: List[str] | None = None
    rows: List[Row] = []
    errors: List[str] = []

    try:
        for record in reader:
            if not record:
                continue
            if headers is None:
                headers = record
                continue
            if len(record) != len(headers):
                errors.append(
                    f"Line {reader.line_num}: expected {len(headers)} fields, found {len(record)}"
                )
                continue
            rows.append(dict(zip(headers, record)))
    except csv.Error as exc:
        errors.append(f"Line {reader.line_num}: {exc}")

    if errors:
        logger.info("CSV rejected with %d structural error(s)", len(errors))
        raise ImportParseError(errors)
    return rows


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def parse_xlsx(content: Union[bytes, str]) -> List[Row]:
    """
    Read the first worksheet of an XLSX workbook with its first row as headers.

    Cells are rendered to text so rows match the CSV reader's output. A row
    with values past the last header column is a structural error.
    """
    if isinstance(content, str):
        raise ImportParseError(["XLSX content must be binary"])

    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        raise ImportParseError([f"Workbook could not be read: {exc}"]) from exc

    headers: List[str] | None = None
    rows: List[Row] = []
    errors: List[str] = []
    try:
        sheet = workbook.worksheets[0]
        for row_number, values in enumerate(sheet.iter_rows(values_only=True), start=1):
            cells = [_cell_text(value) for value in values]
            # Read-only sheets pad every row to the widest one.
            while cells and cells[-1] == "":
                cells.pop()
            if not any(cells):
                continue
            if headers is None:
                headers = cells
                continue
            if len(cells) > len(headers):
                errors.append(
                    f"Row {row_number}: expected {len(headers)} fields, found {len(cells)}"
                )
                continue
            cells.extend([""] * (len(headers) - len(cells)))
            rows.append(dict(zip(headers, cells)))
    finally:
        workbook.close()

    if errors:
        logger.info("XLSX rejected with %d structural error(s)", len(errors))
        raise ImportParseError(errors)
    return rows
