# Overview: CSV and Excel decoding for stock-movement uploads.

"""
Tabular decoder for stock-movement uploads.

CSV (utf-8, optional BOM) and Excel (.xlsx) are accepted. Headers are
trimmed and blank rows dropped; cell values are returned as stripped
strings so callers validate one representation.
"""

from __future__ import annotations

import csv
import io

from openpyxl import load_workbook

from ..errors import BadRequest


EXCEL_EXTENSIONS = {"xlsx", "xlsm", "xltx", "xltm"}


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _rows_from_table(headers: list, records) -> list[dict]:
    keys = [_cell(h) for h in headers]
    rows = []
    for record in records:
        values = [_cell(v) for v in record]
        if not any(values):
            continue
        rows.append({key: (values[i] if i < len(values) else "") for i, key in enumerate(keys) if key})
    return rows


def decode_rows(data: bytes, filename: str = "upload.csv") -> list[dict]:
    ext = (filename or "").rsplit(".", 1)[-1].lower()

    if ext in EXCEL_EXTENSIONS:
        try:
            wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        except Exception:
            raise BadRequest("Could not read spreadsheet")
        table = list(wb.active.values)
        if not table:
            return []
        return _rows_from_table(list(table[0]), table[1:])

    if ext != "csv":
        raise BadRequest("Unsupported file format")

    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise BadRequest("CSV file must be UTF-8 encoded")

    reader = csv.reader(io.StringIO(text))
    table = list(reader)
    if not table:
        return []
    return _rows_from_table(table[0], table[1:])
