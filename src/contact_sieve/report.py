"""Excel export writer — produces the filtered-rows workbook."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from contact_sieve import PROVENANCE_FIELDS
from contact_sieve.models import Row
from contact_sieve.phone import is_valid_phone

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

VALID_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
INVALID_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")

SHEET_NAME = "Data"
# Phone numbers are kept as text so Excel does not drop the leading zero.
TEXT_FMT = "@"

_AUTO_WIDTH_SAMPLE_ROWS = 300
# Leading "+" and "-" are common in phone numbers and stay untouched.
_EXCEL_FORMULA_PREFIXES = ("=", "@")


# ── Helpers ──────────────────────────────────────────────────────


def strip_provenance(row: Row) -> Row:
    return {key: value for key, value in row.items() if key not in PROVENANCE_FIELDS}


def export_columns(rows: Sequence[Row], headers: Sequence[str] = ()) -> list[str]:
    """Return *headers* followed by any other row keys, in first-seen order."""
    columns = [h for h in headers if h not in PROVENANCE_FIELDS]
    seen = set(columns)
    for row in rows:
        for key in row:
            if key not in seen and key not in PROVENANCE_FIELDS:
                seen.add(key)
                columns.append(key)
    return columns


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)  # include header row
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            cell = row[0]
            width = max(width, len(str(cell.value or "")))
        width += 4
        ws.column_dimensions[letter].width = min(width, 40)


def _excel_value(val: Any) -> Any:
    if val is None or val is pd.NA or val is pd.NaT:
        return None

    if isinstance(val, pd.Timestamp):
        dt = val.to_pydatetime()
        return dt.replace(tzinfo=None) if dt.tzinfo else dt

    if isinstance(val, datetime) and val.tzinfo:
        return val.replace(tzinfo=None)

    if isinstance(val, str):
        if val == "":
            return None
        if val.startswith("'"):
            return val
        stripped = val.lstrip()
        if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES:
            return f"'{val}"

    return val


# ── Public API ───────────────────────────────────────────────────


def write_export(
    out_path: Path,
    rows: Sequence[Row],
    headers: Sequence[str] = (),
    *,
    phone_column: str | None = None,
    highlight: bool = False,
) -> Path:
    """Write *rows* (provenance fields removed) to a one-sheet workbook.

    With *highlight*, cells of *phone_column* are filled green when the number
    is valid and red otherwise.  Returns the written path.
    """
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    columns = export_columns(rows, headers)

    wb = Workbook()
    ws = wb.active
    if ws is None:
        ws = wb.create_sheet()
    ws.title = SHEET_NAME

    for c_idx, col_name in enumerate(columns, 1):
        ws.cell(row=1, column=c_idx, value=col_name)

    phone_idx = columns.index(phone_column) + 1 if phone_column in columns else None
    for r_idx, row in enumerate(rows, 2):
        clean = strip_provenance(row)
        for c_idx, col_name in enumerate(columns, 1):
            value = clean.get(col_name)
            cell = ws.cell(row=r_idx, column=c_idx, value=_excel_value(value))
            if c_idx == phone_idx:
                cell.number_format = TEXT_FMT
                if highlight:
                    cell.fill = VALID_FILL if is_valid_phone(value) else INVALID_FILL

    if columns:
        _style_header(ws, len(columns))
        ws.freeze_panes = "A2"
        if rows:
            ws.auto_filter.ref = ws.dimensions
        _auto_width(ws)

    tmp_path = out_path.with_name(f"{out_path.stem}.tmp{out_path.suffix}")
    wb.save(tmp_path)
    tmp_path.replace(out_path)
    return out_path
