"""I/O helpers — load input spreadsheets into rows, write JSON artifacts."""

from __future__ import annotations

import csv
import json
import zipfile
from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from contact_sieve.models import LoadedTable, Row, SourceFile
from contact_sieve.text import cell_text

EXCEL_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")
CSV_DELIMITERS = ",;\t|"
CSV_SNIFF_CHARS = 64 * 1024

# ── Loading ──────────────────────────────────────────────────────


def _read_first_sheet(path: Path, engine: str) -> tuple[pd.DataFrame, str]:
    try:
        with pd.ExcelFile(path, engine=engine) as workbook:
            sheet_name = str(workbook.sheet_names[0])
            frame = workbook.parse(sheet_name, dtype=object)
    except zipfile.BadZipFile as exc:
        raise ValueError(f"Could not read workbook {path} (not a valid spreadsheet)") from exc
    return frame, sheet_name


def _sniff_delimiter(path: Path, encoding: str) -> str:
    """Guess the CSV separator among ``, ; TAB |``; a single-column file gets ``,``."""
    with path.open(encoding=encoding, errors="strict", newline="") as fh:
        sample = fh.read(CSV_SNIFF_CHARS)
    if len(sample) == CSV_SNIFF_CHARS and "\n" in sample:
        sample = sample.rsplit("\n", 1)[0]
    try:
        return csv.Sniffer().sniff(sample, delimiters=CSV_DELIMITERS).delimiter
    except csv.Error:
        return ","


def load_table(path: Path, delimiter: str | None = None) -> tuple[pd.DataFrame, str]:
    """Load the first sheet of a CSV or Excel file.

    Returns ``(frame, sheet_name)``; a CSV's sheet name is its file stem.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the extension is not supported, or CSV decoding/parsing fails.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        last_exc: Exception | None = None
        for encoding in ("utf-8-sig", "utf-8", "latin-1"):
            try:
                sep = delimiter or _sniff_delimiter(path, encoding)
                frame = pd.read_csv(
                    path,
                    dtype="string",
                    sep=sep,
                    encoding=encoding,
                    encoding_errors="strict",
                    keep_default_na=False,
                )
                return frame, path.stem
            except (UnicodeDecodeError, pd.errors.ParserError) as exc:
                last_exc = exc
        raise ValueError(f"Could not read CSV {path} (decode or parse failed)") from last_exc

    if suffix in EXCEL_SUFFIXES:
        return _read_first_sheet(path, "openpyxl")

    if suffix == ".xls":
        try:
            return _read_first_sheet(path, "xlrd")
        except ImportError as exc:
            raise ValueError(
                "Unsupported .xls input unless 'xlrd' is installed. "
                "Either convert to .xlsx or add dependency: pip install xlrd"
            ) from exc

    raise ValueError(
        f"Unsupported file type: {suffix!r}. Use .xlsx, .xls, or .csv"
    )


def frame_to_rows(
    df: pd.DataFrame, *, file_name: str, sheet: str
) -> tuple[list[str], list[Row]]:
    """Turn *df* into display-text rows tagged with ``__file`` / ``__sheet``."""
    headers = [str(col) for col in df.columns]
    rows: list[Row] = []
    for values in df.itertuples(index=False, name=None):
        row: Row = {header: cell_text(value) for header, value in zip(headers, values)}
        row["__file"] = file_name
        row["__sheet"] = sheet
        rows.append(row)
    return headers, rows


def load_sources(paths: Iterable[Path]) -> LoadedTable:
    """Load every file in *paths* and concatenate their rows in order.

    The first file that yields rows defines the headers.  A file that cannot
    be read is skipped with a warning; if none can be read the last error is
    raised.
    """
    table = LoadedTable()
    last_exc: Exception | None = None
    for path in paths:
        path = Path(path)
        try:
            frame, sheet = load_table(path)
        except (FileNotFoundError, ValueError, OSError) as exc:
            last_exc = exc
            table.warnings.append(f"Skipped {path.name}: {exc}")
            continue
        headers, rows = frame_to_rows(frame, file_name=path.name, sheet=sheet)
        if not table.headers and rows:
            table.headers = headers
        table.rows.extend(rows)
        table.sources.append(SourceFile(name=path.name, sheet=sheet, rows=len(rows)))

    if not table.sources and last_exc is not None:
        raise last_exc
    return table


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
