from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest
from openpyxl import Workbook

from contact_sieve.io import frame_to_rows, load_sources, load_table, write_json


def _write_xlsx(path: Path, title: str, rows: list[list[object]]) -> Path:
    wb = Workbook()
    ws = wb.active
    assert ws is not None
    ws.title = title
    for row in rows:
        ws.append(row)
    wb.save(path)
    return path


def _write_csv(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_table_xlsx_returns_first_sheet_name(tmp_path: Path) -> None:
    path = _write_xlsx(
        tmp_path / "khach.xlsx",
        "Danh sach",
        [["Họ và Tên", "SĐT"], ["Nguyễn Văn A", "0901234567"]],
    )

    frame, sheet = load_table(path)

    assert sheet == "Danh sach"
    assert list(frame.columns) == ["Họ và Tên", "SĐT"]
    assert len(frame) == 1


def test_load_table_csv_keeps_leading_zero_and_blanks(tmp_path: Path) -> None:
    path = _write_csv(tmp_path / "list.csv", "Name,Phone\nA,0901234567\nB,\n")

    frame, sheet = load_table(path)

    assert sheet == "list"
    assert frame["Phone"].tolist() == ["0901234567", ""]


def test_load_table_csv_sniffs_semicolons(tmp_path: Path) -> None:
    path = _write_csv(tmp_path / "semi.csv", "Name;Phone\nA;0901234567\n")

    frame, _sheet = load_table(path)

    assert list(frame.columns) == ["Name", "Phone"]


def test_load_table_csv_single_column_is_not_split_on_letters(tmp_path: Path) -> None:
    path = _write_csv(tmp_path / "phones.csv", "SĐT\n0901234567\n0123456789\n")

    frame, _sheet = load_table(path)

    assert list(frame.columns) == ["SĐT"]
    assert frame["SĐT"].tolist() == ["0901234567", "0123456789"]


def test_load_table_csv_sniffs_tabs(tmp_path: Path) -> None:
    path = _write_csv(tmp_path / "tabs.csv", "Họ và Tên\tSĐT\nNguyễn Văn A\t0901234567\n")

    frame, _sheet = load_table(path)

    assert list(frame.columns) == ["Họ và Tên", "SĐT"]


def test_load_table_csv_explicit_delimiter_wins(tmp_path: Path) -> None:
    path = _write_csv(tmp_path / "pipe.csv", "Name;Phone|Note\nA;0901234567|x\n")

    frame, _sheet = load_table(path, delimiter="|")

    assert list(frame.columns) == ["Name;Phone", "Note"]


def test_load_table_csv_retries_encoding_on_unicode_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_bytes(b"x")
    expected = pd.DataFrame({"a": ["1"]})

    encodings: list[str] = []

    def _fake_read_csv(path: Path, **kwargs: object) -> pd.DataFrame:
        del path
        encoding = kwargs.get("encoding")
        assert isinstance(encoding, str)
        encodings.append(encoding)
        if encoding in {"utf-8-sig", "utf-8"}:
            raise UnicodeDecodeError("utf-8", b"x", 0, 1, "bad")
        return expected

    monkeypatch.setattr(pd, "read_csv", _fake_read_csv)

    frame, _sheet = load_table(csv_path)

    assert frame.equals(expected)
    assert encodings == ["utf-8-sig", "utf-8", "latin-1"]


def test_load_table_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Input file not found"):
        load_table(tmp_path / "nope.xlsx")


def test_load_table_unsupported_suffix_raises(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")

    with pytest.raises(ValueError, match="Unsupported file type"):
        load_table(path)


def test_load_table_xls_without_xlrd_has_install_hint(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    path = tmp_path / "old.xls"
    path.write_bytes(b"")

    def _raise_import_error(*_args: object, **_kwargs: object) -> None:
        raise ImportError("Missing optional dependency 'xlrd'")

    monkeypatch.setattr(pd, "ExcelFile", _raise_import_error)

    with pytest.raises(ValueError, match="xlrd"):
        load_table(path)


def test_frame_to_rows_renders_cells_as_text() -> None:
    frame = pd.DataFrame(
        {
            "Họ và Tên": ["Nguyễn Văn A", None],
            "SĐT": [84901234567.0, float("nan")],
            "Ngày": [datetime(2024, 1, 2, 8, 30), None],
        }
    )

    headers, rows = frame_to_rows(frame, file_name="a.xlsx", sheet="Sheet1")

    assert headers == ["Họ và Tên", "SĐT", "Ngày"]
    assert rows[0] == {
        "Họ và Tên": "Nguyễn Văn A",
        "SĐT": "84901234567",
        "Ngày": "02/01/2024 08:30:00",
        "__file": "a.xlsx",
        "__sheet": "Sheet1",
    }
    assert rows[1]["Họ và Tên"] == ""
    assert rows[1]["SĐT"] == ""
    assert rows[1]["Ngày"] == ""


def test_load_sources_concatenates_in_order_with_provenance(tmp_path: Path) -> None:
    first = _write_xlsx(
        tmp_path / "a.xlsx",
        "Sheet1",
        [["Họ và Tên", "SĐT"], ["Nguyễn Văn A", 84901234567], ["Trần B", None]],
    )
    second = _write_csv(tmp_path / "b.csv", "Họ và Tên,SĐT\nLê C,0961234567\n")

    table = load_sources([first, second])

    assert table.headers == ["Họ và Tên", "SĐT"]
    assert [row["Họ và Tên"] for row in table.rows] == ["Nguyễn Văn A", "Trần B", "Lê C"]
    assert table.rows[0]["SĐT"] == "84901234567"
    assert table.rows[1]["SĐT"] == ""
    assert table.rows[2]["__file"] == "b.csv"
    assert table.rows[2]["__sheet"] == "b"
    assert [(s.name, s.rows) for s in table.sources] == [("a.xlsx", 2), ("b.csv", 1)]
    assert table.warnings == []


def test_load_sources_headers_come_from_first_file_with_rows(tmp_path: Path) -> None:
    empty = _write_csv(tmp_path / "empty.csv", "Only,Headers\n")
    full = _write_csv(tmp_path / "full.csv", "Name,Phone\nA,0901234567\n")

    table = load_sources([empty, full])

    assert table.headers == ["Name", "Phone"]
    assert len(table.rows) == 1


def test_load_sources_skips_unreadable_file_with_warning(tmp_path: Path) -> None:
    good = _write_csv(tmp_path / "good.csv", "Name,Phone\nA,0901234567\n")
    bad = tmp_path / "bad.txt"
    bad.write_text("x", encoding="utf-8")

    table = load_sources([bad, good])

    assert len(table.rows) == 1
    assert len(table.warnings) == 1
    assert table.warnings[0].startswith("Skipped bad.txt")


def test_load_sources_raises_when_nothing_loads(tmp_path: Path) -> None:
    bad = tmp_path / "bad.txt"
    bad.write_text("x", encoding="utf-8")

    with pytest.raises(ValueError, match="Unsupported file type"):
        load_sources([bad])


def test_load_sources_with_no_paths_is_empty() -> None:
    table = load_sources([])

    assert table.empty
    assert table.headers == []


def test_write_json_is_deterministic_and_keeps_unicode(tmp_path: Path) -> None:
    out = write_json(tmp_path / "nested" / "data.json", {"b": 1, "a": "Tên", "p": tmp_path})

    text = out.read_text(encoding="utf-8")
    assert text.index('"a"') < text.index('"b"')
    assert "Tên" in text
    assert text.endswith("\n")
    assert json.loads(text)["p"] == str(tmp_path)
    assert not (tmp_path / "nested" / "data.json.tmp").exists()


def test_load_sources_single_phone_column_csv(tmp_path: Path) -> None:
    path = _write_csv(tmp_path / "sdt.csv", "SĐT\n0901234567\n0123456789\n")

    table = load_sources([path])

    assert table.headers == ["SĐT"]
    assert [row["SĐT"] for row in table.rows] == ["0901234567", "0123456789"]
    assert table.sources[0].rows == 2
