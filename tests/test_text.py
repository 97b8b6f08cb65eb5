from __future__ import annotations

from datetime import date, datetime

import pandas as pd
import pytest

from contact_sieve.text import cell_text, normalize_text


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Họ và Tên", "ho va ten"),
        ("  ĐẶNG Thị Đào ", "dang thi dao"),
        ("Số điện thoại", "so dien thoai"),
        ("SĐT", "sdt"),
        ("Phone", "phone"),
        ("", ""),
    ],
)
def test_normalize_text_strips_accents_and_case(raw: str, expected: str) -> None:
    assert normalize_text(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["Nguyễn Văn A", "İstanbul", "Ǆemal", "ﬁle", "  Ơ Ư  ", "đĐ", "́leading mark", ""],
)
def test_normalize_text_is_idempotent(raw: str) -> None:
    once = normalize_text(raw)
    assert normalize_text(once) == once


def test_cell_text_treats_blanks_as_empty() -> None:
    assert cell_text(None) == ""
    assert cell_text(float("nan")) == ""
    assert cell_text(pd.NA) == ""
    assert cell_text(pd.NaT) == ""


def test_cell_text_renders_numbers_like_a_spreadsheet() -> None:
    assert cell_text(84901234567.0) == "84901234567"
    assert cell_text(12.5) == "12.5"
    assert cell_text(901234567) == "901234567"


def test_cell_text_formats_dates_day_first() -> None:
    assert cell_text(datetime(2024, 1, 2, 3, 4, 5)) == "02/01/2024 03:04:05"
    assert cell_text(pd.Timestamp("2024-01-02 03:04:05")) == "02/01/2024 03:04:05"
    assert cell_text(date(2024, 12, 31)) == "31/12/2024 00:00:00"


def test_cell_text_passes_strings_through() -> None:
    assert cell_text("  0901 234 567 ") == "  0901 234 567 "
