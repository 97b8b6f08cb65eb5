"""Text helpers — accent-insensitive comparison keys and cell coercion."""

from __future__ import annotations

import math
import re
import unicodedata
from datetime import date, datetime

import pandas as pd

_COMBINING_MARKS_RE = re.compile(r"[\u0300-\u036f]")
_STROKE_LETTERS = str.maketrans({"đ": "d", "Đ": "D"})

DATE_FMT = "%d/%m/%Y %H:%M:%S"


def normalize_text(text: str) -> str:
    """Return the comparison key of *text*.

    Accents are stripped (``Nguyễn`` -> ``nguyen``), ``đ``/``Đ`` become ``d``,
    the result is lower-cased and trimmed.  ``normalize_text`` is idempotent.
    """
    # Lower-case first: some upper-case letters lower to a base + combining mark.
    text = unicodedata.normalize("NFD", text.lower())
    text = _COMBINING_MARKS_RE.sub("", text)
    return text.translate(_STROKE_LETTERS).lower().strip()


def cell_text(value: object) -> str:
    """Return the display string of a spreadsheet cell; blanks become ``""``."""
    if value is None or value is pd.NA or value is pd.NaT:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return value.strftime(DATE_FMT)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).strftime(DATE_FMT)
    return str(value)
