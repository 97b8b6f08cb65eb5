"""Column inference + row filtering — pure functions, no side effects."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from contact_sieve import NAME_CANDIDATES, PHONE_CANDIDATES
from contact_sieve.models import (
    ColumnRoles,
    FilterCriteria,
    FilterMode,
    FilterReport,
    Row,
    SourceFile,
)
from contact_sieve.phone import CARRIER_PREFIXES, carrier_for, is_valid_phone, local_phone
from contact_sieve.text import cell_text, normalize_text

# ── Column inference ────────────────────────────────────────────


def guess_column(headers: Sequence[str], candidates: Iterable[str]) -> str | None:
    """Return the header that best matches *candidates*, or ``None``.

    Candidates are tried in order; for each one the first header (in header
    order) whose normalized text contains the normalized candidate wins.  An
    earlier candidate always beats a later one, even when the later candidate
    would match an earlier header.
    """
    normalized_headers = [normalize_text(h) for h in headers]
    for candidate in candidates:
        needle = normalize_text(candidate)
        for header, normalized in zip(headers, normalized_headers):
            if needle in normalized:
                return header
    return None


def _resolve_override(headers: Sequence[str], column: str | None, role: str) -> str | None:
    if column is None:
        return None
    if column not in headers:
        raise ValueError(
            f"{role.capitalize()} column {column!r} not found. "
            f"Available: {', '.join(headers) or '(none)'}"
        )
    return column


def infer_columns(
    headers: Sequence[str],
    *,
    name_candidates: Sequence[str] = NAME_CANDIDATES,
    phone_candidates: Sequence[str] = PHONE_CANDIDATES,
    name_column: str | None = None,
    phone_column: str | None = None,
) -> ColumnRoles:
    """Infer the name and phone headers; explicit columns take precedence.

    Raises
    ------
    ValueError
        If an explicit column is not one of *headers*.
    """
    name = _resolve_override(headers, name_column, "name")
    phone = _resolve_override(headers, phone_column, "phone")
    return ColumnRoles(
        name=name if name is not None else guess_column(headers, name_candidates),
        phone=phone if phone is not None else guess_column(headers, phone_candidates),
    )


# ── Filtering ───────────────────────────────────────────────────


def _cell(row: Mapping[str, Any], column: str | None) -> Any:
    return row.get(column if column is not None else "")


def _phone_mode_pass(value: Any, criteria: FilterCriteria) -> bool:
    if criteria.mode is FilterMode.INVALID:
        return not is_valid_phone(value)
    if criteria.only_valid_phones:
        return is_valid_phone(value)
    return True


def filter_rows(
    rows: Iterable[Row],
    criteria: FilterCriteria,
    phone_column: str | None,
    name_column: str | None,
) -> list[Row]:
    """Return the rows visible under *criteria*, in input order."""
    name_needle = normalize_text(criteria.name_query) if criteria.name_query else None
    phone_needle = local_phone(criteria.phone_query) if criteria.phone_query else None

    visible: list[Row] = []
    for row in rows:
        phone_value = _cell(row, phone_column)
        if not _phone_mode_pass(phone_value, criteria):
            continue
        if name_needle is not None:
            name_text = normalize_text(cell_text(_cell(row, name_column)))
            if name_needle not in name_text:
                continue
        if phone_needle is not None and phone_needle not in local_phone(phone_value):
            continue
        visible.append(row)
    return visible


# ── Summary ─────────────────────────────────────────────────────


def count_carriers(rows: Iterable[Row], phone_column: str | None) -> dict[str, int]:
    """Count valid numbers per carrier; carriers with no numbers are reported as 0."""
    counts = {carrier: 0 for carrier in CARRIER_PREFIXES}
    for row in rows:
        carrier = carrier_for(_cell(row, phone_column))
        if carrier is not None:
            counts[carrier] += 1
    return counts


def summarize(
    rows: Sequence[Row],
    visible: Sequence[Row],
    roles: ColumnRoles,
    criteria: FilterCriteria,
    sources: Sequence[SourceFile] = (),
    warnings: Sequence[str] = (),
) -> FilterReport:
    """Build the :class:`FilterReport` for one filter pass."""
    valid = sum(1 for row in rows if is_valid_phone(_cell(row, roles.phone)))
    report = FilterReport(
        rows_in=len(rows),
        rows_out=len(visible),
        hidden_rows=len(rows) - len(visible),
        valid_phones=valid,
        invalid_phones=len(rows) - valid,
        carriers=count_carriers(rows, roles.phone),
        name_column=roles.name,
        phone_column=roles.phone,
        criteria=criteria,
        sources=[source.name for source in sources],
        warnings=list(warnings),
    )

    if roles.phone is None:
        report.warnings.append("No phone column found; every phone number is treated as invalid")
    if roles.name is None:
        report.warnings.append("No name column found; name search matches nothing")
    elif roles.name == roles.phone:
        report.warnings.append(f"Name and phone were both inferred as column {roles.name!r}")
    if rows and not visible:
        report.warnings.append("No rows match the current filters")
    return report
