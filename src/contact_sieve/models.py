"""Data models / typed containers used across the package."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from numbers import Integral
from typing import Any

Row = dict[str, Any]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


def _to_optional_str(value: Any, field_name: str) -> str | None:
    if value is not None and not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string or None")
    return value


class FilterMode(str, Enum):
    """Which tab of rows is shown: every row, or only invalid phone numbers."""

    ALL = "all"
    INVALID = "invalid"


class ColumnRole(str, Enum):
    NAME = "name"
    PHONE = "phone"


@dataclass(frozen=True)
class ColumnRoles:
    """Inferred header for each role; ``None`` means no header matched."""

    name: str | None = None
    phone: str | None = None

    def get(self, role: ColumnRole) -> str | None:
        return self.name if role is ColumnRole.NAME else self.phone


@dataclass
class FilterCriteria:
    mode: FilterMode = FilterMode.ALL
    only_valid_phones: bool = True
    name_query: str = ""
    phone_query: str = ""

    def __post_init__(self) -> None:
        try:
            self.mode = FilterMode(self.mode)
        except ValueError as exc:
            raise ValueError(f"Invalid filter mode: {self.mode!r}. Use all/invalid.") from exc
        if not isinstance(self.only_valid_phones, bool):
            raise TypeError("only_valid_phones must be a bool")
        if not isinstance(self.name_query, str):
            raise TypeError("name_query must be a string")
        if not isinstance(self.phone_query, str):
            raise TypeError("phone_query must be a string")

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "only_valid_phones": self.only_valid_phones,
            "name_query": self.name_query,
            "phone_query": self.phone_query,
        }


@dataclass(frozen=True)
class SourceFile:
    """One loaded input file (first sheet only)."""

    name: str
    sheet: str
    rows: int = 0


@dataclass
class LoadedTable:
    """Everything a load produces; a new load replaces the previous one."""

    headers: list[str] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)
    sources: list[SourceFile] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.rows


@dataclass
class FilterReport:
    """Counts and inference results emitted alongside every run.

    Contract invariant: ``hidden_rows == rows_in - rows_out``.
    """

    rows_in: int = 0
    rows_out: int = 0
    hidden_rows: int = 0
    valid_phones: int = 0
    invalid_phones: int = 0
    carriers: dict[str, int] = field(default_factory=dict)
    name_column: str | None = None
    phone_column: str | None = None
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    sources: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        self.hidden_rows = _to_non_negative_int(self.hidden_rows, "hidden_rows")
        self.valid_phones = _to_non_negative_int(self.valid_phones, "valid_phones")
        self.invalid_phones = _to_non_negative_int(self.invalid_phones, "invalid_phones")
        self.name_column = _to_optional_str(self.name_column, "name_column")
        self.phone_column = _to_optional_str(self.phone_column, "phone_column")
        self.sources = _to_string_list(self.sources, "sources")
        self.warnings = _to_string_list(self.warnings, "warnings")
        if not isinstance(self.carriers, Mapping):
            raise TypeError("carriers must be a mapping")
        self.carriers = {
            str(name): _to_non_negative_int(count, f"carriers[{name!r}]")
            for name, count in self.carriers.items()
        }
        if self.rows_out > self.rows_in:
            raise ValueError("rows_out must be <= rows_in")
        if self.hidden_rows != self.rows_in - self.rows_out:
            raise ValueError("hidden_rows must equal rows_in - rows_out")
        if self.valid_phones + self.invalid_phones > self.rows_in:
            raise ValueError("valid_phones + invalid_phones must be <= rows_in")

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "hidden_rows": self.hidden_rows,
            "valid_phones": self.valid_phones,
            "invalid_phones": self.invalid_phones,
            "carriers": dict(self.carriers),
            "name_column": self.name_column,
            "phone_column": self.phone_column,
            "criteria": self.criteria.to_dict(),
            "sources": list(self.sources),
            "warnings": list(self.warnings),
        }


@dataclass
class InputDigest:
    path: str
    sha256: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "sha256": self.sha256}


@dataclass
class RunManifest:
    """Audit-trail manifest for a single run."""

    tool: str = "contact-sieve"
    version: str = ""
    command: str = ""
    inputs: list[InputDigest] = field(default_factory=list)
    output_path: str = ""
    created_at_utc: str = ""
    rows_in: int = 0
    rows_out: int = 0
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        if self.status not in {"success", "failed"}:
            raise ValueError("status must be 'success' or 'failed'")
        if self.error_code is not None:
            self.error_code = _to_non_negative_int(self.error_code, "error_code")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "command": self.command,
            "inputs": [item.to_dict() for item in self.inputs],
            "output_path": self.output_path,
            "created_at_utc": self.created_at_utc,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
