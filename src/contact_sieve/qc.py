"""Filter report persistence."""

from __future__ import annotations

from pathlib import Path

from contact_sieve.io import write_json
from contact_sieve.models import FilterReport


def write_filter_report(out_dir: Path, report: FilterReport) -> Path:
    """Write ``filter_report.json`` into *out_dir* and return the path."""
    return write_json(out_dir / "filter_report.json", report.to_dict())
