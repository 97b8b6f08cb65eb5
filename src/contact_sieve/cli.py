"""CLI entry point for contact-sieve."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table as RichTable
from rich.text import Text

from contact_sieve import NAME_CANDIDATES, PHONE_CANDIDATES, __version__
from contact_sieve.io import load_sources, write_json
from contact_sieve.models import (
    ColumnRole,
    ColumnRoles,
    FilterCriteria,
    FilterReport,
    LoadedTable,
    Row,
    RunManifest,
)
from contact_sieve.phone import is_valid_phone, local_phone
from contact_sieve.pipeline import filter_rows, infer_columns, summarize
from contact_sieve.qc import write_filter_report
from contact_sieve.report import write_export
from contact_sieve.text import cell_text
from contact_sieve.utils import digest_inputs, utcnow_iso

app = typer.Typer(
    name="csieve",
    help="contact-sieve — Find name/phone columns in spreadsheets, filter and re-export.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


class TabOption(str, Enum):
    all = "all"
    invalid = "invalid"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"contact-sieve v{__version__}")
        raise typer.Exit()


def _parse_profile_lines(lines: list[str]) -> dict[ColumnRole, list[str]]:
    """Parse ``role=phrase`` lines into extra candidates per role."""
    extra: dict[ColumnRole, list[str]] = {ColumnRole.NAME: [], ColumnRole.PHONE: []}
    for item in lines:
        if "=" not in item:
            raise ValueError(f"Invalid profile line: {item!r}  (expected role=phrase)")
        role_raw, phrase = item.split("=", 1)
        try:
            role = ColumnRole(role_raw.strip().lower())
        except ValueError as exc:
            raise ValueError(
                f"Unknown role {role_raw.strip()!r} in profile (use name or phone)"
            ) from exc
        phrase = phrase.strip()
        if not phrase:
            raise ValueError(f"Empty phrase for role {role.value!r} in profile")
        extra[role].append(phrase)
    return extra


def _load_profile(profile: Path | None) -> dict[ColumnRole, list[str]]:
    """Return extra column candidates from a profile file."""
    if not profile:
        return _parse_profile_lines([])
    if not profile.exists():
        raise ValueError(f"Profile not found: {profile} (expected lines like phone=di dong)")
    if profile.is_dir():
        raise ValueError(f"Profile is a directory, not a file: {profile}")
    try:
        text = profile.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read profile {profile}: {exc}") from exc

    lines: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        lines.append(stripped)
    return _parse_profile_lines(lines)


def _candidates(extra: dict[ColumnRole, list[str]]) -> tuple[list[str], list[str]]:
    """Profile phrases first, then the built-in ones."""
    return (
        [*extra[ColumnRole.NAME], *NAME_CANDIDATES],
        [*extra[ColumnRole.PHONE], *PHONE_CANDIDATES],
    )


def _write_manifest(
    out_dir: Path,
    input_files: Sequence[Path],
    command: str,
    created_at: str,
    report: FilterReport,
    *,
    output_path: Path | None = None,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    manifest = RunManifest(
        version=__version__,
        command=command,
        inputs=digest_inputs(input_files),
        output_path=str(output_path.resolve()) if output_path else "",
        created_at_utc=created_at,
        rows_in=report.rows_in,
        rows_out=report.rows_out,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def _abort(
    out_dir: Path,
    input_files: Sequence[Path],
    command: str,
    created_at: str,
    *,
    message: str,
    rows_in: int = 0,
    error_code: int = 2,
) -> NoReturn:
    """Write failure artifacts, report *message* and exit with *error_code*."""
    report = FilterReport(rows_in=rows_in, rows_out=0, hidden_rows=rows_in, warnings=[message])
    report_path = write_filter_report(out_dir, report)
    manifest_path = _write_manifest(
        out_dir,
        input_files,
        command,
        created_at,
        report,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    _err(message)
    console.print(f"  Report   -> {report_path}")
    console.print(f"  Manifest -> {manifest_path}")
    raise typer.Exit(code=error_code)


def _phone_cell(value: object) -> Text:
    raw = cell_text(value)
    digits = local_phone(value)
    label = f"{raw} ({digits})" if digits else raw
    return Text(label, style="green" if is_valid_phone(value) else "red")


def _preview_table(
    headers: Sequence[str], rows: Sequence[Row], roles: ColumnRoles, limit: int
) -> RichTable:
    tbl = RichTable(title=f"Preview (first {min(limit, len(rows))} of {len(rows)})")
    for header in headers:
        tbl.add_column(Text(header))
    for row in rows[:limit]:
        cells: list[Text] = []
        for header in headers:
            value = row.get(header)
            cells.append(_phone_cell(value) if header == roles.phone else Text(cell_text(value)))
        tbl.add_row(*cells)
    return tbl


def _carrier_table(report: FilterReport) -> RichTable:
    tbl = RichTable(title="Carriers")
    tbl.add_column("Carrier", style="bold")
    tbl.add_column("Valid numbers", justify="right")
    for carrier, count in report.carriers.items():
        tbl.add_row(carrier, str(count))
    return tbl


def _column_label(column: str | None) -> str:
    return "[red]not found[/red]" if column is None else f"[green]{column}[/green]"


def _load_or_abort(
    input_files: Sequence[Path], out_dir: Path, command: str, created_at: str, quiet: bool
) -> LoadedTable:
    try:
        table = load_sources(input_files)
    except (FileNotFoundError, ValueError, OSError) as exc:
        _abort(out_dir, input_files, command, created_at, message=str(exc))
    except Exception as exc:
        _abort(
            out_dir, input_files, command, created_at,
            message=f"Unexpected internal error: {exc}",
            error_code=1,
        )
    if not quiet:
        for warning in table.warnings:
            console.print(f"  [yellow]![/yellow] {warning}")
    if table.empty:
        _abort(out_dir, input_files, command, created_at, message="Input files have 0 rows.")
    return table


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """contact-sieve CLI."""


# ── filter command ───────────────────────────────────────────────


@app.command("filter")
def filter_(
    input_files: list[Path] = typer.Option(
        ..., "--input", "-i",
        help="Spreadsheet to load (.xlsx, .xls, .csv). Repeat to concatenate files.",
        exists=True, readable=True, dir_okay=False,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for export + report + manifest.",
    ),
    export_name: str = typer.Option(
        "export.xlsx", "--export",
        help="File name of the exported workbook inside --out-dir.",
    ),
    no_export: bool = typer.Option(
        False, "--no-export",
        help="Skip writing the export workbook.",
    ),
    tab: TabOption = typer.Option(
        TabOption.all, "--tab",
        help="Rows to show: all, or only invalid phone numbers.",
    ),
    only_valid: bool = typer.Option(
        True,
        "--only-valid/--all-phones",
        help="Keep only valid phone numbers (ignored with --tab invalid).",
    ),
    name_query: str = typer.Option(
        "", "--name",
        help="Search the name column (accent and case insensitive).",
    ),
    phone_query: str = typer.Option(
        "", "--phone",
        help="Search the phone column by digits (+84 is treated as 0).",
    ),
    profile: Path | None = typer.Option(
        None, "--profile",
        help="Profile file with extra header phrases (name=... / phone=... lines).",
    ),
    name_column: str | None = typer.Option(
        None, "--name-column",
        help="Use this header as the name column instead of guessing.",
    ),
    phone_column: str | None = typer.Option(
        None, "--phone-column",
        help="Use this header as the phone column instead of guessing.",
    ),
    highlight: bool = typer.Option(
        False, "--highlight",
        help="Colour phone cells green/red in the export.",
    ),
    preview: int = typer.Option(
        0, "--preview",
        min=0,
        help="Print the first N visible rows.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
) -> None:
    """Filter rows by phone validity and search terms, then export them."""
    echo = _printer(quiet)
    command = "filter"
    created_at = utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)
    try:
        name_candidates, phone_candidates = _candidates(_load_profile(profile))
    except ValueError as exc:
        _abort(out_dir, input_files, command, created_at, message=str(exc))

    if not quiet:
        sources = "\n".join(f"  {path}" for path in input_files)
        console.print(Panel(
            f"[bold]contact-sieve[/bold] v{__version__}\n"
            f"Input:\n{sources}\nOutput: {out_dir}",
            title="Filter Start", border_style="blue",
        ))
        if profile:
            console.print(f"  Using profile: {profile}")

    # ── Load ─────────────────────────────────────────────────────
    echo("[blue]>[/blue] Loading input files …")
    table = _load_or_abort(input_files, out_dir, command, created_at, quiet)
    echo(f"  {len(table.rows)} rows x {len(table.headers)} columns")

    try:
        try:
            roles = infer_columns(
                table.headers,
                name_candidates=name_candidates,
                phone_candidates=phone_candidates,
                name_column=name_column,
                phone_column=phone_column,
            )
        except ValueError as exc:
            _abort(
                out_dir, input_files, command, created_at,
                message=str(exc), rows_in=len(table.rows),
            )
        echo(f"  Name column:  {_column_label(roles.name)}")
        echo(f"  Phone column: {_column_label(roles.phone)}")

        # ── Filter ───────────────────────────────────────────────
        echo("[blue]>[/blue] Filtering …")
        criteria = FilterCriteria(
            mode=tab.value,
            only_valid_phones=only_valid,
            name_query=name_query,
            phone_query=phone_query,
        )
        visible = filter_rows(table.rows, criteria, roles.phone, roles.name)
        report = summarize(
            table.rows, visible, roles, criteria, table.sources, table.warnings
        )

        report_path = write_filter_report(out_dir, report)
        echo(f"  Report   -> {report_path}")

        # ── Export ───────────────────────────────────────────────
        export_path: Path | None = None
        if not no_export:
            echo(f"[blue]>[/blue] Writing {export_name} …")
            export_path = write_export(
                out_dir / export_name,
                visible,
                table.headers,
                phone_column=roles.phone,
                highlight=highlight,
            )
            echo(f"  Export   -> {export_path}")

        manifest_path = _write_manifest(
            out_dir, input_files, command, created_at, report, output_path=export_path
        )
        echo(f"  Manifest -> {manifest_path}")

        if not quiet:
            for warning in report.warnings[len(table.warnings):]:
                console.print(f"  [yellow]![/yellow] {warning}")
            if preview:
                console.print(_preview_table(table.headers, visible, roles, preview))
            console.print(Panel(
                f"[green]Done[/green] — Total: {report.rows_in} • Showing: {report.rows_out}",
                title="Filter Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except Exception as exc:
        _abort(
            out_dir, input_files, command, created_at,
            message=f"Unexpected internal error: {exc}",
            rows_in=len(table.rows),
            error_code=1,
        )


# ── inspect command ──────────────────────────────────────────────


@app.command()
def inspect(
    input_files: list[Path] = typer.Option(
        ..., "--input", "-i",
        help="Spreadsheet to load (.xlsx, .xls, .csv). Repeat to concatenate files.",
        exists=True, readable=True, dir_okay=False,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for report + manifest.",
    ),
    profile: Path | None = typer.Option(
        None, "--profile",
        help="Profile file with extra header phrases (name=... / phone=... lines).",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes report + manifest.",
    ),
) -> None:
    """Show headers, inferred columns and phone validity without exporting.

    Writes filter_report.json + run_manifest.json only.
    """
    command = "inspect"
    created_at = utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)
    try:
        name_candidates, phone_candidates = _candidates(_load_profile(profile))
    except ValueError as exc:
        _abort(out_dir, input_files, command, created_at, message=str(exc))

    if not quiet:
        console.print(Panel(
            f"[bold]contact-sieve[/bold] v{__version__}  [dim]inspect mode[/dim]\n"
            f"Input: {', '.join(str(path) for path in input_files)}",
            title="Inspect", border_style="cyan",
        ))

    table = _load_or_abort(input_files, out_dir, command, created_at, quiet)

    try:
        roles = infer_columns(
            table.headers,
            name_candidates=name_candidates,
            phone_candidates=phone_candidates,
        )
        criteria = FilterCriteria(only_valid_phones=False)
        report = summarize(
            table.rows, table.rows, roles, criteria, table.sources, table.warnings
        )
        report_path = write_filter_report(out_dir, report)
        manifest_path = _write_manifest(out_dir, input_files, command, created_at, report)

        if not quiet:
            tbl = RichTable(title="Inspect Summary", show_lines=True)
            tbl.add_column("Check", style="bold")
            tbl.add_column("Result")

            tbl.add_row(
                "Files",
                Text(", ".join(f"{source.name} ({source.rows} rows)" for source in table.sources)),
            )
            tbl.add_row("Headers", Text(", ".join(table.headers)))
            tbl.add_row("Rows", str(report.rows_in))
            for role in ColumnRole:
                tbl.add_row(f"{role.value.capitalize()} column", _column_label(roles.get(role)))
            tbl.add_row("Valid phones", f"[green]{report.valid_phones}[/green]")
            tbl.add_row("Invalid phones", f"[red]{report.invalid_phones}[/red]")
            for warning in report.warnings:
                tbl.add_row("Warning", f"[yellow]{warning}[/yellow]")
            console.print(tbl)
            console.print(_carrier_table(report))
        console.print(f"  Report   -> {report_path}")
        console.print(f"  Manifest -> {manifest_path}")
    except typer.Exit:
        raise
    except Exception as exc:
        _abort(
            out_dir, input_files, command, created_at,
            message=f"Unexpected internal error: {exc}",
            rows_in=len(table.rows),
            error_code=1,
        )
