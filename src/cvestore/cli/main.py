"""CLI for the cvestore query engine.

Every command reads a JSON file holding an array of canonical vulnerability
records, builds an engine from it, and answers one request.

Usage:
    cvestore stats <file>                 Show dataset statistics
    cvestore query <file> [filters]       Filter records
    cvestore get <file> <id>              Show one record
    cvestore values <file> <field>        List distinct values of a field
    cvestore bench [file] --size N        Compare indexed and scan timings
"""

import calendar
import json
import logging
import re
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from cvestore.cli.formatters import (
    OutputFormat,
    output_benchmark,
    output_record_detail,
    output_records,
    output_stats,
    output_values,
)
from cvestore.constants import AnalysisMode, TimeGrouping
from cvestore.core.config import Config
from cvestore.models.query_filters import (
    CategoricalField,
    DateRange,
    FilterSpec,
    ScoreRange,
)
from cvestore.models.record import VulnerabilityRecord
from cvestore.services.benchmark import analyze_results, generate_dataset, run_benchmark
from cvestore.services.handle import EngineHandle
from cvestore.services.stats import analysis_comparison

logger = logging.getLogger(__name__)


def normalize_date(date_str: str) -> str:
    """Normalize partial date inputs to full YYYY-MM-DD format.

    Args:
        date_str: Date string in format YYYY, YYYY-MM, or YYYY-MM-DD

    Returns:
        Full date string in YYYY-MM-DD format

    Examples:
        "2024" -> "2024-01-01"
        "2024-06" -> "2024-06-01"
        "2024-06-15" -> "2024-06-15"
    """
    date_str = date_str.strip()

    if re.match(r"^\d{4}$", date_str):
        return f"{date_str}-01-01"

    if re.match(r"^\d{4}-\d{2}$", date_str):
        return f"{date_str}-01"

    # Already full date or invalid - return as-is (validated by DateRange)
    return date_str


def normalize_end_date(date_str: str) -> str:
    """Normalize partial date inputs to the last day they cover.

    Examples:
        "2024" -> "2024-12-31"
        "2024-02" -> "2024-02-29"
        "2024-06-15" -> "2024-06-15"
    """
    date_str = date_str.strip()

    if re.match(r"^\d{4}$", date_str):
        return f"{date_str}-12-31"

    if re.match(r"^\d{4}-\d{2}$", date_str):
        year, month = int(date_str[:4]), int(date_str[5:])
        if 1 <= month <= 12:
            return f"{date_str}-{calendar.monthrange(year, month)[1]:02d}"

    return date_str


app = typer.Typer(
    name="cvestore",
    help="Indexed query engine for vulnerability datasets",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging"
    ),
) -> None:
    """Configure logging for all commands."""
    config = Config()
    level = logging.DEBUG if verbose else config.log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _check_format(format: str) -> None:
    if format not in OutputFormat.ALL:
        console.print(
            f"[red]Invalid format: {format}. Must be: table, json, markdown[/red]"
        )
        raise typer.Exit(1)


def read_records(path: Path) -> List[VulnerabilityRecord]:
    """Read canonical records from a JSON array file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a JSON array of objects.
    """
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, list):
        raise ValueError(
            f"Expected a JSON array of records in {path}, got {type(data).__name__}"
        )
    return [
        VulnerabilityRecord.from_dict(item) if isinstance(item, dict) else item
        for item in data
    ]


def _load_handle(path: Path) -> EngineHandle:
    handle = EngineHandle(Config())
    try:
        records = read_records(path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    report = handle.load(records)
    logger.debug("Loaded %d records from %s", report.accepted, path)
    if report.skipped_malformed:
        console.print(
            f"[yellow]Skipped {report.skipped_malformed} record(s) without an id[/yellow]"
        )
    return handle


@app.command()
def stats(
    file: Path = typer.Argument(..., help="JSON file with vulnerability records"),
    group_by: Optional[str] = typer.Option(
        None, "--group-by", "-g", help="Timeline bucket: day, month, year"
    ),
    top: Optional[int] = typer.Option(
        None, "--top", "-t", help="Number of vendors to show (0 for all)"
    ),
    format: str = typer.Option(
        "table", "--format", "-f", help="Output format: table, json, markdown"
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write output to file"
    ),
) -> None:
    """Show dataset statistics."""
    _check_format(format)
    grouping = None
    if group_by:
        try:
            grouping = TimeGrouping(group_by)
        except ValueError:
            console.print(
                f"[red]Invalid grouping: {group_by}. Must be: day, month, year[/red]"
            )
            raise typer.Exit(1)

    handle = _load_handle(file)
    statistics = handle.generate_stats(grouping=grouping, top_vendors=top)
    report = handle.engine.build_report if handle.engine else None
    output_stats(
        statistics,
        report=report,
        format=format,
        output_file=output,
        comparison=analysis_comparison(handle.get_all()),
    )


@app.command()
def query(
    file: Path = typer.Argument(..., help="JSON file with vulnerability records"),
    severity: Optional[List[str]] = typer.Option(
        None, "--severity", "-s", help="Severity value (repeatable)"
    ),
    status: Optional[List[str]] = typer.Option(
        None, "--status", help="Status value (repeatable)"
    ),
    vendor: Optional[List[str]] = typer.Option(
        None, "--vendor", "-V", help="Vendor value (repeatable)"
    ),
    product: Optional[List[str]] = typer.Option(
        None, "--product", "-p", help="Product value (repeatable)"
    ),
    vuln_type: Optional[List[str]] = typer.Option(
        None, "--type", help="Vulnerability type (repeatable)"
    ),
    after: Optional[str] = typer.Option(
        None, "--after", help="Published on or after (YYYY, YYYY-MM, or YYYY-MM-DD)"
    ),
    before: Optional[str] = typer.Option(
        None, "--before", help="Published on or before (YYYY, YYYY-MM, or YYYY-MM-DD)"
    ),
    min_score: Optional[float] = typer.Option(
        None, "--min-score", help="Minimum CVSS score (inclusive)"
    ),
    max_score: Optional[float] = typer.Option(
        None, "--max-score", help="Maximum CVSS score (inclusive)"
    ),
    mode: str = typer.Option(
        "none", "--mode", "-M", help="Analysis mode: none, analysis, ai_analysis"
    ),
    stats_only: bool = typer.Option(
        False, "--stats", help="Show statistics of the matches instead of the list"
    ),
    limit: int = typer.Option(
        100, "--limit", "-n", help="Maximum number of results to show"
    ),
    format: str = typer.Option(
        "table", "--format", "-f", help="Output format: table, json, markdown"
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write output to file"
    ),
) -> None:
    """Filter records by any combination of fields.

    Values within one option are ORed; different options are ANDed.

    Examples:
        cvestore query data.json -s HIGH -s CRITICAL --min-score 7
        cvestore query data.json -V apache --after 2021-06
        cvestore query data.json --mode analysis --stats
    """
    _check_format(format)
    try:
        spec = FilterSpec(
            severity=severity,
            status=status,
            vendor=vendor,
            product=product,
            vulnerability_type=vuln_type,
            date_range=DateRange(
                start=normalize_date(after) if after else None,
                end=normalize_end_date(before) if before else None,
            ),
            score_range=ScoreRange(min=min_score, max=max_score),
            analysis_mode=AnalysisMode(mode),
        )
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    handle = _load_handle(file)
    results = handle.query(spec)

    if stats_only:
        output_stats(handle.generate_stats(results), format=format, output_file=output)
        return
    output_records(results, format=format, limit=limit, output_file=output)


@app.command()
def get(
    file: Path = typer.Argument(..., help="JSON file with vulnerability records"),
    record_id: str = typer.Argument(..., help="Vulnerability identifier"),
    format: str = typer.Option(
        "table", "--format", "-f", help="Output format: table, json, markdown"
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Write output to file"
    ),
) -> None:
    """Get details for a specific record."""
    _check_format(format)
    handle = _load_handle(file)
    record = handle.get_by_id(record_id.strip())
    if record is None:
        console.print(f"[red]Record not found: {record_id}[/red]")
        raise typer.Exit(1)
    output_record_detail(record, format=format, output_file=output)


@app.command()
def values(
    file: Path = typer.Argument(..., help="JSON file with vulnerability records"),
    field: str = typer.Argument(
        ...,
        help="Field: severity, status, vendor, product, vulnerability_type",
    ),
    format: str = typer.Option(
        "table", "--format", "-f", help="Output format: table, json, markdown"
    ),
) -> None:
    """List the distinct values of a categorical field."""
    _check_format(format)
    try:
        dimension = CategoricalField(field)
    except ValueError:
        names = ", ".join(d.value for d in CategoricalField)
        console.print(f"[red]Invalid field: {field}. Must be one of: {names}[/red]")
        raise typer.Exit(1)

    handle = _load_handle(file)
    output_values(field, handle.unique_values(dimension), format=format)


@app.command()
def bench(
    file: Optional[Path] = typer.Argument(
        None, help="JSON file with records (omit to use synthetic data)"
    ),
    size: int = typer.Option(
        10000, "--size", "-n", help="Synthetic dataset size when no file is given"
    ),
    seed: Optional[int] = typer.Option(
        None, "--seed", help="Random seed for synthetic data"
    ),
    format: str = typer.Option(
        "table", "--format", "-f", help="Output format: table, json"
    ),
) -> None:
    """Compare the indexed engine against a linear scan."""
    _check_format(format)
    if file is not None:
        try:
            records = read_records(file)
        except (FileNotFoundError, ValueError) as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
    else:
        if size <= 0:
            console.print("[red]Error: --size must be positive.[/red]")
            raise typer.Exit(1)
        records = generate_dataset(size, seed=seed)

    try:
        results = run_benchmark(records)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    output_benchmark(results, analyze_results(results), format=format)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
