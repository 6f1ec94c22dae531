"""Output formatters for the cvestore CLI.

This module provides formatting utilities for displaying query results,
statistics, and benchmark timings in various formats (table, JSON,
markdown) with rich console output. It decouples display logic from
command logic.
"""

import json
from typing import Any, Dict, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from cvestore.constants import sort_severities
from cvestore.models.record import VulnerabilityRecord
from cvestore.models.stats import BuildReport, Stats
from cvestore.services.benchmark import BenchmarkResult

console = Console()


class OutputFormat:
    """Output format constants."""

    JSON = "json"
    TABLE = "table"
    MARKDOWN = "markdown"

    ALL = (JSON, TABLE, MARKDOWN)


def get_severity_color(score: Optional[float]) -> str:
    """Get the Rich color for a severity score.

    Args:
        score: CVSS score (0-10).

    Returns:
        Color name for Rich formatting.
    """
    if score is None:
        return "dim"
    if score >= 9.0:
        return "red bold"
    if score >= 7.0:
        return "red"
    if score >= 4.0:
        return "yellow"
    return "green"


def format_score(score: Optional[float]) -> str:
    if score is None:
        return "-"
    return f"{score:.1f}"


def _cell(value: Any) -> str:
    """Render a record field as literal text, or a dash when missing."""
    if value is None or value == "":
        return "-"
    return escape(str(value))


def _emit(content: str, output_file: Optional[str]) -> None:
    if output_file:
        with open(output_file, "w") as f:
            f.write(content)
        console.print(f"[green]Output written to {output_file}[/green]")
    else:
        print(content)


def output_records(
    records: Sequence[VulnerabilityRecord],
    format: str = OutputFormat.TABLE,
    limit: int = 100,
    output_file: Optional[str] = None,
) -> None:
    """Output a list of records in the specified format.

    Args:
        records: Records to display.
        format: Output format (json, table, markdown).
        limit: Maximum number of records to show.
        output_file: Optional file path; table output is written as JSON.
    """
    total = len(records)
    shown = records[:limit]

    if format == OutputFormat.JSON or (output_file and format == OutputFormat.TABLE):
        payload = {
            "count": total,
            "showing": len(shown),
            "results": [record.to_dict() for record in shown],
        }
        _emit(json.dumps(payload, indent=2), output_file)
        return

    if format == OutputFormat.MARKDOWN:
        lines = [
            f"## Results ({total} found, showing {len(shown)})\n",
            "| ID | Severity | Score | Vendor | Product | Published |",
            "|---|---|---|---|---|---|",
        ]
        for record in shown:
            lines.append(
                f"| {record.id} | {record.severity or '-'} "
                f"| {format_score(record.numeric_score)} | {record.vendor or '-'} "
                f"| {record.product or '-'} | {record.published_date or '-'} |"
            )
        _emit("\n".join(lines), output_file)
        return

    if total == 0:
        console.print("[yellow]No matching records.[/yellow]")
        return

    table = Table(title=f"Vulnerabilities ({total} found, showing {len(shown)})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Score", justify="right")
    table.add_column("Vendor")
    table.add_column("Product")
    table.add_column("Status")
    table.add_column("Published")
    for record in shown:
        score = record.numeric_score
        table.add_row(
            _cell(record.id),
            _cell(record.severity),
            f"[{get_severity_color(score)}]{format_score(score)}[/]",
            _cell(record.vendor),
            _cell(record.product),
            _cell(record.status),
            _cell(str(record.published_date or "")[:10]),
        )
    console.print(table)


def output_record_detail(
    record: VulnerabilityRecord,
    format: str = OutputFormat.TABLE,
    output_file: Optional[str] = None,
) -> None:
    """Output a single record in detail."""
    if format == OutputFormat.JSON or (output_file and format == OutputFormat.TABLE):
        _emit(json.dumps(record.to_dict(), indent=2), output_file)
        return

    if format == OutputFormat.MARKDOWN:
        lines = [
            f"# {record.id}\n",
            f"**Severity:** {record.severity or '-'}",
            f"**Score:** {format_score(record.numeric_score)}",
            f"**Status:** {record.status or '-'}",
            f"**Vendor:** {record.vendor or '-'}",
            f"**Product:** {record.product or '-'}",
            f"**Type:** {record.vulnerability_type or '-'}",
            f"**Weakness:** {record.weakness_id or '-'}",
            f"**Published:** {record.published_date or '-'}",
            f"**Last Modified:** {record.last_modified_date or '-'}",
        ]
        if record.summary:
            lines.append(f"\n## Summary\n\n{record.summary}")
        if record.references:
            lines.append("\n## References\n")
            lines.extend(f"- {ref}" for ref in record.references)
        _emit("\n".join(lines), output_file)
        return

    score = record.numeric_score
    body = (
        f"[bold]Severity:[/bold] {_cell(record.severity)}\n"
        f"[bold]Score:[/bold] [{get_severity_color(score)}]{format_score(score)}[/]\n"
        f"[bold]Status:[/bold] {_cell(record.status)}\n"
        f"[bold]Vendor:[/bold] {_cell(record.vendor)}\n"
        f"[bold]Product:[/bold] {_cell(record.product)}\n"
        f"[bold]Type:[/bold] {_cell(record.vulnerability_type)}\n"
        f"[bold]Weakness:[/bold] {_cell(record.weakness_id)}\n"
        f"[bold]Published:[/bold] {_cell(record.published_date)}\n"
        f"[bold]Last Modified:[/bold] {_cell(record.last_modified_date)}"
    )
    if record.summary:
        body += f"\n\n{escape(str(record.summary))}"
    console.print(Panel(body, title=_cell(record.id)))
    if record.references:
        console.print("[bold]References:[/bold]")
        for ref in record.references:
            console.print(f"  {escape(ref)}")


def output_stats(
    stats: Stats,
    report: Optional[BuildReport] = None,
    format: str = OutputFormat.TABLE,
    output_file: Optional[str] = None,
    comparison: Optional[Dict[str, int]] = None,
) -> None:
    """Output dataset statistics.

    The build report and the analysis-mode comparison are included when given.
    """
    if format == OutputFormat.JSON or (output_file and format == OutputFormat.TABLE):
        payload: dict[str, Any] = stats.to_dict()
        if report is not None:
            payload["buildReport"] = report.to_dict()
        if comparison is not None:
            payload["analysisComparison"] = dict(comparison)
        _emit(json.dumps(payload, indent=2), output_file)
        return

    severities = sort_severities(stats.severity_distribution)

    if format == OutputFormat.MARKDOWN:
        lines = ["# Vulnerability Statistics\n", f"**Total:** {stats.total_count}\n"]
        if report is not None:
            lines.append(
                f"**Skipped (malformed):** {report.skipped_malformed}  \n"
                f"**Duplicates resolved:** {report.duplicates_resolved}\n"
            )
        if comparison is not None:
            lines.append(
                f"**Kept by manual analysis:** {comparison['manual']}  \n"
                f"**Kept by AI analysis:** {comparison['ai']}  \n"
                f"**Kept by both:** {comparison['both']}\n"
            )
        lines.append("## By Severity\n")
        for severity in severities:
            lines.append(f"- {severity}: {stats.severity_distribution[severity]}")
        lines.append("\n## Top Vendors\n")
        for vendor, count in stats.vendor_distribution.items():
            lines.append(f"- {vendor}: {count}")
        lines.append("\n## Timeline\n")
        for point in stats.timeline_data:
            lines.append(f"- {point.period_key}: {point.count}")
        _emit("\n".join(lines), output_file)
        return

    summary = f"[bold]Total records:[/bold] {stats.total_count}"
    if report is not None:
        summary += (
            f"\n[bold]Skipped (malformed):[/bold] {report.skipped_malformed}"
            f"\n[bold]Duplicates resolved:[/bold] {report.duplicates_resolved}"
        )
    if comparison is not None:
        summary += (
            f"\n[bold]Kept by manual analysis:[/bold] {comparison['manual']}"
            f"\n[bold]Kept by AI analysis:[/bold] {comparison['ai']}"
            f"\n[bold]Kept by both:[/bold] {comparison['both']}"
        )
    console.print(Panel(summary, title="Vulnerability Statistics"))

    if severities:
        table = Table(title="By Severity")
        table.add_column("Severity")
        table.add_column("Count", justify="right")
        for severity in severities:
            table.add_row(_cell(severity), str(stats.severity_distribution[severity]))
        console.print(table)

    if stats.vendor_distribution:
        table = Table(title="Top Vendors")
        table.add_column("Vendor")
        table.add_column("Count", justify="right")
        for vendor, count in stats.vendor_distribution.items():
            table.add_row(_cell(vendor), str(count))
        console.print(table)

    if stats.timeline_data:
        table = Table(title="Timeline")
        table.add_column("Period")
        table.add_column("Count", justify="right")
        for point in stats.timeline_data:
            table.add_row(point.period_key, str(point.count))
        console.print(table)


def output_values(
    field: str, values: Sequence[str], format: str = OutputFormat.TABLE
) -> None:
    """Output the distinct values of one field."""
    if format == OutputFormat.JSON:
        print(json.dumps({"field": field, "values": list(values)}, indent=2))
        return
    if format == OutputFormat.MARKDOWN:
        print("\n".join([f"## {field}\n"] + [f"- {v}" for v in values]))
        return
    table = Table(title=f"Values of {field} ({len(values)})")
    table.add_column("Value")
    for value in values:
        table.add_row(_cell(value))
    console.print(table)


def output_benchmark(
    results: Sequence[BenchmarkResult],
    analysis: dict,
    format: str = OutputFormat.TABLE,
) -> None:
    """Output benchmark timings and the per-operation improvement."""
    if format == OutputFormat.JSON:
        payload = {
            "results": [r.to_dict() for r in results],
            "analysis": analysis,
        }
        print(json.dumps(payload, indent=2))
        return

    table = Table(title="Scan vs Indexed")
    table.add_column("Operation")
    table.add_column("Scan (ms)", justify="right")
    table.add_column("Indexed (ms)", justify="right")
    table.add_column("Improvement", justify="right")
    for detail in analysis["details"]:
        improvement = detail["improvement"]
        color = "green" if improvement > 0 else "red"
        table.add_row(
            detail["operation"],
            f"{detail['scan_time'] * 1000:.2f}",
            f"{detail['indexed_time'] * 1000:.2f}",
            f"[{color}]{improvement:.1f}%[/{color}]",
        )
    console.print(table)
    if analysis["best_operation"]:
        console.print(
            f"Average improvement: {analysis['average_improvement']:.1f}% "
            f"(best: {analysis['best_operation']})"
        )
