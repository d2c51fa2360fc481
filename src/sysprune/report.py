"""Rich rendering of cleanup and prune reports."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .cleaners.base import AggregateReport, Status
from .errorsink import SinkEntry
from .pruner import PruneReport

_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB")

_STATUS_STYLE = {
    Status.CLEANED: "green",
    Status.PARTIAL: "yellow",
    Status.SKIPPED: "dim",
    Status.FAILED: "red",
}


def human_bytes(size: int) -> str:
    """Format a byte count with binary units, e.g. ``1.50 KiB``."""
    value = float(size)
    for unit in _UNITS:
        if value < 1024 or unit == _UNITS[-1]:
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.2f} {unit}"
        value /= 1024
    raise AssertionError("unreachable")


def render_cleanup(report: AggregateReport, console: Console) -> None:
    """Print one row per cleaner followed by the totals."""
    verb = "Would remove" if report.dry_run else "Removed"
    table = Table(title="Dry run: nothing was deleted" if report.dry_run else "Cleanup results")
    table.add_column("Cleaner", style="cyan")
    table.add_column("Status")
    table.add_column(verb, justify="right")
    table.add_column("Freed" if not report.dry_run else "Would free", justify="right")
    table.add_column("Missed", justify="right")
    table.add_column("Notes", style="dim")

    for result in report.results:
        status = result.status
        notes: list[str] = []
        if result.skip_reason is not None:
            notes.append(result.skip_reason.value)
        if result.failure is not None:
            notes.append(str(result.failure))
        if result.notified:
            notes.append(f"{len(result.notified)} files need manual approval")
        if result.rule_rejected:
            notes.append(f"{result.rule_rejected} kept by rules")
        if result.skipped:
            notes.append(f"{len(result.skipped)} unknown/skipped")
        if result.errors:
            notes.append(f"{len(result.errors)} errors")

        table.add_row(
            result.cleaner_name,
            f"[{_STATUS_STYLE[status]}]{status.value}[/{_STATUS_STYLE[status]}]",
            str(len(result.files_removed)),
            human_bytes(result.bytes_freed),
            str(len(result.failed_deletions) + len(result.skipped)),
            escape("; ".join(notes)),
        )

    console.print(table)
    console.print(
        f"{verb} a total of {len(report.files_removed)} files, freeing up {human_bytes(report.bytes_freed)}."
    )
    if report.missed_bytes:
        console.print(
            f"[yellow]Unable to remove some files, which would have freed up an additional "
            f"{human_bytes(report.missed_bytes)}.[/yellow]"
        )
    if report.cancelled:
        console.print("[yellow]Run was cancelled; unattempted files are listed as skipped.[/yellow]")


def render_prune(reports: Sequence[PruneReport], console: Console) -> None:
    """Print one row per pruned source."""
    dry_run = any(r.dry_run for r in reports)
    table = Table(title="Retention (dry run)" if dry_run else "Retention")
    table.add_column("Source", style="cyan")
    table.add_column("Examined", justify="right")
    table.add_column("Would remove" if dry_run else "Removed", justify="right")
    table.add_column("Freed", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Errors", justify="right", style="red")

    for report in reports:
        table.add_row(
            report.source_name,
            str(report.examined),
            str(len(report.removed)),
            human_bytes(report.bytes_freed),
            str(len(report.skipped)),
            str(len(report.errors)),
        )
    console.print(table)


def render_errors(entries: Sequence[SinkEntry], console: Console) -> None:
    """Print the drained error sink, grouped by origin."""
    if not entries:
        return
    table = Table(title=f"Errors ({len(entries)})")
    table.add_column("Origin", style="cyan")
    table.add_column("Error", style="red")
    for entry in sorted(entries, key=lambda e: e.origin):
        table.add_row(entry.origin, escape(str(entry.error)))
    console.print(table)
