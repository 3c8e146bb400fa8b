"""Rich terminal rendering for diff results and dead-code reports."""

from __future__ import annotations

from typing import Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import CHANGE_KINDS, DeadCodeReport, DiffResult, SemanticChange

_KIND_STYLES: Dict[str, str] = {
    "add": "green",
    "remove": "red",
    "rename": "magenta",
    "modify": "yellow",
    "move": "cyan",
    "reorder": "blue",
}


def _location(change: SemanticChange) -> str:
    old = str(change.old_location) if change.old_location else ""
    new = str(change.new_location) if change.new_location else ""
    if old and new and old != new:
        return f"{old} → {new}"
    return new or old


def _detail(change: SemanticChange) -> str:
    """Rich markup for the details column; source text is escaped."""
    if change.kind == "rename":
        return f"{escape(change.old_identity or '?')} → {escape(change.new_identity or '?')}"
    if change.kind == "modify":
        return f"{escape(change.old_value or '')}\n[dim]→[/dim] {escape(change.new_value or '')}"
    return ""


def format_summary(summary: Dict[str, int]) -> str:
    """One-line tally such as ``2 add, 1 rename``, in fixed kind order."""
    parts = [f"{summary[kind]} {kind}" for kind in CHANGE_KINDS if summary.get(kind)]
    return ", ".join(parts) if parts else "no changes"


def render_diff(result: DiffResult, console: Optional[Console] = None, title: str = "Semantic Diff") -> None:
    """Print a diff result as a table followed by its summary."""
    console = console or Console()
    if not result.has_changes:
        console.print("[green]✓[/green] No semantic changes")
        return

    table = Table(title=title, show_header=True, show_lines=False)
    table.add_column("Change", width=8)
    table.add_column("Type", style="cyan")
    table.add_column("Path")
    table.add_column("Location", style="dim")
    table.add_column("Details", min_width=30)

    for change in result.changes:
        style = _KIND_STYLES.get(change.kind, "white")
        table.add_row(
            f"[{style}]{change.kind}[/{style}]",
            change.node_type,
            escape(change.path),
            _location(change),
            _detail(change),
        )

    console.print(table)
    console.print(f"[bold]Summary:[/bold] {format_summary(result.summary)}")


def render_dead_code(report: DeadCodeReport, console: Optional[Console] = None) -> None:
    """Print the unused definitions of a dead-code report, then its statistics."""
    console = console or Console()
    if not report.unused:
        console.print(f"[green]✓[/green] No unused definitions found ({report.language})")
    else:
        table = Table(title=f"Potentially Unused Definitions ({report.language})", show_header=True)
        table.add_column("Name", style="bold")
        table.add_column("Type", style="cyan")
        table.add_column("File")
        table.add_column("Lines", justify="right")
        table.add_column("Reason", style="dim")

        for item in report.unused:
            lines = f"{item.start_line}-{item.end_line}" if item.end_line != item.start_line else str(item.start_line)
            table.add_row(
                escape(item.identifier),
                item.node_type,
                escape(item.source_file or "-"),
                lines,
                item.reason,
            )
        console.print(table)

    console.print(
        f"[bold]Definitions:[/bold] {report.definition_count}  "
        f"[bold]Called names:[/bold] {report.call_site_count}  "
        f"[bold]Unused:[/bold] {report.unused_count}"
    )
