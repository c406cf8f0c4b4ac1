"""Rich terminal renderer for diffs and reference listings."""

from __future__ import annotations

from typing import Iterable, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from differ.git.models import DiffFile, DiffResult, FileStatus, LineType, Reference
from differ.review.viewed import ViewedTracker

_STATUS_STYLE = {
    FileStatus.ADDED: "bold green",
    FileStatus.MODIFIED: "bold yellow",
    FileStatus.DELETED: "bold red",
    FileStatus.RENAMED: "bold cyan",
}

_LINE_STYLE = {
    LineType.ADD: "green",
    LineType.DELETE: "red",
    LineType.CONTEXT: "",
}

_LINE_MARKER = {
    LineType.ADD: "+",
    LineType.DELETE: "-",
    LineType.CONTEXT: " ",
}


def _status_pill(status: FileStatus) -> Text:
    return Text(f" {status.value.upper()} ", style=_STATUS_STYLE.get(status, ""))


def _num(value: Optional[int]) -> str:
    return str(value) if value is not None else ""


def render_references(refs: Iterable[Reference], console: Optional[Console] = None) -> None:
    """Print branches and tags as a table."""
    console = console or Console()
    table = Table(title="References", title_style="bold", border_style="dim")
    table.add_column("Kind", style="magenta")
    table.add_column("Name", style="cyan")
    for ref in refs:
        table.add_row(ref.kind.value, ref.name)
    console.print(table)


def render_file(
    diff_file: DiffFile,
    console: Console,
    *,
    viewed: Optional[ViewedTracker] = None,
) -> None:
    header = Text.assemble(_status_pill(diff_file.status), " ", (diff_file.path, "bold magenta"))
    if diff_file.old_path:
        header.append(f"  (from {diff_file.old_path})", style="dim")
    if viewed is not None and viewed.is_viewed(diff_file):
        header.append("  ✓ viewed", style="green")
    console.print()
    console.print(header)

    if not diff_file.hunks:
        console.print("  [dim]no textual changes[/dim]")
        return

    for hunk in diff_file.hunks:
        console.print(
            f"[cyan]@@ -{hunk.old_start},{hunk.old_lines} "
            f"+{hunk.new_start},{hunk.new_lines} @@[/cyan]"
        )
        for line in hunk.lines:
            row = Text(f"{_num(line.old_num):>5} {_num(line.new_num):>5} ", style="dim")
            row.append(
                _LINE_MARKER[line.line_type] + line.content,
                style=_LINE_STYLE[line.line_type],
            )
            console.print(row, soft_wrap=True)


def render(
    result: DiffResult,
    console: Optional[Console] = None,
    *,
    show_summary: bool = True,
    viewed: Optional[ViewedTracker] = None,
) -> None:
    """Print a DiffResult to the terminal using Rich."""
    console = console or Console()

    if not result.files:
        console.print()
        console.print(
            f"[bold green]No differences between {result.base_ref} and {result.compare_ref}.[/bold green]"
        )
        return

    for diff_file in result.files:
        render_file(diff_file, console, viewed=viewed)

    if show_summary:
        _print_summary(console, result, viewed)


def _print_summary(console: Console, result: DiffResult, viewed: Optional[ViewedTracker]) -> None:
    added = sum(1 for f in result.files for line in f.iter_lines() if line.line_type == LineType.ADD)
    deleted = sum(1 for f in result.files for line in f.iter_lines() if line.line_type == LineType.DELETE)
    console.print()
    console.print(f"[dim]Compared:[/dim]   {result.base_ref} → {result.compare_ref}")
    console.print(f"[dim]Files:[/dim]      {len(result.files)}")
    console.print(f"[dim]Lines:[/dim]      [green]+{added}[/green] [red]-{deleted}[/red]")
    if viewed is not None:
        seen, total = viewed.counts(result.files)
        console.print(f"[dim]Viewed:[/dim]     {seen}/{total}")
