"""Display logic for check results."""

from rich.console import Console
from rich.table import Table

from .core import ChangeType
from .ops import CheckResult
from .utils import humanize_size


STATUS_LABELS = {
    ChangeType.UNCHANGED: "[green]✓[/green] unchanged",
    ChangeType.ADDED: "[green]+[/green] new",
    ChangeType.REMOVED: "[red]−[/red] removed",
    ChangeType.CHANGED: "[yellow]Δ[/yellow] checksum changed",
}


def display_check_result(result: CheckResult, console: Console, verbose: bool = False) -> None:
    """Print a summary of one check run.

    Args:
        result: Outcome of run_check
        console: Rich console for output
        verbose: Also list unchanged files in the table
    """
    diff = result.diff
    summary = diff.summary

    console.print(f"[bold]Root:[/bold] {result.root}")
    console.print(
        f"[bold]Scanned:[/bold] {result.scan.files_hashed} files, "
        f"{humanize_size(result.scan.bytes_hashed)}"
    )
    if result.first_run:
        console.print("[dim]No previous state for this root; recording a baseline[/dim]")

    rows = [c for c in diff.changes if verbose or c.change_type != ChangeType.UNCHANGED]
    if rows:
        table = Table(title="File Status")
        table.add_column("File", style="cyan")
        table.add_column("Status")
        table.add_column("Size", justify="right")
        table.add_column("Note", style="dim")

        for change in rows:
            entry = change.current or change.previous
            note = ""
            if change.change_type == ChangeType.CHANGED and not change.mtime_changed:
                note = "mtime unchanged"
            elif change.change_type == ChangeType.REMOVED and result.scan.was_skipped(change.path):
                note = "unreadable, baseline dropped"
            table.add_row(
                change.path,
                STATUS_LABELS[change.change_type],
                humanize_size(entry.size),
                note,
            )
        console.print(table)

    console.print(
        f"\n{summary[ChangeType.UNCHANGED]} unchanged, "
        f"{summary[ChangeType.ADDED]} new, "
        f"{summary[ChangeType.REMOVED]} removed, "
        f"{summary[ChangeType.CHANGED]} changed"
    )

    if result.scan.skipped:
        console.print(f"\n[yellow]⚠ {len(result.scan.skipped)} path(s) could not be read and were left out:[/yellow]")
        for path in result.scan.skipped[:10]:
            console.print(f"  [yellow]•[/yellow] {path}")
        if len(result.scan.skipped) > 10:
            console.print(f"  [dim]... and {len(result.scan.skipped) - 10} more[/dim]")

    if summary[ChangeType.CHANGED]:
        console.print(
            "\n[yellow]Files with changed checksums may have been edited or may be corrupted.[/yellow]"
        )
        console.print("[dim]Check each one against a backup if you did not modify it.[/dim]")

    if result.saved:
        console.print(f"[green]✓[/green] State saved to {result.state_path}")
    else:
        console.print("[dim]Dry run: state not saved[/dim]")
