"""Console rendering helpers for the dam-upload CLI."""
from __future__ import annotations

from typing import Any, Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .models import UploadOutcome

console = Console()
error_console = Console(stderr=True)


def render_configuration_summary(config: Dict[str, Any], out: Optional[Console] = None) -> None:
    """Render startup configuration summary."""
    out = out or console
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title="[bold green]dam-upload[/bold green]",
        subtitle="[dim]asset uploader[/dim]",
        border_style="blue",
    )
    out.print(panel)


def render_upload_summary(outcome: UploadOutcome, max_errors: int = 20, out: Optional[Console] = None) -> None:
    """Print a human-readable summary of a split-and-fallback upload."""
    out = out or console
    errors = outcome.errors

    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column()
    table.add_row("Status", "[green]Success[/green]" if outcome.ok else "[red]Failed[/red]")
    table.add_row("Tree uploads", str(len(outcome.tree_upload_results)))
    table.add_row("Fallback batches", str(len(outcome.batch_upload_results)))
    table.add_row("Uploaded files", f"[green]{outcome.files_uploaded}[/green]")
    if outcome.files_failed:
        table.add_row("Failed files", f"[red]{outcome.files_failed}[/red]")
    if errors:
        table.add_row("Errors collected", f"[red]{len(errors)}[/red]")

    out.print(Panel(table, title="[bold]Upload Summary[/bold]", border_style="green" if outcome.ok else "red"))

    if not errors:
        return

    shown = errors[:max_errors]
    out.print(f"[yellow]--- First {len(shown)} error(s) ---[/yellow]")
    for idx, error in enumerate(shown, 1):
        out.print(f"[red]{idx}. \\[{error.type}] {escape(str(error.path))}: {escape(error.message)}[/red]", highlight=False)
    if len(errors) > max_errors:
        out.print(f"[yellow]...and {len(errors) - max_errors} more error(s)[/yellow]")


def print_error(message: str) -> None:
    error_console.print(f"[bold red]ERROR:[/bold red] {escape(message)}", highlight=False)
