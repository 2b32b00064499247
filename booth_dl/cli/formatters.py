"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from booth_dl.core.download_manager import RunStatus, SessionReport
from booth_dl.models.config import BatchPolicy
from booth_dl.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Check the values in your configuration file.",
            "• Run `booth-dl config` to display the current settings.",
            "• Delete the file to fall back to the defaults.",
        ],
        "ArchiveBuildError": [
            "• The files were downloaded but could not be packaged.",
            "• Make sure enough memory is available for the archive.",
            "• Try again with fewer files per order.",
        ],
        "OutputError": [
            "• Check that the output directory exists and is writable.",
            "• Make sure there is enough free disk space.",
        ],
        "ClientResponseError": [
            "• A network connection issue occurred.",
            "• The server might be temporarily unavailable.",
            "• Please try again in a few minutes.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the stored settings."""
    console = Console()
    content = "\n".join(f"{key} = {value}" for key, value in config_data.items())
    console.print(
        Panel(
            content,
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_policy_table(policy: BatchPolicy):
    """Displays a summary of the effective scheduling settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    if policy.rate_limited:
        table.add_row("Mode:", "[yellow]Rate limited[/yellow]")
        table.add_row("Files per Batch:", str(policy.max_parallel))
        table.add_row(
            "Delay Between Batches:", f"{policy.inter_batch_delay_ms} ms"
        )
    else:
        table.add_row("Mode:", "[green]All files in parallel[/green]")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Download Settings[/bold green]",
            border_style="green",
        )
    )


def print_summary_panel(report: SessionReport):
    """Displays the final summary of the download session."""
    console = Console()
    result = report.result

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row(
        "✓ Downloaded:",
        f"[bold green]{result.success_count}[/bold green]/{result.total_count}",
    )
    if result.failure_count > 0:
        stats_table.add_row(
            "✗ Failed:", f"[bold red]{result.failure_count}[/bold red]"
        )

    stats_table.add_row("", "")  # Spacer
    stats_table.add_row("Total Size:", f"[cyan]{format_size(result.total_size)}[/cyan]")
    if report.archive_size:
        stats_table.add_row(
            "Archive Size:", f"[cyan]{format_size(report.archive_size)}[/cyan]"
        )
    if report.archive_path:
        stats_table.add_row("Saved To:", f"[dim]{report.archive_path}[/dim]")
    stats_table.add_row(
        "Time Elapsed:", f"[blue]{format_duration(report.duration_s)}[/blue]"
    )

    if report.status is RunStatus.COMPLETE:
        title, border_color = "📦 [bold]Download Complete![/bold]", "green"
    elif report.status is RunStatus.PARTIAL:
        title, border_color = "📦 [bold]Download Partially Complete[/bold]", "yellow"
    else:
        title, border_color = "✗ [bold]Nothing Packaged[/bold]", "red"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()


def print_failures(report: SessionReport):
    """Lists every locator that could not be fetched."""
    if not report.result.failures:
        return
    console = Console()
    table = Table(title="Failed Downloads", box=box.ROUNDED)
    table.add_column("URL", style="dim", overflow="fold")
    table.add_column("Cause", style="red")
    for failure in report.result.failures:
        table.add_row(failure.locator, failure.cause)
    console.print(table)
