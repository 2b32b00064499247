"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import sys
from pathlib import Path

import aiofiles.os
import typer
from rich.console import Console
from rich.logging import RichHandler

from booth_dl import __version__
from booth_dl.core.download_manager import DownloadManager, RunStatus, SessionReport
from booth_dl.exceptions import ArchiveBuildError, BoothDlError, OutputError
from booth_dl.fetch.fetcher import Fetcher, close_connection_pool
from booth_dl.sources.order_page import read_order_page
from booth_dl.storage.config_manager import ConfigManager
from booth_dl.utils.locators import expand_sources
from booth_dl.utils.path import get_config_dir, sanitize_label
from booth_dl.utils.structured_logger import create_structured_logger

from .formatters import (
    print_config,
    print_failures,
    print_policy_table,
    print_summary_panel,
)
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="WARNING",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("booth_dl")
log.setLevel("INFO")

app = typer.Typer(
    name="booth-dl",
    help=(
        "Download every file of a BOOTH order concurrently and pack them into a"
        " single ZIP archive. Use 'booth-dl <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)

CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """BOOTH order downloader"""
    if version:
        console.print(f"[bold]booth-dl[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    log.setLevel(log_level)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _read_urls_from_stdin() -> list[str]:
    """Reads URLs from stdin, one per line."""
    if sys.stdin.isatty():
        console.print(
            "[yellow]⚠️  No input detected on stdin. Please pipe URLs or redirect"
            " a file.[/yellow]"
        )
        raise typer.Exit(code=1)

    urls = [
        line.strip()
        for line in sys.stdin
        if line.strip() and not line.strip().startswith("#")
    ]
    console.print(f"[dim]Read {len(urls)} URLs from stdin.[/dim]")
    return urls


async def prepare_output_dir(output_dir: Path) -> None:
    """
    Creates the directory the archive is written into.

    Raises:
        OutputError: If the directory cannot be created.
    """
    try:
        await aiofiles.os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise OutputError(f"Could not create '{output_dir}': {e}") from e


@app.command(name="download")
def download_command(
    urls: list[str] | None = typer.Argument(  # noqa: B008
        None, help="One or more download URLs or paths to files containing URLs."
    ),
    page: Path | None = typer.Option(  # noqa: B008
        None,
        "--page",
        "-p",
        help="A saved BOOTH order page (HTML) to take the download links from.",
        exists=True,
        dir_okay=False,
    ),
    stdin: bool = typer.Option(
        False, "--stdin", help="Read URLs from standard input, one URL per line."
    ),
    name: str | None = typer.Option(
        None, "--name", "-n", help="Archive name (defaults to the product title)."
    ),
    output_dir: Path = typer.Option(  # noqa: B008
        Path("."), "--output", "-o", help="Directory to save the ZIP archive in."
    ),
    rate_limited: bool | None = typer.Option(
        None,
        "--rate-limit/--no-rate-limit",
        help="Download in batches with a pause in between.",
    ),
    max_parallel: int | None = typer.Option(
        None, "--max-parallel", "-w", help="Files per batch when rate limited (1-20)."
    ),
    delay_ms: int | None = typer.Option(
        None, "--delay", help="Pause between batches in milliseconds (0-99999)."
    ),
    retries: int = typer.Option(
        0, "--retries", help="Retry a file this many times after a network error."
    ),
    cookie: str | None = typer.Option(
        None, "--cookie", help="Cookie header to send, for logged-in downloads."
    ),
    log_dir: Path | None = typer.Option(  # noqa: B008
        None, "--log-dir", help="Write a JSON-lines diagnostic log to this directory."
    ),
):
    """Download files and pack them into a single ZIP archive."""
    sources: list[str] = []
    product_name = None
    if page:
        order_page = read_order_page(page)
        sources.extend(order_page.locators)
        product_name = order_page.product_name
    if stdin:
        sources.extend(_read_urls_from_stdin())
    if urls:
        sources.extend(expand_sources(urls))

    config_manager = ConfigManager(CONFIG_FILE)
    policy = config_manager.load_policy(
        {
            "rate_limited": rate_limited,
            "max_parallel": max_parallel,
            "inter_batch_delay_ms": delay_ms,
        }
    )
    label = sanitize_label(name or product_name)

    async def _download_async() -> SessionReport:
        await prepare_output_dir(output_dir)
        base_logger, download_logger, session_logger = create_structured_logger(
            log_dir, enable_json=log_dir is not None
        )
        fetcher = Fetcher(max_attempts=retries + 1, cookie=cookie)
        manager = DownloadManager(
            policy,
            fetcher.fetch,
            label=label,
            download_logger=download_logger,
            session_logger=session_logger,
        )
        base_logger.set_session_context(archive=manager.archive_name)
        with base_logger:
            try:
                async with ProgressManager(
                    console=console, rate_limited=policy.rate_limited
                ) as progress_manager:
                    return await manager.execute(
                        sources,
                        progress_manager.on_progress,
                        destination=output_dir / manager.archive_name,
                    )
            finally:
                await close_connection_pool()

    try:
        report = asyncio.run(_download_async())
    except ArchiveBuildError as e:
        console.print(
            f"[bold red]Downloaded {e.success_count} files but failed to package"
            f" them: {e}[/bold red]"
        )
        raise typer.Exit(code=1) from e

    print_failures(report)
    if report.status is not RunStatus.NO_LOCATORS:
        print_summary_panel(report)

    style = {
        RunStatus.COMPLETE: "bold green",
        RunStatus.PARTIAL: "bold yellow",
        RunStatus.ALL_FAILED: "bold red",
        RunStatus.NO_LOCATORS: "yellow",
    }[report.status]
    console.print(f"[{style}]{report.status_line}[/{style}]")

    if report.status is RunStatus.ALL_FAILED:
        raise typer.Exit(code=1)


@app.command(name="config")
def config_command(
    rate_limited: bool | None = typer.Option(
        None,
        "--rate-limit/--no-rate-limit",
        help="Download in batches with a pause in between.",
    ),
    max_parallel: int | None = typer.Option(
        None, "--max-parallel", "-w", help="Files per batch when rate limited (1-20)."
    ),
    delay_ms: int | None = typer.Option(
        None, "--delay", help="Pause between batches in milliseconds (0-99999)."
    ),
    save: bool = typer.Option(
        False, "--save", help="Persist the given values as the new defaults."
    ),
):
    """Show or change the stored download settings."""
    config_manager = ConfigManager(CONFIG_FILE)
    try:
        policy = config_manager.load_policy(
            {
                "rate_limited": rate_limited,
                "max_parallel": max_parallel,
                "inter_batch_delay_ms": delay_ms,
            }
        )
        if save:
            config_manager.save_policy(policy)
            console.print(f"[green]✓ Settings saved to '{CONFIG_FILE}'[/green]")
    except BoothDlError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e

    print_config(CONFIG_FILE, policy.model_dump())
    print_policy_table(policy)
