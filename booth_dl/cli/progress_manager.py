"""
Rich progress display for a batch run: one bar counting finished files.
"""

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from booth_dl.utils.formatting import progress_text


class ProgressManager:
    """
    Shows `Downloaded X/Y files` while fetches complete.

    `on_progress` matches the orchestrator's progress callback and is always
    invoked serially, so it needs no locking of its own.
    """

    def __init__(self, console: Console, rate_limited: bool = False):
        self.console = console
        self.rate_limited = rate_limited
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            "•",
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._task_id: TaskID | None = None
        self._last_text = ""

    @property
    def last_text(self) -> str:
        return self._last_text

    def initialize_session(self, total: int) -> None:
        self._last_text = progress_text(0, total, self.rate_limited)
        self._task_id = self.progress.add_task(self._last_text, total=total)

    def on_progress(self, completed: int, total: int) -> None:
        if self._task_id is None:
            self.initialize_session(total)
        self._last_text = progress_text(completed, total, self.rate_limited)
        self.progress.update(
            self._task_id,
            completed=completed,
            total=total,
            description=self._last_text,
        )

    async def __aenter__(self):
        self.progress.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.progress.stop()
