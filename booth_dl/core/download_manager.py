"""
The session coordinator: deduplicates locators, drives the batch orchestrator and
hands the successes to the archive assembler.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from booth_dl.core.orchestrator import BatchOrchestrator, FetchFn, ProgressFn, SleepFn
from booth_dl.exceptions import ArchiveBuildError, OutputError
from booth_dl.models.config import BatchPolicy
from booth_dl.models.outcome import BatchResult, FetchOutcome, FetchSuccess
from booth_dl.storage.archive import ArchiveAssembler
from booth_dl.utils.formatting import format_size
from booth_dl.utils.locators import dedupe_locators
from booth_dl.utils.path import DEFAULT_LABEL, archive_filename
from booth_dl.utils.structured_logger import DownloadLogger, SessionLogger

log = logging.getLogger(__name__)


class RunStatus(Enum):
    """Terminal states of a download session."""

    NO_LOCATORS = "no_locators"
    ALL_FAILED = "all_failed"
    PARTIAL = "partial"
    COMPLETE = "complete"


@dataclass
class SessionReport:
    """Everything the caller needs to present the outcome of a session."""

    status: RunStatus
    result: BatchResult
    archive: bytes | None = None
    archive_name: str = archive_filename(DEFAULT_LABEL)
    archive_path: Path | None = None
    archive_size: int = 0
    duration_s: float = 0.0

    @property
    def status_line(self) -> str:
        """A short status understandable without opening the log."""
        if self.status is RunStatus.NO_LOCATORS:
            return "No downloadable items found."
        if self.status is RunStatus.ALL_FAILED:
            return "Failed to download any files."
        if self.status is RunStatus.PARTIAL:
            return (
                f"Downloaded {self.archive_name} "
                f"({self.result.success_count}/{self.result.total_count} files, "
                f"{self.result.failure_count} failed)"
            )
        return f"✓ Downloaded {self.archive_name} ({self.result.success_count} files)"


class DownloadManager:
    """Orchestrates one download-and-package session."""

    def __init__(
        self,
        policy: BatchPolicy,
        fetch: FetchFn,
        assembler: ArchiveAssembler | None = None,
        label: str = DEFAULT_LABEL,
        sleep: SleepFn | None = None,
        download_logger: DownloadLogger | None = None,
        session_logger: SessionLogger | None = None,
    ):
        self.policy = policy
        self.fetch = fetch
        self.assembler = assembler or ArchiveAssembler()
        self.archive_name = archive_filename(label)
        self.orchestrator = BatchOrchestrator(
            self._logged_fetch, sleep=sleep or asyncio.sleep
        )
        self.download_logger = download_logger
        self.session_logger = session_logger

    async def _logged_fetch(self, locator: str) -> FetchOutcome:
        outcome = await self.fetch(locator)
        if self.download_logger:
            if isinstance(outcome, FetchSuccess):
                self.download_logger.file_completed(
                    locator, outcome.filename, outcome.size_bytes
                )
            else:
                self.download_logger.file_failed(locator, outcome.cause, outcome.status)
        return outcome

    def _write_archive(self, successes: list[FetchSuccess], destination: Path) -> int:
        """Streams the archive into `destination` and returns its size on disk."""
        try:
            fileobj = open(destination, "wb")  # noqa: SIM115
        except OSError as e:
            raise OutputError(f"Could not write '{destination}': {e}") from e
        try:
            with fileobj:
                self.assembler.write(successes, fileobj)
        except ArchiveBuildError:
            destination.unlink(missing_ok=True)
            raise
        return destination.stat().st_size

    async def execute(
        self,
        locators: list[str],
        on_progress: ProgressFn | None = None,
        destination: Path | None = None,
    ) -> SessionReport:
        """
        Runs the whole session.

        With a `destination` the archive is streamed straight into that file;
        without one it is built in memory and returned on the report.

        Raises:
            ArchiveBuildError: If the successes could not be packaged; its
            `success_count` tells how many files had been downloaded.
            OutputError: If `destination` cannot be opened for writing.
        """
        start_time = time.monotonic()
        unique = dedupe_locators(locators)
        if len(unique) < len(locators):
            log.info(f"Removed {len(locators) - len(unique)} duplicate URLs.")

        if not unique:
            log.warning("[yellow]No downloadable items found. Nothing to do.[/yellow]")
            return self._finish(
                SessionReport(
                    RunStatus.NO_LOCATORS, BatchResult(), archive_name=self.archive_name
                ),
                start_time,
            )

        if self.session_logger:
            self.session_logger.session_started(
                len(unique), self.policy.rate_limited, self.policy.max_parallel
            )
        log.info(f"Found {len(unique)} files. Downloading...")

        result = await self.orchestrator.run(unique, self.policy, on_progress)

        if not result.successes:
            return self._finish(
                SessionReport(
                    RunStatus.ALL_FAILED, result, archive_name=self.archive_name
                ),
                start_time,
            )

        status = RunStatus.PARTIAL if result.failure_count else RunStatus.COMPLETE
        report = SessionReport(status, result, archive_name=self.archive_name)

        log.info(f"Creating ZIP with {result.success_count} files...")
        if destination is None:
            report.archive = self.assembler.assemble(result.successes)
            report.archive_size = len(report.archive)
        else:
            report.archive_size = await asyncio.to_thread(
                self._write_archive, result.successes, destination
            )
            report.archive_path = destination
        log.info(f"ZIP created! Size: {format_size(report.archive_size)}")

        return self._finish(report, start_time)

    def _finish(self, report: SessionReport, start_time: float) -> SessionReport:
        report.duration_s = time.monotonic() - start_time
        if self.session_logger:
            self.session_logger.session_completed(
                report.status.value,
                report.duration_s,
                report.result.success_count,
                report.result.failure_count,
                report.result.total_size / (1024 * 1024),
            )
        return report
