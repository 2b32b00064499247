"""
Schedules the fetches of one batch run.

Locators are processed in concurrency groups: a single group holding everything
when unthrottled, or consecutive groups of `max_parallel` when rate limited. Each
group is drained by a pool of workers reading from a queue and posting outcomes to
a result queue; the orchestrator collects exactly one outcome per locator before
moving on.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from rich.markup import escape

from booth_dl.models.config import BatchPolicy
from booth_dl.models.outcome import BatchResult, FetchFailure, FetchOutcome, FetchSuccess
from booth_dl.utils.locators import dedupe_locators

log = logging.getLogger(__name__)

FetchFn = Callable[[str], Awaitable[FetchOutcome]]
ProgressFn = Callable[[int, int], None]
SleepFn = Callable[[float], Awaitable[None]]


def partition(locators: Sequence[str], size: int) -> list[list[str]]:
    """Splits locators into consecutive groups of `size`; the last may be smaller."""
    size = max(1, size)
    return [list(locators[i : i + size]) for i in range(0, len(locators), size)]


class BatchOrchestrator:
    """Runs Fetch Units under a `BatchPolicy` and aggregates their outcomes."""

    def __init__(self, fetch: FetchFn, sleep: SleepFn = asyncio.sleep):
        self.fetch = fetch
        self.sleep = sleep
        self._lock = asyncio.Lock()

    async def run(
        self,
        locators: Sequence[str],
        policy: BatchPolicy,
        on_progress: ProgressFn | None = None,
    ) -> BatchResult:
        """
        Fetches every distinct locator and returns the aggregated result.

        Individual failures are recorded, never raised. The call returns only after
        every locator has produced an outcome.
        """
        unique = dedupe_locators(locators)
        result = BatchResult(total_count=len(unique))
        if not unique:
            return result

        if policy.rate_limited:
            groups = partition(unique, policy.max_parallel)
            log.debug(
                f"Rate limited: {len(groups)} batches of up to "
                f"{policy.max_parallel}, {policy.inter_batch_delay_ms} ms apart"
            )
        else:
            groups = [unique]

        progress = _ProgressState(len(unique), on_progress)
        for index, group in enumerate(groups):
            if index > 0 and policy.inter_batch_delay_ms > 0:
                log.debug(
                    f"Waiting {policy.inter_batch_delay_ms} ms before batch "
                    f"{index + 1}/{len(groups)}"
                )
                await self.sleep(policy.inter_batch_delay)
            await self._run_group(group, result, progress)

        if result.failure_count:
            log.warning(
                f"[yellow]{result.failure_count}/{result.total_count} "
                "downloads failed.[/yellow]"
            )
        return result

    async def _run_group(
        self, group: list[str], result: BatchResult, progress: "_ProgressState"
    ) -> None:
        work: asyncio.Queue[str] = asyncio.Queue()
        outcomes: asyncio.Queue[FetchOutcome] = asyncio.Queue()
        for locator in group:
            work.put_nowait(locator)

        workers = [
            asyncio.create_task(self._worker(work, outcomes)) for _ in range(len(group))
        ]
        try:
            for _ in range(len(group)):
                outcome = await outcomes.get()
                await self._record(outcome, result, progress)
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(
        self, work: "asyncio.Queue[str]", outcomes: "asyncio.Queue[FetchOutcome]"
    ) -> None:
        while True:
            try:
                locator = work.get_nowait()
            except asyncio.QueueEmpty:
                return
            await outcomes.put(await self._fetch_one(locator))

    async def _fetch_one(self, locator: str) -> FetchOutcome:
        try:
            return await self.fetch(locator)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.debug("Fetch raised instead of returning a failure", exc_info=True)
            return FetchFailure(locator, f"{type(e).__name__}: {e}")

    async def _record(
        self, outcome: FetchOutcome, result: BatchResult, progress: "_ProgressState"
    ) -> None:
        async with self._lock:
            if isinstance(outcome, FetchSuccess):
                result.successes.append(outcome)
            else:
                result.failures.append(outcome)
                log.warning(
                    f"[yellow]✗ Failed to download {escape(outcome.locator)}: "
                    f"{escape(outcome.cause)}[/yellow]"
                )
            progress.advance()


class _ProgressState:
    """Completion counter; only mutated while the orchestrator lock is held."""

    def __init__(self, total: int, callback: ProgressFn | None):
        self.total = total
        self.completed = 0
        self._callback = callback

    def advance(self) -> None:
        self.completed += 1
        if self._callback:
            self._callback(self.completed, self.total)
