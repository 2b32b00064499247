# File: tests/test_orchestrator.py
import asyncio
import random

import pytest

from booth_dl.core.orchestrator import BatchOrchestrator, partition
from booth_dl.models.config import BatchPolicy
from booth_dl.models.outcome import FetchFailure, FetchSuccess


def _batch_sizes(events: list) -> list[int]:
    sizes, current = [], 0
    for kind, _ in events:
        if kind == "sleep":
            sizes.append(current)
            current = 0
        else:
            current += 1
    sizes.append(current)
    return sizes


def test_partition_sizes():
    assert [len(g) for g in partition(list("abcdefghij"), 3)] == [3, 3, 3, 1]
    assert partition([], 3) == []
    assert partition(["a", "b"], 5) == [["a", "b"]]


async def test_rate_limited_batches_and_delays(
    locators, fake_fetch, recording_sleep, events
):
    fetch = fake_fetch()
    policy = BatchPolicy(rate_limited=True, max_parallel=3, inter_batch_delay_ms=250)

    result = await BatchOrchestrator(fetch, sleep=recording_sleep).run(
        locators, policy
    )

    assert _batch_sizes(events) == [3, 3, 3, 1]
    assert recording_sleep.delays == [0.25, 0.25, 0.25]
    assert events[-1][0] == "fetch"
    assert fetch.max_in_flight <= 3
    assert result.total_count == 10
    assert result.success_count == 10


async def test_rate_limited_batches_run_in_order(locators, fake_fetch, recording_sleep):
    fetch = fake_fetch()
    policy = BatchPolicy(rate_limited=True, max_parallel=4, inter_batch_delay_ms=0)

    await BatchOrchestrator(fetch, sleep=recording_sleep).run(locators, policy)

    assert set(fetch.calls[:4]) == set(locators[:4])
    assert set(fetch.calls[4:8]) == set(locators[4:8])
    assert set(fetch.calls[8:]) == set(locators[8:])
    assert recording_sleep.delays == []


async def test_no_delay_after_single_batch(fake_fetch, recording_sleep):
    policy = BatchPolicy(rate_limited=True, max_parallel=5, inter_batch_delay_ms=1000)
    await BatchOrchestrator(fake_fetch(), sleep=recording_sleep).run(
        ["a", "b", "c"], policy
    )
    assert recording_sleep.delays == []


async def test_unthrottled_dispatches_everything_at_once(
    locators, fake_fetch, recording_sleep
):
    fetch = fake_fetch(failing=locators[:4])
    result = await BatchOrchestrator(fetch, sleep=recording_sleep).run(
        locators, BatchPolicy(rate_limited=False, max_parallel=2)
    )

    assert fetch.max_in_flight == len(locators)
    assert fetch.in_flight == 0
    assert recording_sleep.delays == []
    assert result.success_count + result.failure_count == len(locators)


async def test_partial_failure_accounting(fake_fetch):
    locators = [f"https://x/{i}" for i in range(5)]
    fetch = fake_fetch(failing={"https://x/1", "https://x/3"})

    result = await BatchOrchestrator(fetch).run(locators, BatchPolicy())

    assert result.success_count == 3
    assert result.failure_count == 2
    assert result.total_count == 5
    assert {f.locator for f in result.failures} == {"https://x/1", "https://x/3"}
    assert all(isinstance(s, FetchSuccess) for s in result.successes)


async def test_duplicates_are_fetched_once(fake_fetch):
    fetch = fake_fetch()
    result = await BatchOrchestrator(fetch).run(["a", "b", "a", "c", "b"], BatchPolicy())
    assert sorted(fetch.calls) == ["a", "b", "c"]
    assert result.total_count == 3


async def test_empty_input_returns_empty_result(fake_fetch):
    progress = []
    result = await BatchOrchestrator(fake_fetch()).run(
        [], BatchPolicy(), lambda c, t: progress.append((c, t))
    )
    assert result.total_count == 0
    assert result.successes == []
    assert progress == []


@pytest.mark.parametrize("rate_limited", [False, True])
async def test_progress_is_strictly_monotonic(rate_limited, recording_sleep):
    locators = [f"https://x/{i}" for i in range(25)]
    rng = random.Random(1234)

    async def jittery_fetch(locator):
        await asyncio.sleep(rng.choice([0, 0, 0.001, 0.002]))
        if locator.endswith("7"):
            return FetchFailure(locator, "boom")
        return FetchSuccess(locator, locator.rsplit("/", 1)[-1], b"x")

    seen = []
    policy = BatchPolicy(rate_limited=rate_limited, max_parallel=6)
    result = await BatchOrchestrator(jittery_fetch, sleep=recording_sleep).run(
        locators, policy, lambda completed, total: seen.append((completed, total))
    )

    assert [c for c, _ in seen] == list(range(1, 26))
    assert {t for _, t in seen} == {25}
    assert result.failure_count == 2


async def test_successes_keep_completion_order():
    delays = {"slow": 0.03, "medium": 0.015, "fast": 0.0}

    async def fetch(locator):
        await asyncio.sleep(delays[locator])
        return FetchSuccess(locator, locator, b"")

    result = await BatchOrchestrator(fetch).run(["slow", "medium", "fast"], BatchPolicy())
    assert [s.locator for s in result.successes] == ["fast", "medium", "slow"]


async def test_raising_fetch_is_recorded_as_failure():
    async def fetch(locator):
        if locator == "bad":
            raise RuntimeError("kaboom")
        return FetchSuccess(locator, locator, b"ok")

    result = await BatchOrchestrator(fetch).run(["good", "bad"], BatchPolicy())
    assert result.success_count == 1
    assert result.failures[0].locator == "bad"
    assert "kaboom" in result.failures[0].cause


async def test_failure_does_not_stop_later_batches(fake_fetch, recording_sleep):
    locators = [f"https://x/{i}" for i in range(6)]
    fetch = fake_fetch(failing=locators[:2])
    policy = BatchPolicy(rate_limited=True, max_parallel=2, inter_batch_delay_ms=10)

    result = await BatchOrchestrator(fetch, sleep=recording_sleep).run(
        locators, policy
    )

    assert len(fetch.calls) == 6
    assert result.failure_count == 2
    assert result.success_count == 4
    assert len(recording_sleep.delays) == 2


async def test_cancelling_the_run_cancels_in_flight_fetches():
    started = asyncio.Event()
    cancelled = []

    async def hanging_fetch(locator):
        started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.append(locator)
            raise

    task = asyncio.create_task(
        BatchOrchestrator(hanging_fetch).run(["a", "b"], BatchPolicy())
    )
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert sorted(cancelled) == ["a", "b"]
