# File: tests/conftest.py
import asyncio
from collections.abc import Iterable

import pytest

from booth_dl.models.outcome import FetchFailure, FetchSuccess


class FakeFetch:
    """
    Stand-in for `Fetcher.fetch` that records scheduling.

    Every locator in `failing` produces a FetchFailure; the rest succeed with a
    payload equal to the locator bytes.
    """

    def __init__(
        self,
        failing: Iterable[str] = (),
        delay: float = 0.01,
        events: list | None = None,
        filenames: dict[str, str] | None = None,
    ):
        self.failing = set(failing)
        self.delay = delay
        self.events = events if events is not None else []
        self.filenames = filenames or {}
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, locator: str):
        self.calls.append(locator)
        self.events.append(("fetch", locator))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        if locator in self.failing:
            return FetchFailure(locator, "Failed to download: HTTP 404", status=404)
        name = self.filenames.get(locator, locator.rsplit("/", 1)[-1])
        return FetchSuccess(locator, name, locator.encode())


class RecordingSleep:
    """Records requested pauses instead of waiting."""

    def __init__(self, events: list | None = None):
        self.events = events if events is not None else []
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        self.events.append(("sleep", seconds))


@pytest.fixture()
def events() -> list:
    return []


@pytest.fixture()
def recording_sleep(events) -> RecordingSleep:
    return RecordingSleep(events)


@pytest.fixture()
def locators() -> list[str]:
    return [f"https://booth.pm/downloadables/{i}" for i in range(1, 11)]


@pytest.fixture()
def make_success():
    def _make(filename: str, payload: bytes = b"data", locator: str | None = None):
        return FetchSuccess(locator or f"https://example.com/{filename}", filename, payload)

    return _make


@pytest.fixture()
def fake_fetch(events):
    def _make(**kwargs) -> FakeFetch:
        kwargs.setdefault("events", events)
        return FakeFetch(**kwargs)

    return _make
