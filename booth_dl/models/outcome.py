"""
Result types produced by fetching files and running a batch.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FetchSuccess:
    """A fetched file and the name it will be stored under."""

    locator: str
    filename: str
    payload: bytes = field(repr=False)

    @property
    def size_bytes(self) -> int:
        return len(self.payload)


@dataclass(frozen=True)
class FetchFailure:
    """A locator that could not be fetched and why."""

    locator: str
    cause: str
    status: int | None = None


FetchOutcome = FetchSuccess | FetchFailure


@dataclass
class BatchResult:
    """
    Aggregated outcome of one batch run.

    `successes` keeps completion order, not input order.
    """

    successes: list[FetchSuccess] = field(default_factory=list)
    failures: list[FetchFailure] = field(default_factory=list)
    total_count: int = 0

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def total_size(self) -> int:
        return sum(s.size_bytes for s in self.successes)
