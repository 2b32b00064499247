"""
Pydantic model for the batch download policy.
Out-of-range values are clamped into their allowed range, never rejected.
"""

from pydantic import BaseModel, field_validator

MIN_PARALLEL = 1
MAX_PARALLEL = 20
MIN_DELAY_MS = 0
MAX_DELAY_MS = 99999

DEFAULT_POLICY = {
    "rate_limited": False,
    "max_parallel": 5,
    "inter_batch_delay_ms": 3000,
}


def clamp(value: int, lower: int, upper: int) -> int:
    """Returns value limited to the closed interval [lower, upper]."""
    return max(lower, min(upper, value))


class BatchPolicy(BaseModel):
    """How the files of one run are scheduled."""

    rate_limited: bool = DEFAULT_POLICY["rate_limited"]
    max_parallel: int = DEFAULT_POLICY["max_parallel"]
    inter_batch_delay_ms: int = DEFAULT_POLICY["inter_batch_delay_ms"]

    class Config:
        """Pydantic model configuration."""

        frozen = True

    @field_validator("max_parallel")
    @classmethod
    def clamp_parallel(cls, v: int) -> int:
        """Keeps the batch size within 1-20."""
        return clamp(v, MIN_PARALLEL, MAX_PARALLEL)

    @field_validator("inter_batch_delay_ms")
    @classmethod
    def clamp_delay(cls, v: int) -> int:
        """Keeps the pause between batches within 0-99999 ms."""
        return clamp(v, MIN_DELAY_MS, MAX_DELAY_MS)

    @property
    def inter_batch_delay(self) -> float:
        """The pause between batches in seconds."""
        return self.inter_batch_delay_ms / 1000

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        return set(cls.model_fields)
