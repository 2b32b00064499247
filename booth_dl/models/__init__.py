"""
Data Models Layer.

This package contains the Pydantic policy model and the result types that
flow between the fetcher, the orchestrator and the archive assembler.
"""

from .config import BatchPolicy
from .outcome import BatchResult, FetchFailure, FetchOutcome, FetchSuccess

__all__ = ["BatchPolicy", "BatchResult", "FetchFailure", "FetchOutcome", "FetchSuccess"]
