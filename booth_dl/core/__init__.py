"""
Core application engine for orchestrating the download process.

This package contains the primary logic. The `DownloadManager` acts as the
high-level session coordinator, delegating the scheduling of the individual
fetches to the `BatchOrchestrator`.
"""
