"""
Structured diagnostic logging for download sessions.
Writes JSON lines with context next to the regular console log, so failures can be
inspected later without cluttering the status line.
"""

import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any


class StructuredLogger:
    """
    Logger that outputs both human-readable and machine-parseable logs.

    Usage:
        logger = StructuredLogger("booth_dl", log_dir=Path("logs"))
        logger.error("file_download_failed",
                     locator="https://booth.pm/downloadables/1",
                     cause="HTTP 403")
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_json: bool = True,
        enable_console: bool = True,
    ):
        """
        Args:
            name: Logger name
            log_dir: Directory for JSON log files (None = disabled)
            enable_json: Enable JSON file logging
            enable_console: Enable console output
        """
        self.name = name
        self.log_dir = log_dir
        self.enable_json = enable_json and log_dir is not None
        self.enable_console = enable_console

        self._logger = logging.getLogger(name)

        self._json_file = None
        self.json_log_path: Path | None = None
        if self.enable_json:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            self.json_log_path = log_dir / f"booth_dl_{timestamp}.jsonl"
            self._json_file = open(self.json_log_path, "a", encoding="utf-8")  # noqa: SIM115

        # Added to every JSON entry
        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{id(self)}",
            "start_time": datetime.now().isoformat(),
        }

    def set_session_context(self, **kwargs) -> None:
        """Set session-level context that appears in all logs."""
        self._session_context.update(kwargs)

    def _format_message(self, event: str, **context) -> str:
        parts = [f"[{event}]"]
        for key, value in context.items():
            parts.append(f"{key}={value}")
        return " ".join(parts)

    def _write_json(self, level: str, event: str, **context) -> None:
        if not self._json_file or self._json_file.closed:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }

        try:
            self._json_file.write(json.dumps(entry) + "\n")
            self._json_file.flush()
        except OSError as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def _emit(self, level: int, event: str, **context) -> None:
        if self.enable_console:
            self._logger.log(level, self._format_message(event, **context))
        if self.enable_json:
            self._write_json(logging.getLevelName(level), event, **context)

    def debug(self, event: str, **context) -> None:
        self._emit(logging.DEBUG, event, **context)

    def info(self, event: str, **context) -> None:
        self._emit(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        self._emit(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        self._emit(logging.ERROR, event, **context)

    def close(self) -> None:
        """Close JSON log file."""
        if self._json_file and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class DownloadLogger:
    """Specialized logger for per-file events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def file_completed(self, locator: str, filename: str, size_bytes: int):
        self.logger.debug(
            "file_download_completed",
            locator=locator,
            filename=filename,
            size_bytes=size_bytes,
            size_mb=round(size_bytes / (1024 * 1024), 2),
        )

    def file_failed(self, locator: str, cause: str, status: int | None = None):
        self.logger.error(
            "file_download_failed",
            locator=locator,
            cause=cause,
            status=status,
        )


class SessionLogger:
    """Specialized logger for session events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def session_started(
        self, total_locators: int, rate_limited: bool, max_parallel: int
    ):
        self.logger.info(
            "session_started",
            total_locators=total_locators,
            rate_limited=rate_limited,
            max_parallel=max_parallel,
        )

    def session_completed(
        self,
        status: str,
        duration_s: float,
        files_downloaded: int,
        files_failed: int,
        total_size_mb: float,
    ):
        self.logger.info(
            "session_completed",
            status=status,
            duration_s=round(duration_s, 2),
            files_downloaded=files_downloaded,
            files_failed=files_failed,
            total_size_mb=round(total_size_mb, 2),
        )


def create_structured_logger(
    log_dir: Path | None = None, enable_json: bool = False
) -> tuple[StructuredLogger, DownloadLogger, SessionLogger]:
    """
    Create the structured loggers. Console echo is off since the orchestrator
    already reports every failure on the regular log.

    Returns:
        Tuple of (base_logger, download_logger, session_logger)
    """
    base = StructuredLogger(
        "booth_dl.diagnostics",
        log_dir=log_dir,
        enable_json=enable_json,
        enable_console=False,
    )
    return base, DownloadLogger(base), SessionLogger(base)
