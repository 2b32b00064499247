"""
Packs fetched payloads into a single store-only ZIP archive.

Payloads are typically already compressed (zip, png, mp4, ...), so entries are
written with ZIP_STORED.
"""

import io
import logging
import time
import zipfile
from collections.abc import Iterable
from typing import BinaryIO

from booth_dl.exceptions import ArchiveBuildError
from booth_dl.models.outcome import FetchSuccess

log = logging.getLogger(__name__)

FALLBACK_ENTRY_NAME = "file.bin"


def entry_name(filename: str) -> str:
    """Reduces a server-supplied filename to its last path component."""
    name = filename.replace("\\", "/").rsplit("/", 1)[-1].strip()
    if name in ("", ".", ".."):
        return FALLBACK_ENTRY_NAME
    return name


class ArchiveAssembler:
    """
    Serializes successes into an uncompressed ZIP container keyed by filename.

    When two successes resolve to the same filename the later one replaces the
    earlier one.
    """

    def _collect_entries(self, successes: Iterable[FetchSuccess]) -> dict[str, bytes]:
        entries: dict[str, bytes] = {}
        for success in successes:
            name = entry_name(success.filename)
            if name != success.filename:
                log.debug(f"Stored '{success.filename}' as '{name}'")
            if name in entries:
                log.warning(
                    f"[yellow]Duplicate filename '{name}': "
                    f"keeping the copy from {success.locator}[/yellow]"
                )
            entries[name] = success.payload
        return entries

    def write(self, successes: Iterable[FetchSuccess], fileobj: BinaryIO) -> int:
        """
        Writes the archive into a writable binary file object.

        Returns:
            The number of entries written.

        Raises:
            ArchiveBuildError: If serialization fails for any reason.
        """
        successes = list(successes)
        timestamp = time.localtime()[:6]
        try:
            entries = self._collect_entries(successes)
            with zipfile.ZipFile(
                fileobj, mode="w", compression=zipfile.ZIP_STORED, allowZip64=True
            ) as zf:
                for name, data in entries.items():
                    info = zipfile.ZipInfo(name, date_time=timestamp)
                    info.compress_type = zipfile.ZIP_STORED
                    zf.writestr(info, data)
        except Exception as e:
            raise ArchiveBuildError(
                f"Failed to build archive: {e!r}", success_count=len(successes)
            ) from e

        log.debug(f"Archive created with {len(entries)} entries")
        return len(entries)

    def assemble(self, successes: Iterable[FetchSuccess]) -> bytes:
        """Builds the archive in memory and returns its bytes."""
        buffer = io.BytesIO()
        self.write(successes, buffer)
        return buffer.getvalue()
