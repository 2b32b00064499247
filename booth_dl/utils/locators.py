"""
Utilities for collecting and deduplicating resource locators.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

log = logging.getLogger(__name__)


def dedupe_locators(locators: Iterable[str]) -> list[str]:
    """
    Removes exact duplicates while keeping the first occurrence of each locator.

    Comparison is byte-exact: case, trailing slashes and query strings are not
    normalized.
    """
    return list(dict.fromkeys(locators))


def read_locator_file(path: Path) -> list[str]:
    """Reads one locator per line, skipping blank lines and '#' comments."""
    with open(path, "r", encoding="utf-8") as f:
        return [
            line.strip() for line in f if line.strip() and not line.startswith("#")
        ]


def expand_sources(sources: Iterable[str]) -> list[str]:
    """
    Expands a mix of URLs and URL-list files into a flat list of locators.

    Files that cannot be read are logged and skipped.
    """
    expanded: list[str] = []
    for source in sources:
        if Path(source).is_file():
            log.info(f"Reading URLs from file: [dim]{source}[/dim]")
            try:
                expanded.extend(read_locator_file(Path(source)))
            except (IOError, UnicodeDecodeError) as e:
                log.error(f"[red]Could not read file {source}: {e}[/red]")
        else:
            expanded.append(source)
    return expanded
