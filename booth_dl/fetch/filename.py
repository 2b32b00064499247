"""
Resolves the name a fetched file is stored under from its response headers,
falling back to the last segment of its URL.
"""

import re
from collections.abc import Iterable, Mapping
from urllib.parse import unquote_to_bytes

DEFAULT_FILENAME = "file.bin"

# Tried in order against each content-disposition line
_QUOTED = re.compile(r'filename\*?=\s*"([^"]+)"', re.IGNORECASE)
_EXTENDED = re.compile(r"filename\*=UTF-8''([^;\s]+)", re.IGNORECASE)
_UNQUOTED = re.compile(r"filename\*?=\s*([^;\s]+)", re.IGNORECASE)

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def percent_decode(token: str) -> str:
    """
    Decodes %XX escapes as UTF-8. A malformed escape or an invalid byte sequence
    leaves the token exactly as it was.
    """
    if "%" not in token:
        return token
    if _MALFORMED_ESCAPE.search(token):
        return token
    try:
        return unquote_to_bytes(token).decode("utf-8")
    except UnicodeDecodeError:
        return token


def _finish(token: str) -> str:
    return percent_decode(token).split("?", 1)[0]


def _from_disposition(line: str) -> str | None:
    if match := _QUOTED.search(line):
        return _finish(match.group(1))
    if match := _EXTENDED.search(line):
        return _finish(match.group(1))
    if match := _UNQUOTED.search(line):
        return _finish(re.sub(r"['\"]", "", match.group(1)))
    return None


def resolve_filename(response_headers: str, final_url: str, original_url: str) -> str:
    """
    Picks a filename using, in order: a quoted `filename="..."`, an RFC 5987
    `filename*=UTF-8''...`, an unquoted `filename=...`, and finally the last path
    segment of the final (or else the original) URL.

    Never raises: malformed or missing headers simply fall through to the URL.
    """
    for line in (response_headers or "").splitlines():
        if "content-disposition" not in line.lower():
            continue
        if filename := _from_disposition(line):
            return filename

    url = final_url or original_url or ""
    segment = url.split("/")[-1] or DEFAULT_FILENAME
    return _finish(segment) or DEFAULT_FILENAME


def format_headers(headers: Mapping[str, str] | Iterable[tuple[str, str]]) -> str:
    """Renders response headers as 'Name: value' lines for `resolve_filename`."""
    items = headers.items() if isinstance(headers, Mapping) else headers
    return "\n".join(f"{name}: {value}" for name, value in items)
