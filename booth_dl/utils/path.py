"""
Utilities for naming the output archive and resolving the config location.
"""

import os
import re
from pathlib import Path

from pathvalidate import sanitize_filename

DEFAULT_LABEL = "BOOTH_Download"
MAX_LABEL_LENGTH = 200

_INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_label(name: str | None, default: str = DEFAULT_LABEL) -> str:
    """
    Turns a product title into a safe archive base name.

    Characters that are invalid on Windows, macOS or Linux become '_', and the
    result is cut to 200 characters. Falls back to `default` when nothing is left.
    """
    name = (name or "").strip()
    if not name:
        return default
    name = _INVALID_CHARS.sub("_", name)
    name = sanitize_filename(name, replacement_text="_", platform="universal")
    name = name[:MAX_LABEL_LENGTH].strip()
    return name or default


def archive_filename(label: str) -> str:
    return f"{label}.zip"


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "booth-dl"
