"""
Storage Layer.

This package handles everything that is written out: the settings file and the
assembled ZIP archive.
"""

from .archive import ArchiveAssembler
from .config_manager import ConfigManager

__all__ = ["ArchiveAssembler", "ConfigManager"]
