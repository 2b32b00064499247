"""
Fetch Layer.

This package performs the network retrieval of single files and resolves the
filename each payload is stored under.
"""

from .fetcher import Fetcher, close_connection_pool, get_connection_pool
from .filename import resolve_filename

__all__ = ["Fetcher", "close_connection_pool", "get_connection_pool", "resolve_filename"]
