"""
booth-dl: fetch every file of an order concurrently and pack them into a single
uncompressed ZIP archive.
"""

__version__ = "1.0.0"
