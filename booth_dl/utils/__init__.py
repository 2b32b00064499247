"""
Shared helpers: locator handling, naming, formatting and diagnostic logging.
"""
