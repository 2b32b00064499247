"""
Locator Sources.

Extracts the download locators and product name from a saved BOOTH order page.
"""

from .order_page import OrderPage, parse_order_page, read_order_page

__all__ = ["OrderPage", "parse_order_page", "read_order_page"]
