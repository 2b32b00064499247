"""
Parses a saved BOOTH order page for its download links and product title.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from bs4 import BeautifulSoup

from booth_dl.utils.locators import dedupe_locators

log = logging.getLogger(__name__)

DOWNLOADABLE_PREFIX = "https://booth.pm/downloadables/"


@dataclass
class OrderPage:
    """What an order page offers for download."""

    locators: list[str] = field(default_factory=list)
    product_name: str | None = None


def parse_order_page(html: str) -> OrderPage:
    """
    Collects every `https://booth.pm/downloadables/...` link (first occurrence
    wins) and the product title from the `a.nav` link pointing at `/items/`.
    """
    soup = BeautifulSoup(html, "html.parser")
    hrefs = [
        a["href"].strip()
        for a in soup.select("a[href]")
        if a["href"].strip().startswith(DOWNLOADABLE_PREFIX)
    ]

    product_name = None
    if product_link := soup.select_one('a.nav[href*="/items/"]'):
        product_name = product_link.get_text().strip() or None

    page = OrderPage(locators=dedupe_locators(hrefs), product_name=product_name)
    log.debug(
        f"Order page: {len(page.locators)} downloadables, product={product_name!r}"
    )
    return page


def read_order_page(path: Path) -> OrderPage:
    """Reads and parses an order page saved to disk."""
    return parse_order_page(path.read_text(encoding="utf-8"))
