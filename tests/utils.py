"""Test utilities for the share scraper tests."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from lxml import html

from sharescraper.common.checked_html import CheckedHtmlElement
from sharescraper.common.exceptions import FetchError
from sharescraper.common.lxml_page_element import LxmlPageElement
from sharescraper.common.page_element import Link

logger = logging.getLogger(__name__)


class FakeFetcher:
    """In-memory page fetcher.

    Serves HTML from a dict keyed on URL and records what happened, so tests
    can check which pages were fetched and that every opened page was
    released.

    Example:
        fetcher = FakeFetcher({"https://x/?p=1": "<html>...</html>"})
        driver = ShareDriver(request_manager=fetcher, ...)
        driver.run()
        assert fetcher.fetched == ["https://x/?p=1"]
    """

    def __init__(self, pages: dict[str, str]) -> None:
        self.pages = pages
        self.fetched: list[str] = []
        self.opened: list[LxmlPageElement] = []
        self.closed = False

    def get_page(self, url: str) -> LxmlPageElement:
        self.fetched.append(url)
        if url not in self.pages:
            raise FetchError(url, "connection refused")
        return LxmlPageElement.from_html(self.pages[url], url)

    @contextmanager
    def open_link(self, link: Link) -> Iterator[LxmlPageElement]:
        page = self.get_page(link.url)
        self.opened.append(page)
        try:
            yield page
        finally:
            page.release()

    def close(self) -> None:
        self.closed = True


def make_cell(cell_html: str) -> LxmlPageElement:
    """Parse a single ``<td>`` inside a table and return it as a page element.

    Example:
        cell = make_cell("<td>1,234.5</td>")
    """
    return make_row(f"<tr>{cell_html}</tr>").query_xpath(
        ".//td", "cell", min_count=1, max_count=1
    )[0]


def make_row(row_html: str) -> LxmlPageElement:
    """Parse a single ``<tr>`` inside a table body and return it."""
    doc = html.document_fromstring(
        f"<html><body><table><tbody>{row_html}</tbody></table></body></html>"
    )
    page = LxmlPageElement(
        CheckedHtmlElement(doc, "https://shares.example/"),
        "https://shares.example/",
    )
    return page.query_xpath("//tr", "row", min_count=1, max_count=1)[0]
