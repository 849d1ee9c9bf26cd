"""Extraction of shares from the index components listing.

The scraper is pure parsing: it receives pages and returns values, and does
no I/O of its own. Fetching pages and writing files is the driver's job.

The listing table renders each share as a row of ``td`` cells. The price cell
holds plain text with thousands separators; the change cells wrap their value
in a ``span`` that carries the red/green styling::

    <tr>
      <td><a href="/stocks/acme-stock">Acme</a></td>
      <td>1,234.50<br/><span>...</span></td>
      ...
      <td><span class="colorRed">-0.46</span><br/><span>-0.83%</span></td>
    </tr>
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable

from sharescraper.common.exceptions import (
    CellParseError,
    HTMLStructuralAssumptionException,
    RunIdAssumptionException,
)
from sharescraper.common.page_element import Link, PageElement
from sharescraper.data_types import Share
from sharescraper.settings import ScraperSettings

logger = logging.getLogger(__name__)

# Plain decimal notation only: rejects "nan", "inf" and "1_000".
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_DATE_RE = re.compile(r"\d{1,4}[./-]\d{1,2}[./-]\d{1,4}")

# Characters that can't appear in a single filename component.
_UNSAFE_FILENAME_CHARS = re.compile(r"[/\\:]")

# (field, strip_grouping) in the order cells are parsed.
_NUMERIC_COLUMNS = (
    ("latest_price", True),
    ("change", False),
    ("change_3_months", False),
    ("change_6_months", False),
    ("change_1_year", False),
)


def parse_number(text: str | None, request_url: str = "") -> float:
    """Parse decimal text into a finite float.

    Raises:
        CellParseError: If the text is missing or not a decimal number.
    """
    if text is None:
        raise CellParseError(None, request_url)
    stripped = text.strip()
    if not _NUMBER_RE.fullmatch(stripped):
        raise CellParseError(text, request_url)
    value = float(stripped)
    # Exponents past the float range overflow to inf.
    if not math.isfinite(value):
        raise CellParseError(text, request_url)
    return value


def parse_cell(cell: PageElement, strip_grouping: bool) -> float:
    """Extract the number from a table cell.

    Args:
        cell: The ``td`` element.
        strip_grouping: True for plain-text cells such as the price, whose
            first child node is read and stripped of ``,`` separators. False
            for cells whose value sits in a nested ``span``.

    Returns:
        The parsed value.

    Raises:
        CellParseError: If there is no text to read or it is not a number.
    """
    if strip_grouping:
        text = cell.first_child_text()
        if text is not None:
            text = text.replace(",", "")
    else:
        spans = cell.query_xpath(".//span", "value span", min_count=0)
        text = spans[0].text_content() if spans else None
    return parse_number(text, cell.url)


def sanitize_run_id(text: str) -> str:
    """Make a raw date stamp usable as a filename stem."""
    return _UNSAFE_FILENAME_CHARS.sub("-", text.strip())


def log_problem_row(error: CellParseError) -> None:
    """Default handler for rows dropped because a cell didn't parse."""
    logger.warning(
        f"Problem with: {error.share_name}",
        extra={
            "url": error.request_url,
            "share": error.share_name,
            "column": error.column,
            "raw_text": error.raw_text,
        },
    )


class ShareTableScraper:
    """Reads shares, pagination links and the run date from listing pages.

    Attributes:
        settings: Site location, XPaths and column layout.
        on_row_error: Called with the CellParseError of every dropped row.
    """

    def __init__(
        self,
        settings: ScraperSettings | None = None,
        on_row_error: Callable[[CellParseError], None] | None = None,
    ) -> None:
        self.settings = settings or ScraperSettings()
        self.on_row_error = on_row_error or log_problem_row

    def extract_run_id(self, listing_page: PageElement) -> str:
        """Read the "last updated" stamp that names this run's output file.

        Raises:
            RunIdAssumptionException: If the stamp is missing, blank, or has
                no date in it.
        """
        index = self.settings.run_id_index
        texts = listing_page.query_xpath_strings(
            self.settings.run_id_xpath, "last updated stamp", min_count=0
        )
        if len(texts) <= index:
            raise RunIdAssumptionException(None, listing_page.url)

        raw = texts[index]
        if not raw.strip() or not _DATE_RE.search(raw):
            raise RunIdAssumptionException(raw, listing_page.url)
        return sanitize_run_id(raw)

    def list_page_links(
        self, listing_page: PageElement, page_count: int | None = None
    ) -> list[Link | None]:
        """Find the anchors for listing pages ``?p=1`` through ``?p=page_count``.

        Args:
            listing_page: Any listing page; all of them carry the pager.
            page_count: Pages to look for. Defaults to settings.page_count.

        Returns:
            One entry per page number, None where the page has no anchor.
        """
        if page_count is None:
            page_count = self.settings.page_count

        links: list[Link | None] = []
        for i in range(1, page_count + 1):
            found = listing_page.find_links(
                f"//a[@href='?p={i}']", f"link to page {i}", min_count=0
            )
            links.append(found[0] if found else None)
        return links

    def rows(self, page: PageElement) -> list[PageElement]:
        """All share rows on a page."""
        return page.query_xpath(
            self.settings.rows_xpath, "share table rows", min_count=0
        )

    def extract_share(self, row: PageElement) -> Share | None:
        """Build a Share from one table row.

        Returns:
            The Share, or None for rows without a name (headers, spacers)
            and rows with a cell that doesn't parse.

        Raises:
            HTMLStructuralAssumptionException: If a named row has fewer
                cells than the column map needs.
        """
        columns = self.settings.columns
        cells = row.query_xpath(".//td", "table cells", min_count=0)
        if len(cells) <= columns.name:
            return None

        anchors = cells[columns.name].query_xpath(
            ".//a", "share name anchor", min_count=0
        )
        name = anchors[0].text_content().strip() if anchors else ""
        if not name:
            return None

        if len(cells) < columns.required_cells():
            raise HTMLStructuralAssumptionException(
                selector=".//td",
                description=f"table cells for {name}",
                expected_min=columns.required_cells(),
                expected_max=None,
                actual_count=len(cells),
                request_url=row.url,
            )

        values: dict[str, float] = {}
        for field, strip_grouping in _NUMERIC_COLUMNS:
            try:
                values[field] = parse_cell(
                    cells[getattr(columns, field)], strip_grouping
                )
            except CellParseError as e:
                self.on_row_error(
                    CellParseError(
                        e.raw_text, row.url, share_name=name, column=field
                    )
                )
                return None

        return Share(name=name, **values)


def shares_on_page(
    scraper: ShareTableScraper, page: PageElement
) -> list[Share]:
    """Every share that extracts cleanly from a page, in table order."""
    shares = []
    for row in scraper.rows(page):
        share = scraper.extract_share(row)
        if share is not None:
            shares.append(share)
    return shares
