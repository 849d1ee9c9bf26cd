"""Configuration models for the share scraper.

The listing site is located by URL and a handful of XPath expressions, and
the table is read by column position. All of that lives here so a layout
change on the site is a configuration change rather than a code change.

Example::

    from sharescraper.settings import ColumnMap, ScraperSettings

    settings = ScraperSettings(
        page_count=5,
        columns=ColumnMap(change=4),
    )
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_LISTING_URL = (
    "https://markets.businessinsider.com/index/components/s&p_500?p=1"
)

DEFAULT_RUN_ID_XPATH = (
    "/html/body/main/div/div[3]/div[1]/div[4]/table/tbody/tr[1]/td[5]/text()"
)


class ColumnMap(BaseModel):
    """Position of each share field in a table row.

    Indices are zero-based positions among the row's ``td`` cells.

    Attributes:
        name: Cell holding the anchor with the share name.
        latest_price: Cell holding the price as plain text.
        change: Cell holding the daily change inside a span.
        change_3_months: Cell holding the 3 month change inside a span.
        change_6_months: Cell holding the 6 month change inside a span.
        change_1_year: Cell holding the 1 year change inside a span.
    """

    model_config = ConfigDict(frozen=True)

    name: int = Field(0, ge=0)
    latest_price: int = Field(1, ge=0)
    change: int = Field(3, ge=0)
    change_3_months: int = Field(5, ge=0)
    change_6_months: int = Field(6, ge=0)
    change_1_year: int = Field(7, ge=0)

    def required_cells(self) -> int:
        """Smallest number of cells a row needs to cover every column."""
        return max(self.model_dump().values()) + 1


class ScraperSettings(BaseModel):
    """Where the listing lives and how to read it.

    Attributes:
        listing_url: URL of the first listing page.
        page_count: How many ``?p=N`` pages to read, starting at 1. This is a
            cap, not a discovered count.
        rows_xpath: XPath from a page to its share rows.
        run_id_xpath: XPath to the text nodes holding the "last updated"
            stamp.
        run_id_index: Which of the run_id_xpath matches is the stamp.
        columns: Column position of each share field.
    """

    model_config = ConfigDict(frozen=True)

    listing_url: str = DEFAULT_LISTING_URL
    page_count: int = Field(10, ge=1)
    rows_xpath: str = ".//tbody//tr"
    run_id_xpath: str = DEFAULT_RUN_ID_XPATH
    run_id_index: int = Field(1, ge=0)
    columns: ColumnMap = Field(default_factory=ColumnMap)


def default_output_dir() -> Path:
    """``~/Documents/Share_Data`` for the invoking user."""
    return Path.home() / "Documents" / "Share_Data"
