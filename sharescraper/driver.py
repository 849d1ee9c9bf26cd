"""Synchronous driver that turns a day's listing into a CSV file.

The driver does the I/O around ShareTableScraper:

- fetches the first listing page and reads the run date from it
- skips the run when ``<run date>.csv`` already exists
- walks the paginated listing one page at a time, releasing each page
  before opening the next
- writes every extracted share as one CSV row

The output is written to ``<run date>.csv.part`` and moved into place only
once every page has been read. A run that fails halfway leaves nothing
behind, so the next run is not mistaken for a repeat.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Callable, Generator
from contextlib import closing
from pathlib import Path

from sharescraper.common.exceptions import (
    MissingLinkError,
    ScraperAssumptionException,
)
from sharescraper.common.page_element import PageElement
from sharescraper.common.request_manager import (
    FetcherConfig,
    PageFetcher,
    SyncRequestManager,
)
from sharescraper.data_types import (
    AlreadyExists,
    RunResult,
    Share,
    Written,
)
from sharescraper.scraper import ShareTableScraper
from sharescraper.settings import default_output_dir

logger = logging.getLogger(__name__)


def log_missing_link(error: MissingLinkError) -> None:
    """Default handler for listing pages with no pager anchor."""
    logger.warning(
        f"Skipping listing page {error.page_number}: no link to it",
        extra={"url": error.request_url, "page_number": error.page_number},
    )


def ensure_output_dir(directory: Path) -> bool:
    """Create the output directory if needed.

    Returns:
        True if the directory was created, False if it already existed.
    """
    if directory.is_dir():
        logger.info(f"{directory} exists already.")
        return False
    directory.mkdir(parents=True, exist_ok=True)
    logger.info(f"{directory} has just been created.")
    return True


class ShareDriver:
    """Runs one scrape of the share listing.

    Example usage::

        driver = ShareDriver(output_dir=Path("data"))
        result = driver.run()
        match result:
            case Written(path=path, record_count=n):
                print(f"{n} shares in {path}")
            case AlreadyExists(path=path):
                print(f"{path} is already there")
    """

    def __init__(
        self,
        scraper: ShareTableScraper | None = None,
        output_dir: Path | None = None,
        request_manager: PageFetcher | None = None,
        fetcher_config: FetcherConfig | None = None,
        on_missing_link: Callable[[MissingLinkError], None] | None = None,
        on_structural_error: Callable[[ScraperAssumptionException], bool]
        | None = None,
        on_run_start: Callable[[str], None] | None = None,
        on_run_complete: Callable[[str, str, Exception | None], None]
        | None = None,
        sort_by_change: bool = False,
    ) -> None:
        """Initialize the driver.

        Args:
            scraper: Scraper used to read pages. Defaults to
                ShareTableScraper with default settings.
            output_dir: Directory for the CSV files. Defaults to
                ``~/Documents/Share_Data``.
            request_manager: Fetcher used for every page. If None, each
                run builds a SyncRequestManager from fetcher_config and
                closes it when the run ends.
            fetcher_config: Client options for the default fetcher.
            on_missing_link: Called for each pager anchor the listing lacks.
                Defaults to logging a warning. The page is skipped either way.
            on_structural_error: Called when a row doesn't match the
                expected layout. Return True to skip the row and continue,
                False to end the run with the exception. If not provided,
                the exception ends the run.
            on_run_start: Called with the scraper name when a run starts.
            on_run_complete: Called when a run ends with the scraper name,
                status ("completed" | "skipped" | "error"), and the error
                (Exception | None).
            sort_by_change: Write shares in ascending daily change instead
                of table order. Holds all shares in memory until the end.
        """
        self.scraper = scraper or ShareTableScraper()
        self.output_dir = output_dir or default_output_dir()

        self.request_manager: PageFetcher | None = request_manager
        self.fetcher_config = fetcher_config
        self._owns_request_manager = request_manager is None

        self.on_missing_link = on_missing_link or log_missing_link
        self.on_structural_error = on_structural_error
        self.on_run_start = on_run_start
        self.on_run_complete = on_run_complete
        self.sort_by_change = sort_by_change

    def output_path(self, run_id: str) -> Path:
        return self.output_dir / f"{run_id}.csv"

    def run(self) -> RunResult:
        """Scrape the listing unless this date's file already exists.

        Returns:
            AlreadyExists if the output file was there before the run,
            otherwise Written with the number of shares in the new file.

        Raises:
            FetchError: If a page cannot be fetched.
            ScraperAssumptionException: If the listing page has no usable
                date stamp or a row breaks the expected layout.
        """
        scraper_name = self.scraper.__class__.__name__
        if self.on_run_start:
            self.on_run_start(scraper_name)

        status = "completed"
        error: Exception | None = None
        listing_page: PageElement | None = None

        try:
            if self._owns_request_manager:
                self.request_manager = SyncRequestManager(self.fetcher_config)
            listing_page = self.request_manager.get_page(
                self.scraper.settings.listing_url
            )
            run_id = self.scraper.extract_run_id(listing_page)
            path = self.output_path(run_id)

            if path.exists():
                logger.info(f"File already exists. Nothing written: {path}")
                status = "skipped"
                return AlreadyExists(path)

            ensure_output_dir(self.output_dir)
            record_count = self._write_csv(listing_page, path)
            logger.info(
                f"Successfully written {record_count} shares to {path}",
                extra={"path": str(path), "record_count": record_count},
            )
            return Written(path, record_count)

        except Exception as e:
            status = "error"
            error = e
            raise
        finally:
            if listing_page is not None:
                listing_page.release()
            if self._owns_request_manager and self.request_manager is not None:
                self.request_manager.close()
                self.request_manager = None
            if self.on_run_complete:
                self.on_run_complete(scraper_name, status, error)

    def walk_pages(
        self, listing_page: PageElement
    ) -> Generator[PageElement, None, None]:
        """Yield each paginated listing page in turn.

        Each page stays open only while the consumer handles it: it is
        released before the next page is fetched, and also when the consumer
        stops early or raises.
        """
        links = self.scraper.list_page_links(listing_page)
        for page_number, link in enumerate(links, start=1):
            if link is None:
                self.on_missing_link(
                    MissingLinkError(page_number, listing_page.url)
                )
                continue
            with self.request_manager.open_link(link) as page:
                logger.debug(f"Reading listing page {page_number}: {link.url}")
                yield page

    def iter_shares(
        self, listing_page: PageElement
    ) -> Generator[Share, None, None]:
        """Yield every share that extracts cleanly from the whole listing."""
        # closing() releases the current page as soon as this generator is
        # closed, not when it is garbage collected.
        with closing(self.walk_pages(listing_page)) as pages:
            for page in pages:
                for row in self.scraper.rows(page):
                    try:
                        share = self.scraper.extract_share(row)
                    except ScraperAssumptionException as e:
                        if self.on_structural_error is None:
                            raise
                        if self.on_structural_error(e):
                            continue
                        raise
                    if share is not None:
                        yield share

    def _write_csv(self, listing_page: PageElement, path: Path) -> int:
        partial = path.with_name(f"{path.name}.part")
        record_count = 0
        try:
            with (
                open(partial, "w", newline="", encoding="utf-8") as f,
                closing(self.iter_shares(listing_page)) as shares,
            ):
                writer = csv.writer(f, lineterminator="\n")
                ordered = sorted(shares) if self.sort_by_change else shares
                for share in ordered:
                    writer.writerow(share.csv_row())
                    record_count += 1
            partial.replace(path)
        except BaseException:
            partial.unlink(missing_ok=True)
            raise
        return record_count


def run_scraper(
    request_manager: PageFetcher,
    output_dir: Path,
    **kwargs,
) -> RunResult:
    """Run a ShareDriver once with the given fetcher and output directory.

    Extra keyword arguments are passed to ShareDriver.
    """
    driver = ShareDriver(
        output_dir=output_dir, request_manager=request_manager, **kwargs
    )
    return driver.run()
