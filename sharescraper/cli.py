"""sharescraper CLI: scrape the share listing into a dated CSV file.

Usage:
    sharescraper run                          # Scrape into ~/Documents/Share_Data
    sharescraper run --output-dir data        # Scrape into ./data
    sharescraper run --pages 3 --sort         # First 3 pages, sorted by change
    sharescraper show-columns                 # Print the column layout
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from sharescraper.common.exceptions import (
    ScraperAssumptionException,
    TransientException,
)
from sharescraper.common.request_manager import FetcherConfig
from sharescraper.data_types import AlreadyExists, Written
from sharescraper.driver import ShareDriver
from sharescraper.scraper import ShareTableScraper
from sharescraper.settings import (
    DEFAULT_LISTING_URL,
    ColumnMap,
    ScraperSettings,
    default_output_dir,
)


@click.group()
@click.version_option(package_name="sharescraper")
def cli() -> None:
    """Scrape a share listing into dated CSV files."""


@cli.command()
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for the CSV files. [default: ~/Documents/Share_Data]",
)
@click.option(
    "--url",
    "listing_url",
    default=DEFAULT_LISTING_URL,
    show_default=True,
    help="URL of the first listing page.",
)
@click.option(
    "--pages",
    "page_count",
    type=click.IntRange(min=1),
    default=10,
    show_default=True,
    help="Number of listing pages to read.",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Request timeout in seconds. [default: none]",
)
@click.option(
    "--verify-tls/--no-verify-tls",
    default=False,
    show_default=True,
    help="Verify server TLS certificates.",
)
@click.option(
    "--sort",
    "sort_by_change",
    is_flag=True,
    help="Write shares in ascending order of daily change.",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def run(
    output_dir: Path | None,
    listing_url: str,
    page_count: int,
    timeout: float | None,
    verify_tls: bool,
    sort_by_change: bool,
    verbose: bool,
) -> None:
    """Scrape the listing unless today's file already exists.

    \b
    Examples:
        sharescraper run
        sharescraper run --output-dir data --pages 2
        sharescraper run --timeout 30 --verify-tls
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = ScraperSettings(listing_url=listing_url, page_count=page_count)
    driver = ShareDriver(
        scraper=ShareTableScraper(settings),
        output_dir=output_dir or default_output_dir(),
        fetcher_config=FetcherConfig(verify_tls=verify_tls, timeout=timeout),
        sort_by_change=sort_by_change,
    )

    try:
        result = driver.run()
    except (TransientException, ScraperAssumptionException) as e:
        raise click.ClickException(str(e)) from e

    match result:
        case AlreadyExists(path=path):
            click.echo(f"File already exists. Nothing written: {path}")
        case Written(path=path, record_count=record_count):
            click.echo(f"Successfully written {record_count} shares to {path}")


@cli.command("show-columns")
def show_columns() -> None:
    """Print the table column used for each share field."""
    for field, index in ColumnMap().model_dump().items():
        click.echo(f"{field:<16} {index}")


def main() -> None:
    """Entry point for the ``sharescraper`` console script."""
    cli()
