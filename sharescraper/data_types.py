"""Core data types for the share scraper.

- Share: one row of the components table, validated by pydantic.
- Response: what the fetcher got back for a URL.
- AlreadyExists / Written: the two outcomes of a run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

from pydantic import ConfigDict, Field
from pydantic.dataclasses import dataclass as pydantic_dataclass

CSV_FIELDS = (
    "name",
    "latest_price",
    "change",
    "change_3_months",
    "change_6_months",
    "change_1_year",
)


@pydantic_dataclass(frozen=True, config=ConfigDict(allow_inf_nan=False))
class Share:
    """A single share entry from the index components listing.

    Shares order by daily ``change`` alone, and the comparison truncates the
    difference to an int: two shares whose changes differ by less than 1.0
    compare as neither less nor greater. Equality and hashing still use all
    six fields.

    Attributes:
        name: Name of the traded entity.
        latest_price: Price at the last market close.
        change: Daily change in percent.
        change_3_months: Change over 3 months in percent.
        change_6_months: Change over 6 months in percent.
        change_1_year: Change over 1 year in percent.
    """

    name: Annotated[str, Field(min_length=1)]
    latest_price: float
    change: float
    change_3_months: float
    change_6_months: float
    change_1_year: float

    def compare_to(self, other: Share) -> int:
        """Sign of the truncated difference in daily change."""
        return int(self.change - other.change)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Share):
            return NotImplemented
        return self.compare_to(other) < 0

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Share):
            return NotImplemented
        return self.compare_to(other) <= 0

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Share):
            return NotImplemented
        return self.compare_to(other) > 0

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Share):
            return NotImplemented
        return self.compare_to(other) >= 0

    def csv_row(self) -> list[str]:
        """Fields in output order, numbers rendered with ``repr``."""
        return [
            self.name,
            repr(self.latest_price),
            repr(self.change),
            repr(self.change_3_months),
            repr(self.change_6_months),
            repr(self.change_1_year),
        ]

    def csv_format(self) -> str:
        return ",".join(self.csv_row())

    def __str__(self) -> str:
        return (
            f"[name: {self.name} | latestPrice: {self.latest_price}"
            f" | change: {self.change}"
            f" | change 3 Mo: {self.change_3_months}"
            f" | change 6 Mo: {self.change_6_months}"
            f" | change 1 Y: {self.change_1_year}]"
        )


@dataclass
class Response:
    """HTTP response from fetching a page.

    Modeled after httpx.Response. Non-2xx responses are still returned; the
    status code is kept so callers can log it.

    Attributes:
        status_code: HTTP status code (200, 404, etc.).
        content: Raw response bytes.
        url: Final URL after any redirects.
    """

    status_code: int
    content: bytes
    url: str


@dataclass(frozen=True)
class AlreadyExists:
    """The output file for this run's date was already present.

    Nothing was fetched beyond the listing page and nothing was written.
    """

    path: Path


@dataclass(frozen=True)
class Written:
    """The output file was written.

    Attributes:
        path: Location of the CSV file.
        record_count: Number of share rows in the file.
    """

    path: Path
    record_count: int


RunResult = AlreadyExists | Written
