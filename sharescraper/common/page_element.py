"""PageElement protocol for data extraction from parsed pages.

The scraper never touches lxml or httpx directly. It reads pages through the
PageElement protocol defined here, which lets tests hand it pages built from
literal HTML and lets the fetcher decide how a page is obtained.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class Link:
    """Represents an HTML <a> element with its resolved URL and text.

    Link is a pure value object; opening it is the fetcher's job.

    Attributes:
        url: Resolved absolute URL from the href attribute.
        text: Visible text content of the link.
        selector: The selector that found this link.
    """

    url: str
    text: str
    selector: str


class PageElement(Protocol):
    """Protocol for read-only querying of a parsed page or one of its elements.

    All query methods validate the number of results and raise
    HTMLStructuralAssumptionException if the count doesn't match.
    """

    @property
    def url(self) -> str:
        """URL of the page this element belongs to."""
        ...

    def query_xpath(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[PageElement]:
        """Query elements by XPath selector.

        Args:
            selector: XPath expression to execute.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            List of matching PageElement instances.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.
        """
        ...

    def query_xpath_strings(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[str]:
        """Query text nodes or attribute values by XPath selector.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.
        """
        ...

    def text_content(self) -> str:
        """Text content of the element and its descendants."""
        ...

    def first_child_text(self) -> str | None:
        """Text of the element's first child node.

        Returns:
            The leading text node when the element starts with text (even
            whitespace), otherwise the text of the first child node, or None
            when the element has no children at all.
        """
        ...

    def get_attribute(self, name: str) -> str | None:
        """Extract an attribute value, or None if it doesn't exist."""
        ...

    def find_links(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[Link]:
        """Find links matching an XPath selector.

        Returns:
            Link value objects with URLs resolved against the page URL.
            Anchors without an href are skipped.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.
        """
        ...

    def release(self) -> None:
        """Drop the parsed tree. The element must not be queried afterwards."""
        ...
