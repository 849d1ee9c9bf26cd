"""Checked HTML element wrapper for safe XPath querying.

CheckedHtmlElement wraps an lxml.html.HtmlElement and validates the number of
nodes each query returns, so a changed page layout surfaces as a clear
HTMLStructuralAssumptionException instead of an IndexError deep in the
extraction code.
"""

from __future__ import annotations

from typing import overload

from lxml.html import HtmlElement

from sharescraper.common.exceptions import (
    HTMLStructuralAssumptionException,
)


class CheckedHtmlElement:
    """Wrapper around HtmlElement with count-validated XPath queries.

    Attribute access that isn't defined here falls through to the wrapped
    element, so the wrapper can stand in for a plain HtmlElement.
    """

    def __init__(self, element: HtmlElement, request_url: str = "") -> None:
        """Initialize the checked element wrapper.

        Args:
            element: The lxml HtmlElement to wrap.
            request_url: Optional URL for error context.
        """
        self._element = element
        self._request_url = request_url

    @overload
    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
        *,
        type: type[str],
    ) -> list[str]: ...

    @overload
    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]: ...

    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
        *,
        type: type[str] | None = None,
    ) -> list[CheckedHtmlElement] | list[str]:
        """Execute XPath query with count validation.

        Args:
            xpath: XPath expression to execute.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of results expected (default: 1).
            max_count: Maximum number of results expected (None = unlimited).
            type: Pass `str` to keep only string results (text nodes and
                attribute values). If omitted, only elements are kept.

        Returns:
            Matching results in document order, filtered by type.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match expectations.

        Example::

            tree = CheckedHtmlElement(lxml.html.fromstring(html))
            rows = tree.checked_xpath(".//tbody//tr", "share rows")
            stamps = tree.checked_xpath("//td[5]/text()", "stamp", type=str)
        """
        results = self._element.xpath(xpath)
        # Scalar XPath results (count(), string()) are treated as no match.
        if not isinstance(results, list):
            results = []

        matched: list[CheckedHtmlElement] | list[str]
        if type is str:
            matched = [str(r) for r in results if isinstance(r, str)]
        else:
            matched = [
                CheckedHtmlElement(r, self._request_url)
                for r in results
                if isinstance(r, HtmlElement)
            ]

        actual_count = len(matched)
        if actual_count < min_count or (
            max_count is not None and actual_count > max_count
        ):
            raise HTMLStructuralAssumptionException(
                selector=xpath,
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=actual_count,
                request_url=self._request_url,
            )
        return matched

    @property
    def element(self) -> HtmlElement:
        """The wrapped lxml element."""
        return self._element

    def __getattr__(self, name: str):
        return getattr(self._element, name)
