"""Exception types for scraper errors.

Two families live here. Assumption exceptions mean the site no longer looks
the way the scraper expects (a selector matched the wrong number of nodes, a
cell no longer holds a number). Transient exceptions mean the page could not
be retrieved at all.
"""

from typing import Any


class ScraperAssumptionException(Exception):
    """Base class for scraper assumption violations.

    The scraper assumes a fixed table layout, fixed pagination anchors and a
    date stamp at a fixed location. When one of these assumptions breaks,
    a subclass of this exception describes which one and where.
    """

    def __init__(
        self,
        message: str,
        request_url: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the assumption violation.
            request_url: The URL of the page that triggered this error.
            context: Optional dict of additional context (selector, counts, etc).
        """
        self.message = message
        self.request_url = request_url
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        parts.append(f"URL: {self.request_url}")

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class HTMLStructuralAssumptionException(ScraperAssumptionException):
    """Raised when HTML structure doesn't match expectations.

    Raised when an XPath query returns a different number of nodes than
    expected, which usually means the listing page layout has changed.

    Attributes:
        selector: The XPath expression that was used.
        description: What the selector was meant to find.
        expected_min: Minimum number of nodes expected.
        expected_max: Maximum number of nodes expected (None = unlimited).
        actual_count: Number of nodes actually found.
    """

    def __init__(
        self,
        selector: str,
        description: str,
        expected_min: int,
        expected_max: int | None,
        actual_count: int,
        request_url: str,
    ) -> None:
        self.selector = selector
        self.description = description
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.actual_count = actual_count

        if expected_max is None:
            expected_str = f"at least {expected_min}"
        elif expected_min == expected_max:
            expected_str = f"exactly {expected_min}"
        else:
            expected_str = f"between {expected_min} and {expected_max}"

        message = (
            f"HTML structure mismatch: Expected {expected_str} "
            f"nodes for '{description}', but found {actual_count}"
        )

        context = {
            "selector": selector,
            "expected_min": expected_min,
            "expected_max": expected_max
            if expected_max is not None
            else "unlimited",
            "actual_count": actual_count,
        }

        super().__init__(message, request_url, context)


class CellParseError(ScraperAssumptionException):
    """Raised when a table cell does not hold a parsable number.

    The row extractor catches this and drops the row; it never escapes a
    run.

    Attributes:
        raw_text: The text that failed to parse, or None when the cell had
            no text node to read.
        share_name: Name of the share whose row was being parsed, if known.
    """

    def __init__(
        self,
        raw_text: str | None,
        request_url: str = "",
        share_name: str | None = None,
        column: str | None = None,
    ) -> None:
        self.raw_text = raw_text
        self.share_name = share_name
        self.column = column

        message = f"Cell text {raw_text!r} is not a number"
        context: dict[str, Any] = {}
        if share_name is not None:
            context["share"] = share_name
        if column is not None:
            context["column"] = column

        super().__init__(message, request_url, context)


class MissingLinkError(ScraperAssumptionException):
    """Raised for a pagination anchor that the listing page does not have.

    The site may list fewer pages than the configured page count. The driver
    reports this error through a callback and skips the page.

    Attributes:
        page_number: The ``?p=`` value that had no anchor.
    """

    def __init__(self, page_number: int, request_url: str) -> None:
        self.page_number = page_number
        super().__init__(
            f"No link to listing page {page_number}",
            request_url,
            {"page_number": page_number},
        )


class RunIdAssumptionException(ScraperAssumptionException):
    """Raised when the "last updated" stamp is missing or not date-shaped."""

    def __init__(self, raw_text: str | None, request_url: str) -> None:
        self.raw_text = raw_text
        super().__init__(
            f"Run identifier {raw_text!r} does not look like a date",
            request_url,
            {"raw_text": raw_text},
        )


class TransientException(Exception):
    """Base class for failures to retrieve a page.

    Unlike assumption exceptions, these say nothing about the scraper code.
    No retry is attempted; the run ends with the error.
    """

    pass


class FetchError(TransientException):
    """Raised when a page cannot be fetched.

    Attributes:
        url: The URL being fetched.
        reason: Short description of the failure.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        self.message = f"Failed to fetch {url}: {reason}"
        super().__init__(self.message)


class RequestTimeoutException(FetchError):
    """Raised when a request times out.

    Attributes:
        url: The URL that timed out.
        timeout_seconds: The configured timeout in seconds.
    """

    def __init__(self, url: str, timeout_seconds: float | None) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(url, f"timed out after {timeout_seconds}s")
