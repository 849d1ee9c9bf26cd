"""Page fetcher for turning URLs into parsed pages.

SyncRequestManager owns the httpx.Client for a run and is responsible for:

- Fetching URLs with the configured client options
- Converting HTTP responses to Response objects
- Parsing responses into LxmlPageElement pages
- Scoping the lifetime of pages opened from links

Only static HTML is fetched: no scripts run and no styles are computed.
Non-2xx responses are logged and parsed anyway, since the listing site
occasionally serves usable tables with an error status.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from sharescraper.common.exceptions import (
    FetchError,
    RequestTimeoutException,
)
from sharescraper.common.lxml_page_element import LxmlPageElement
from sharescraper.common.page_element import Link, PageElement
from sharescraper.data_types import Response

logger = logging.getLogger(__name__)

CHROME_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class FetcherConfig:
    """Client options for SyncRequestManager.

    Attributes:
        verify_tls: Verify server certificates. Off by default because the
            listing site has been served with certificates httpx rejects.
        timeout: Request timeout in seconds. None means wait indefinitely.
        user_agent: User-Agent header sent with every request.
        follow_redirects: Follow 3xx responses.
    """

    verify_tls: bool = False
    timeout: float | None = None
    user_agent: str = CHROME_USER_AGENT
    follow_redirects: bool = True


class PageFetcher(Protocol):
    """What the driver needs from a fetcher."""

    def get_page(self, url: str) -> PageElement: ...

    def open_link(self, link: Link) -> Any:
        """Context manager yielding the page behind ``link``."""
        ...

    def close(self) -> None: ...


class SyncRequestManager:
    """Fetches pages over HTTP with a single httpx.Client.

    Example::

        with SyncRequestManager(FetcherConfig(timeout=30.0)) as manager:
            listing = manager.get_page(url)
            for link in links:
                with manager.open_link(link) as page:
                    ...
    """

    def __init__(
        self,
        config: FetcherConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the request manager.

        Args:
            config: Client options. Defaults to FetcherConfig().
            client: Optional pre-built client, e.g. one with a mock
                transport. The manager closes it on close().
        """
        self.config = config or FetcherConfig()
        if client is not None:
            self._client = client
        else:
            self._client = httpx.Client(
                verify=self.config.verify_tls,
                timeout=self.config.timeout,
                follow_redirects=self.config.follow_redirects,
                headers={"User-Agent": self.config.user_agent},
            )

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> SyncRequestManager:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def fetch(self, url: str) -> Response:
        """Fetch a URL and return the Response, whatever its status.

        Raises:
            RequestTimeoutException: If the request times out.
            FetchError: On any other transport failure.
        """
        try:
            http_response = self._client.get(url)
        except httpx.TimeoutException as e:
            raise RequestTimeoutException(
                url=url, timeout_seconds=self.config.timeout
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(url, str(e) or type(e).__name__) from e

        if not http_response.is_success:
            logger.warning(
                f"HTTP {http_response.status_code} from {url}, parsing anyway",
                extra={"url": url, "status_code": http_response.status_code},
            )

        return Response(
            status_code=http_response.status_code,
            content=http_response.content,
            url=str(http_response.url),
        )

    def get_page(self, url: str) -> LxmlPageElement:
        """Fetch a URL and parse it into a page.

        Raises:
            FetchError: If the page cannot be retrieved.
            ScraperAssumptionException: If the body cannot be parsed as HTML.
        """
        response = self.fetch(url)
        logger.debug(f"Fetched {response.url} ({len(response.content)} bytes)")
        return LxmlPageElement.from_html(response.content, response.url)

    @contextmanager
    def open_link(self, link: Link) -> Iterator[LxmlPageElement]:
        """Open a link as a new page, releasing the page on exit."""
        page = self.get_page(link.url)
        try:
            yield page
        finally:
            page.release()
