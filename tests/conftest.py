"""Shared fixtures for the share scraper tests."""

import asyncio
import socket
import threading
import time
from collections.abc import Generator
from contextlib import closing

import pytest
from aiohttp import web

from sharescraper.common.lxml_page_element import LxmlPageElement
from tests.mock_server import (
    HITS,
    create_app,
    generate_listing_html,
    page_count,
)
from tests.utils import FakeFetcher


@pytest.fixture
def listing_html() -> str:
    """HTML of the first listing page.

    Returns:
        Listing page 1 with the default shares and pager.
    """
    return generate_listing_html(1)


@pytest.fixture
def listing_page(listing_html: str) -> LxmlPageElement:
    """The first listing page, parsed."""
    return LxmlPageElement.from_html(
        listing_html, "https://shares.example/components?p=1"
    )


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    """A fetcher serving every mock listing page without a network.

    Returns:
        FakeFetcher keyed on ``https://shares.example/components?p=N``.
    """
    pages = {
        f"https://shares.example/components?p={i}": generate_listing_html(i)
        for i in range(1, page_count() + 1)
    }
    return FakeFetcher(pages)


# =============================================================================
# aiohttp test server fixtures
# =============================================================================


def find_free_port() -> int:
    """Find a free port on localhost."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


class AioHttpTestServer:
    """Wrapper to run aiohttp server in a background thread."""

    def __init__(self, app: web.Application, port: int) -> None:
        self.app = app
        self.port = port
        self.host = "127.0.0.1"
        self._loop: asyncio.AbstractEventLoop | None = None
        self._runner: web.AppRunner | None = None
        self._thread: threading.Thread | None = None
        self._started = threading.Event()

    @property
    def url(self) -> str:
        """Get the base URL of the server."""
        return f"http://{self.host}:{self.port}"

    @property
    def hits(self) -> list[str]:
        """Paths (with query) requested so far, in order."""
        return self.app[HITS]

    def start(self) -> None:
        """Start the server in a background thread."""
        self._thread = threading.Thread(target=self._run_server, daemon=True)
        self._thread.start()
        self._started.wait(timeout=5.0)
        time.sleep(0.05)

    def _run_server(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        async def start() -> None:
            self._runner = web.AppRunner(self.app)
            await self._runner.setup()
            site = web.TCPSite(self._runner, self.host, self.port)
            await site.start()

        self._loop.run_until_complete(start())
        self._started.set()
        self._loop.run_forever()

    def stop(self) -> None:
        """Stop the server and clean up resources."""
        if self._loop and self._runner:
            runner = self._runner
            future = asyncio.run_coroutine_threadsafe(
                runner.cleanup(), self._loop
            )
            future.result(timeout=2.0)

        if self._loop:
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread:
            self._thread.join(timeout=2.0)


@pytest.fixture
def share_server() -> Generator[AioHttpTestServer, None, None]:
    """Start the mock share listing site on a random port.

    Yields:
        AioHttpTestServer instance with the mock site running.
    """
    app = create_app()
    port = find_free_port()
    server = AioHttpTestServer(app, port)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def server_url(share_server: AioHttpTestServer) -> str:
    """Base URL of the mock site (e.g. "http://127.0.0.1:8080")."""
    return share_server.url
