"""Shared fixtures for the refscrape tests."""

import asyncio
import socket
import threading
import time
from collections import Counter
from collections.abc import Generator
from contextlib import closing

import pytest
from aiohttp import web

from refscrape.common.request_manager import Fetcher
from tests.mock_server import HITS, create_app
from tests.utils import DictMapping


def find_free_port() -> int:
    """Find a free port on localhost.

    Returns:
        An available port number.
    """
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

    @property
    def url(self) -> str:
        """Get the base URL of the server."""
        return f"http://{self.host}:{self.port}"

    @property
    def hits(self) -> Counter:
        """Requests received so far, keyed by path."""
        return self.app[HITS]

    def start(self) -> None:
        """Start the server in a background thread."""
        self._thread = threading.Thread(target=self._run_server, daemon=True)
        self._thread.start()
        # Give the server time to start
        time.sleep(0.1)

    def _run_server(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        async def start() -> None:
            self._runner = web.AppRunner(self.app)
            await self._runner.setup()
            site = web.TCPSite(self._runner, self.host, self.port)
            await site.start()

        self._loop.run_until_complete(start())
        self._loop.run_forever()

    def stop(self) -> None:
        """Stop the server and clean up resources."""
        if self._loop and self._runner:
            runner = self._runner
            future = asyncio.run_coroutine_threadsafe(
                runner.cleanup(), self._loop
            )
            try:
                future.result(timeout=2.0)
            except Exception:
                pass  # Best effort cleanup

        if self._loop:
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread:
            self._thread.join(timeout=2.0)


@pytest.fixture
def mal_server() -> Generator[AioHttpTestServer, None, None]:
    """Start the mock MyAnimeList server on a free port.

    Yields:
        AioHttpTestServer instance with the mock app running.
    """
    app = create_app()
    port = find_free_port()
    server = AioHttpTestServer(app, port)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def server_url(mal_server: AioHttpTestServer) -> str:
    """Base URL of the mock server (e.g. "http://127.0.0.1:8080")."""
    return mal_server.url


@pytest.fixture
def fetcher() -> Generator[Fetcher, None, None]:
    """A fresh Fetcher for one test, closed afterwards."""
    with Fetcher(timeout=5.0) as f:
        yield f


@pytest.fixture
def mapping() -> DictMapping:
    """Identity mapping with a few known MyAnimeList records."""
    return DictMapping(
        {
            ("myanimelist/anime", 1): {"kind": "anime", "slug": "beetle-bebop"},
            ("myanimelist/anime", 5): {
                "kind": "anime",
                "slug": "beetle-bebop-heavens-log",
            },
            ("myanimelist/character", 1): {
                "kind": "character",
                "slug": "spike-stagbeetle",
            },
        }
    )
