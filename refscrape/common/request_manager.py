"""HTTP fetching for scrape tasks.

The Fetcher is responsible for:

- Maintaining the HTTP client (httpx.Client)
- Classifying the two status codes the scrapers care about (404 and 429)
- Converting responses to Document objects
- Remembering each Document for the rest of the scrape task

One Fetcher belongs to one scrape task and is not shared between threads.
It never retries: TooManyRequests is reported to the caller, whose scheduler
decides when to try again.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from refscrape.common.exceptions import PageNotFound, TooManyRequests
from refscrape.data_types import Document

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "refscrape/0.1 (reference-data ingestion)",
}


class Fetcher:
    """Fetches pages for a single scrape task.

    Example::

        with Fetcher(timeout=30.0) as fetcher:
            document = fetcher.get("https://myanimelist.net/anime/1/")
            again = fetcher.get("https://myanimelist.net/anime/1/")
            assert again is document  # served from the task's cache
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            client: Optional httpx client to use. A client passed in is not
                closed by this fetcher.
            timeout: Request timeout in seconds for the owned client. None
                means no timeout (default); deadlines belong to the caller.
            headers: Headers for the owned client. Defaults to
                DEFAULT_HEADERS.
        """
        self._owns_client = client is None
        if client is None:
            client = httpx.Client(
                timeout=timeout,
                headers=headers if headers is not None else DEFAULT_HEADERS,
                follow_redirects=True,
            )
        self._client = client
        self._documents: dict[str, Document] = {}

    def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> Fetcher:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def get(self, url: str) -> Document:
        """Fetch a URL once and return its Document.

        Args:
            url: Absolute URL to fetch.

        Returns:
            The Document for the URL. Statuses other than 404 and 429 are
            returned as-is for the scraper to interpret.

        Raises:
            PageNotFound: If the server returned 404.
            TooManyRequests: If the server returned 429.
        """
        cached = self._documents.get(url)
        if cached is not None:
            logger.debug(f"Using cached document for {url}")
            return cached

        logger.debug(f"Fetching {url}")
        http_response = self._client.get(url)

        if http_response.status_code == 404:
            logger.warning(
                f"Page not found: {url}", extra={"url": url, "status": 404}
            )
            raise PageNotFound(url)
        if http_response.status_code == 429:
            retry_after = http_response.headers.get("Retry-After")
            logger.warning(
                f"Rate limited: {url}",
                extra={"url": url, "status": 429, "retry_after": retry_after},
            )
            raise TooManyRequests(url, retry_after)

        document = Document(
            url=str(http_response.url),
            status_code=http_response.status_code,
            headers=dict(http_response.headers),
            content=http_response.content,
            text=http_response.text,
            encoding=http_response.charset_encoding,
        )
        self._documents[url] = document
        return document
