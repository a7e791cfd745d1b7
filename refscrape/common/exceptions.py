"""Exception types for scraper errors.

This module defines the exception hierarchy shared by the section parser,
link resolver and fetcher. Assumption exceptions mean the scraper's view of
the page no longer matches reality; transient exceptions mean the caller may
try again later.
"""

from typing import Any


class ScraperAssumptionException(Exception):
    """Base class for scraper assumption violations.

    Scrapers make assumptions about website structure and URL formats. When
    these assumptions are violated, they raise clear, contextual exceptions
    that help diagnose whether the upstream layout changed.
    """

    def __init__(
        self,
        message: str,
        request_url: str = "",
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the assumption violation.
            request_url: The URL of the page being scraped, if known.
            context: Optional dict of additional context (selector, value).
        """
        self.message = message
        self.request_url = request_url
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        if self.request_url:
            parts.append(f"URL: {self.request_url}")

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class HTMLStructuralAssumptionException(ScraperAssumptionException):
    """Raised when HTML structure doesn't match expectations.

    Raised when a CSS or XPath selector returns a different number of
    elements than expected, which usually means the site's layout changed.

    Attributes:
        selector: The selector that was used.
        selector_type: Type of selector ("xpath" or "css").
        description: What was being selected.
        expected_min: Minimum number of elements expected.
        expected_max: Maximum number of elements expected (None = unlimited).
        actual_count: Number of elements found.
    """

    def __init__(
        self,
        selector: str,
        selector_type: str,
        description: str,
        expected_min: int,
        expected_max: int | None,
        actual_count: int,
        request_url: str = "",
    ) -> None:
        self.selector = selector
        self.selector_type = selector_type
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
            f"elements for '{description}', but found {actual_count}"
        )

        context = {
            "selector": selector,
            "selector_type": selector_type,
            "expected_min": expected_min,
            "expected_max": expected_max
            if expected_max is not None
            else "unlimited",
            "actual_count": actual_count,
        }

        super().__init__(message, request_url, context)


class FormatError(ScraperAssumptionException):
    """Raised when a URL or reference string has an unexpected shape.

    This indicates either a layout change upstream (links now point
    somewhere new) or corrupted reference data. It is never retried or
    guessed around.

    Attributes:
        value: The string that failed to parse.
        expected: Description of the format that was expected.
    """

    def __init__(
        self, value: str | None, expected: str, request_url: str = ""
    ) -> None:
        self.value = value
        self.expected = expected
        message = f"Unexpected format: {value!r} does not match {expected}"
        super().__init__(
            message, request_url, {"value": value, "expected": expected}
        )


class PageNotFound(Exception):
    """Raised when the source page returned 404.

    This is terminal: the resource is confirmed gone and the caller decides
    how to react (for example, marking the source entity as removed).

    Attributes:
        url: The URL that returned 404.
        status_code: Always 404.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        self.status_code = 404
        self.message = f"HTTP 404 from {url}"
        super().__init__(self.message)


class TransientException(Exception):
    """Base class for errors that might resolve on retry.

    The caller's scheduling layer is responsible for any retry or backoff;
    nothing in this package retries on its own.
    """

    pass


class TooManyRequests(TransientException):
    """Raised when the source returned 429.

    Attributes:
        url: The URL that was rate limited.
        status_code: Always 429.
        retry_after: The Retry-After header value, if the server sent one.
    """

    def __init__(self, url: str, retry_after: str | None = None) -> None:
        self.url = url
        self.status_code = 429
        self.retry_after = retry_after
        self.message = f"HTTP 429 from {url}"
        if retry_after is not None:
            self.message += f" (Retry-After: {retry_after})"
        super().__init__(self.message)
