"""Tests for the exception hierarchy and message formatting."""

import pytest

from refscrape.common.exceptions import (
    FormatError,
    HTMLStructuralAssumptionException,
    PageNotFound,
    ScraperAssumptionException,
    TooManyRequests,
    TransientException,
)


class TestScraperAssumptionException:
    def test_message_only(self):
        """Without a URL or context the message shall stand alone."""
        exc = ScraperAssumptionException("Layout changed")

        assert str(exc) == "Layout changed"
        assert exc.context == {}

    def test_url_and_context_formatted(self):
        exc = ScraperAssumptionException(
            "Layout changed",
            request_url="https://myanimelist.net/anime/1/",
            context={"selector": "#content"},
        )

        assert str(exc) == (
            "Layout changed\n"
            "URL: https://myanimelist.net/anime/1/\n"
            "Context:\n"
            "  selector: #content"
        )


class TestHTMLStructuralAssumptionException:
    @pytest.mark.parametrize(
        ("expected_min", "expected_max", "phrase"),
        [
            (1, None, "at least 1"),
            (1, 1, "exactly 1"),
            (1, 3, "between 1 and 3"),
        ],
    )
    def test_expected_count_phrase(self, expected_min, expected_max, phrase):
        exc = HTMLStructuralAssumptionException(
            selector="#content > table",
            selector_type="css",
            description="content table",
            expected_min=expected_min,
            expected_max=expected_max,
            actual_count=0,
        )

        assert f"Expected {phrase} elements" in exc.message
        assert "'content table'" in exc.message

    def test_unlimited_max_in_context(self):
        exc = HTMLStructuralAssumptionException(
            selector="h2",
            selector_type="css",
            description="headers",
            expected_min=1,
            expected_max=None,
            actual_count=0,
        )

        assert exc.context["expected_max"] == "unlimited"
        assert isinstance(exc, ScraperAssumptionException)


class TestFormatError:
    def test_attributes(self):
        exc = FormatError("users", "'type:id'")

        assert exc.value == "users"
        assert exc.expected == "'type:id'"
        assert "'users' does not match 'type:id'" in str(exc)


class TestHttpErrors:
    """PageNotFound is terminal; TooManyRequests is transient."""

    def test_page_not_found(self):
        exc = PageNotFound("https://myanimelist.net/anime/99/")

        assert exc.status_code == 404
        assert str(exc) == "HTTP 404 from https://myanimelist.net/anime/99/"
        assert not isinstance(exc, TransientException)
        assert not isinstance(exc, ScraperAssumptionException)

    def test_too_many_requests_with_retry_after(self):
        exc = TooManyRequests("https://myanimelist.net/", retry_after="60")

        assert isinstance(exc, TransientException)
        assert str(exc) == (
            "HTTP 429 from https://myanimelist.net/ (Retry-After: 60)"
        )

    def test_too_many_requests_without_retry_after(self):
        exc = TooManyRequests("https://myanimelist.net/")

        assert exc.retry_after is None
        assert str(exc) == "HTTP 429 from https://myanimelist.net/"
