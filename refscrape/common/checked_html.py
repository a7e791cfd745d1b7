"""Checked HTML element wrapper for locating page containers.

CheckedHtmlElement wraps an lxml HtmlElement and validates selector results
against expected counts, so a page whose layout changed fails loudly at the
container that moved instead of producing empty sections downstream.
"""

from __future__ import annotations

from lxml.html import HtmlElement

from refscrape.common.exceptions import (
    HTMLStructuralAssumptionException,
)


class CheckedHtmlElement:
    """Wrapper around HtmlElement with validated selectors.

    Example::

        page = CheckedHtmlElement(document.tree(), document.url)
        table = page.checked_css("#content > table", "content table")[0]
        heading = page.first_css("#contentWrapper h1", "page header")
    """

    def __init__(self, element: HtmlElement, request_url: str = "") -> None:
        """Initialize the checked element wrapper.

        Args:
            element: The lxml HtmlElement to wrap.
            request_url: Optional URL for error context.
        """
        self._element = element
        self._request_url = request_url

    @property
    def element(self) -> HtmlElement:
        """The wrapped lxml element."""
        return self._element

    def checked_css(
        self,
        selector: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]:
        """Execute CSS selector query with count validation.

        Args:
            selector: CSS selector expression.
            description: Human-readable description of what's being selected.
            min_count: Minimum number of elements expected (default: 1).
            max_count: Maximum number of elements expected (None = unlimited).

        Returns:
            Matching elements, each wrapped for nested checked queries.

        Raises:
            HTMLStructuralAssumptionException: If count doesn't match
                expectations or the selector is invalid.
        """
        try:
            results = self._element.cssselect(selector)
        except Exception as e:
            raise HTMLStructuralAssumptionException(
                selector=selector,
                selector_type="css",
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=0,
                request_url=self._request_url,
            ) from e

        actual_count = len(results)
        if actual_count < min_count or (
            max_count is not None and actual_count > max_count
        ):
            raise HTMLStructuralAssumptionException(
                selector=selector,
                selector_type="css",
                description=description,
                expected_min=min_count,
                expected_max=max_count,
                actual_count=actual_count,
                request_url=self._request_url,
            )

        return [
            CheckedHtmlElement(result, self._request_url)
            for result in results
        ]

    def first_css(
        self, selector: str, description: str
    ) -> CheckedHtmlElement | None:
        """Return the first match for an optional selector, or None."""
        results = self.checked_css(selector, description, min_count=0)
        return results[0] if results else None

    def parent(self, description: str) -> CheckedHtmlElement:
        """Return the parent element.

        Raises:
            HTMLStructuralAssumptionException: If this is the root element.
        """
        parent = self._element.getparent()
        if parent is None:
            raise HTMLStructuralAssumptionException(
                selector="..",
                selector_type="xpath",
                description=description,
                expected_min=1,
                expected_max=1,
                actual_count=0,
                request_url=self._request_url,
            )
        return CheckedHtmlElement(parent, self._request_url)

    def previous_element(self) -> CheckedHtmlElement | None:
        """Return the previous sibling element, skipping comments."""
        sibling = self._element.getprevious()
        while sibling is not None and not isinstance(sibling.tag, str):
            sibling = sibling.getprevious()
        if sibling is None:
            return None
        return CheckedHtmlElement(sibling, self._request_url)

    def children(self) -> list[HtmlElement | str]:
        """Return the direct children of the wrapped element, in order.

        Text before the first child element is included as a ``str``; text
        after a child stays on that child's ``tail``.
        """
        leading = self._element.text
        children: list[HtmlElement | str] = [leading] if leading else []
        children.extend(self._element)
        return children

    def text_content(self) -> str:
        return self._element.text_content()
