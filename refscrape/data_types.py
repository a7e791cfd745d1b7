"""Data types shared between the fetcher, the parsers and site scrapers.

These types are designed to be:

1. Immutable - frozen dataclasses, built once and handed downstream
2. Explicit - entity kinds are an Enum, and an unknown kind is None rather
   than a guess
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Optional, Protocol, Union

from lxml import etree, html
from lxml.html import HtmlElement

from refscrape.common.exceptions import ScraperAssumptionException

# Section name for content that precedes the first header.
NO_SECTION = None

SectionName = Optional[str]
# Loose text between elements is bucketed as a plain str
SectionNode = Union[HtmlElement, str]
SectionMap = MappingProxyType[SectionName, tuple[SectionNode, ...]]


@dataclass(frozen=True)
class Document:
    """The response to a single fetch, as returned by the Fetcher.

    The body is kept exactly as the server sent it. ``tree()`` parses it
    into a new lxml tree on every call, so a caller that edits its tree
    never affects another caller.

    Attributes:
        url: The URL that was fetched (after redirects).
        status_code: HTTP status code of the response.
        headers: Response headers.
        content: Raw response body.
        text: Response body decoded by the HTTP client.
        encoding: Charset from the Content-Type header, if any.
    """

    url: str
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes = b""
    text: str = ""
    encoding: str | None = None

    def tree(self) -> HtmlElement:
        """Parse the body into a fresh lxml tree.

        Without a header charset the raw bytes go to lxml, which detects
        the encoding from a BOM or ``<meta charset>``. Links in the tree
        are made absolute against ``url``.

        Raises:
            ScraperAssumptionException: If the body cannot be parsed.
        """
        body = self.content if self.content.strip() else b"<html></html>"
        try:
            parser = (
                html.HTMLParser(encoding=self.encoding)
                if self.encoding
                else None
            )
            root = html.document_fromstring(body, parser=parser)
        except (etree.ParserError, LookupError) as e:
            raise ScraperAssumptionException(
                f"Failed to parse HTML: {e}",
                request_url=self.url,
                context={"encoding": self.encoding, "error": str(e)},
            ) from e
        root.make_links_absolute(self.url, resolve_base_href=True)
        return root


@dataclass(frozen=True)
class Reference:
    """A ``type:id`` pair decoded from a reference string.

    Attributes:
        type: The record type name (e.g. ``"users"``).
        id: The numeric id; 0 when the id text was not numeric.
    """

    type: str
    id: int

    def __str__(self) -> str:
        return f"{self.type}:{self.id}"


class EntityKind(Enum):
    """Kinds of entity that MyAnimeList links can point to.

    Values are the path segment used in canonical URLs.
    """

    ANIME = "anime"
    MANGA = "manga"
    PEOPLE = "people"
    CHARACTER = "character"

    @classmethod
    def from_segment(cls, segment: str) -> EntityKind | None:
        """Return the kind for a URL path segment, or None if unknown."""
        try:
            return cls(segment)
        except ValueError:
            return None


class IdentityMapping(Protocol):
    """Lookup of internal records by third-party identity.

    Implemented by the caller's persistence layer. ``lookup`` returns the
    record mapped to ``(key, external_id)`` or None when there is no
    mapping.
    """

    def lookup(self, key: str, external_id: int) -> Any | None: ...
