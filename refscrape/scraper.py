"""Base class for scrapers of MyAnimeList pages.

MyAnimeList pages share a two-column layout: a sidebar of ``<h2>``-separated
facts (alternative titles, information, statistics) and a main column whose
content is split by ``<h2>`` or ``.normal_header`` headers. This module finds
those columns and splits them into sections, leaving the choice of fields to
site-specific subclasses.

A subclass typically looks like::

    class AnimeScraper(MyAnimeListScraper):
        def synopsis(self, page: MyAnimeListPage) -> str | None:
            nodes = page.main_sections.get("Synopsis", ())
            text = self.clean_text("".join(n.text_content() for n in nodes))
            return None if self.is_placeholder(text) else text
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, ClassVar, overload

from lxml.html import HtmlElement

from refscrape.common.checked_html import CheckedHtmlElement
from refscrape.common.links import (
    DEFAULT_HOST,
    DEFAULT_SOURCE,
    LinkResolver,
    parse_canonical_id,
)
from refscrape.common.request_manager import Fetcher
from refscrape.common.sections import SectionParser
from refscrape.common.text_cleaning import (
    clean_html,
    clean_text,
    is_placeholder,
)
from refscrape.data_types import Document, IdentityMapping, SectionMap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MyAnimeListPage:
    """Everything a scraper reads from one fetched page.

    Built by MyAnimeListScraper.load() and never modified afterwards.

    Attributes:
        url: The page URL.
        document: The fetched response.
        root: The parsed tree of the document.
        header: The page's main ``<h1>`` text.
        sidebar_sections: Sections of the left column.
        main_sections: Sections of the main column; empty when the page
            has no headers there.
    """

    url: str
    document: Document
    root: HtmlElement
    header: str
    sidebar_sections: SectionMap
    main_sections: SectionMap

    @classmethod
    def from_document(
        cls, document: Document, parser: SectionParser
    ) -> MyAnimeListPage:
        """Locate the page's containers and split them into sections.

        Raises:
            HTMLStructuralAssumptionException: If the page does not have the
                standard MyAnimeList layout.
        """
        root = document.tree()
        page = CheckedHtmlElement(root, document.url)

        header = page.checked_css("#contentWrapper h1", "page header")[0]
        content = page.checked_css(
            "#content > table", "two-column content table"
        )[0]

        main = content.first_css(
            "td:last-child .js-scrollfix-bottom-rel", "main column"
        )
        if main is None:
            main = content.checked_css("#horiznav_nav", "main nav")[0].parent(
                "main column"
            )

        sidebar = content.first_css(
            "td:first-child .js-scrollfix-bottom", "sidebar column"
        )
        if sidebar is None:
            sidebar = main.previous_element()
        if sidebar is None:
            sidebar_sections: SectionMap = MappingProxyType({})
        else:
            first = sidebar.first_css("h2, .spaceit_pad", "sidebar header")
            sidebar_sections = parser.parse(
                first.parent("sidebar container").children()
                if first is not None
                else None
            )

        first = main.first_css("h2, .normal_header", "main header")
        main_sections = parser.parse(
            first.parent("main container").children()
            if first is not None
            else None
        )

        return cls(
            url=document.url,
            document=document,
            root=root,
            header=header.text_content().strip(),
            sidebar_sections=sidebar_sections,
            main_sections=main_sections,
        )


class MyAnimeListScraper:
    """Base scraper for one MyAnimeList page.

    One instance handles one URL for one scrape task and is not safe to
    share between threads. load() returns an immutable MyAnimeListPage;
    subclasses take that page as an argument rather than storing it.
    """

    BASE_URL: ClassVar[str] = "https://myanimelist.net/"
    SOURCE: ClassVar[str] = DEFAULT_SOURCE
    HOST: ClassVar[str] = DEFAULT_HOST

    def __init__(
        self,
        url: str,
        fetcher: Fetcher | None = None,
        mapping: IdentityMapping | None = None,
        parser: SectionParser | None = None,
    ) -> None:
        """Initialize the scraper.

        Args:
            url: The page to scrape.
            fetcher: The task's fetcher. A new one is created if omitted
                and closed by close().
            mapping: Identity mapping used by object_for_link.
            parser: Section parser; defaults to ``<h2>``/``.normal_header``.
        """
        self.url = url
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher if fetcher is not None else Fetcher()
        self.parser = parser or SectionParser()
        self.links = (
            LinkResolver(mapping, source=self.SOURCE, host=self.HOST)
            if mapping is not None
            else None
        )

    def close(self) -> None:
        """Close the fetcher if this scraper created it."""
        if self._owns_fetcher:
            self.fetcher.close()

    def __enter__(self) -> MyAnimeListScraper:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def base_url(self) -> str:
        return self.BASE_URL

    def load(self) -> MyAnimeListPage:
        """Fetch the page and build its snapshot.

        The fetcher caches the response for the task, so repeated calls do
        not hit the network again.

        Raises:
            PageNotFound: If the page returned 404.
            TooManyRequests: If the page returned 429.
            HTMLStructuralAssumptionException: If the layout is not the
                standard MyAnimeList one.
        """
        document = self.fetcher.get(self.url)
        page = MyAnimeListPage.from_document(document, self.parser)
        logger.info(
            f"Loaded {self.url}",
            extra={
                "url": self.url,
                "status": document.status_code,
                "sidebar_sections": list(page.sidebar_sections),
                "main_sections": list(page.main_sections),
            },
        )
        return page

    def clean_text(self, text: str) -> str:
        return clean_text(text)

    def clean_html(self, markup: str) -> str:
        return clean_html(markup)

    def is_placeholder(self, text: str) -> bool:
        return is_placeholder(text)

    @overload
    def id_for_url(self, url: str) -> tuple[str, str]: ...

    @overload
    def id_for_url(self, url: str, type: str) -> str: ...

    def id_for_url(
        self, url: str, type: str | None = None
    ) -> tuple[str, str] | str:
        """Extract the kind and id, or just the id, from a MyAnimeList URL.

        Raises:
            FormatError: If the URL is not canonical.
        """
        if type is None:
            return parse_canonical_id(url, host=self.HOST)
        return parse_canonical_id(url, type)

    def object_for_link(self, link: str | HtmlElement) -> Any | None:
        """Load the internal record for a MyAnimeList link or URL.

        Raises:
            RuntimeError: If the scraper was built without a mapping.
            FormatError: If the link is not canonical.
        """
        if self.links is None:
            raise RuntimeError(
                f"{type(self).__name__} has no identity mapping"
            )
        return self.links.resolve_link(link)
