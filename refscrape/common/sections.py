"""Header-delimited section parsing.

Many pages lay out their content as a flat run of sibling nodes, with a
header element (an ``<h2>``, or a div styled as one) introducing each
region::

    <div>
      <a href="...">cover</a>          <- section None
      <h2>Alternative Titles</h2>
      <div class="spaceit_pad">...</div>  <- section "Alternative Titles"
      <h2>Information</h2>
      <div class="spaceit_pad">...</div>  <- section "Information"
    </div>

SectionParser walks those siblings in order and groups them under the
nearest preceding header. Content before the first header goes under
``NO_SECTION`` (None). Bare text between the siblings is kept as ``str``
items in the bucket it falls in.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from copy import deepcopy
from types import MappingProxyType

from lxml.html import HtmlElement

from refscrape.data_types import (
    NO_SECTION,
    SectionMap,
    SectionName,
    SectionNode,
)

logger = logging.getLogger(__name__)

NOISE_TAGS = ("script", "style", "iframe")


class SectionParser:
    """Split sibling nodes into named sections.

    Attributes:
        header_tags: Tag names that start a new section.
        header_classes: Class tokens that start a new section.
        noise_tags: Tags removed from content before it is bucketed.
    """

    def __init__(
        self,
        header_tags: Iterable[str] = ("h2",),
        header_classes: Iterable[str] = ("normal_header",),
        noise_tags: Iterable[str] = NOISE_TAGS,
    ) -> None:
        self.header_tags = frozenset(header_tags)
        self.header_classes = frozenset(header_classes)
        self.noise_tags = tuple(noise_tags)

    def parse(self, nodes: Iterable[SectionNode] | None) -> SectionMap:
        """Group nodes under the nearest preceding header.

        The input nodes are left untouched: each one is copied before noise
        is stripped from it, and the copy is what lands in the bucket.

        Loose text is content too. A string in ``nodes`` and the tail text
        of an element (such as the text right after a header) are bucketed
        as ``str`` items in document order. Whitespace-only text is skipped.

        Args:
            nodes: Sibling nodes in document order. None or empty input
                produces an empty map.

        Returns:
            A read-only mapping from section name to a tuple of nodes. Keys
            are in first-seen order; a header with no content after it still
            gets an empty bucket.
        """
        if not nodes:
            return MappingProxyType({})

        section: SectionName = NO_SECTION
        sections: dict[SectionName, list[SectionNode]] = {}
        for node in nodes:
            sections.setdefault(section, [])
            if isinstance(node, str):
                if node.strip():
                    sections[section].append(str(node))
                continue

            tail = node.tail
            if not self.is_noise(node):
                node = self._strip_noise(node)
                if self.is_header(node):
                    section = self.header_text(node)
                    sections.setdefault(section, [])
                else:
                    sections[section].append(node)
            if tail and tail.strip():
                sections[section].append(tail)

        logger.debug(
            f"Parsed {len(sections)} sections",
            extra={"sections": list(sections)},
        )
        return MappingProxyType(
            {name: tuple(content) for name, content in sections.items()}
        )

    def is_noise(self, node: HtmlElement) -> bool:
        return node.tag in self.noise_tags

    def is_header(self, node: HtmlElement) -> bool:
        """Whether the node is a header marker (by tag or by class)."""
        # Comments and processing instructions have a non-string tag
        if not isinstance(node.tag, str):
            return False
        if node.tag in self.header_tags:
            return True
        classes = (node.get("class") or "").split()
        return any(cls in self.header_classes for cls in classes)

    @staticmethod
    def header_text(node: HtmlElement) -> str:
        """The stripped text of the node's own text children.

        Text inside nested elements (e.g. an "edit" link inside the header)
        is not part of the name.
        """
        return "".join(node.xpath("./text()")).strip()

    def _strip_noise(self, node: HtmlElement) -> HtmlElement:
        node = deepcopy(node)
        # The tail is bucketed separately as loose text
        node.tail = None
        if not self.noise_tags or not isinstance(node.tag, str):
            return node
        # Materialize before dropping; dropping while iterating skips nodes
        for noise in list(node.iterdescendants(*self.noise_tags)):
            noise.drop_tree()
        return node


_default_parser = SectionParser()


def parse_sections(nodes: Iterable[SectionNode] | None) -> SectionMap:
    """Parse nodes with the default header rules."""
    return _default_parser.parse(nodes)


def section_text(nodes: Iterable[SectionNode]) -> str:
    """Concatenated text of a bucket, loose text included."""
    return "".join(
        node if isinstance(node, str) else node.text_content()
        for node in nodes
    )
