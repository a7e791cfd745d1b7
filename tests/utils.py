"""Test utilities shared across the refscrape tests."""

from collections.abc import Iterable
from typing import Any

from lxml import html
from lxml.html import HtmlElement


class DictMapping:
    """In-memory IdentityMapping that records every lookup."""

    def __init__(self, records: dict[tuple[str, int], Any]) -> None:
        self.records = records
        self.lookups: list[tuple[str, int]] = []

    def lookup(self, key: str, external_id: int) -> Any | None:
        self.lookups.append((key, external_id))
        return self.records.get((key, external_id))


def children_of(markup: str) -> list[HtmlElement]:
    """Parse a fragment wrapped in a <div> and return the div's children."""
    return list(html.fragment_fromstring(markup, create_parent="div"))


def tags(nodes: Iterable[HtmlElement | str]) -> list[str]:
    """Tag names of the nodes, for compact assertions.

    Loose text shows up as ``"#text"``.
    """
    return ["#text" if isinstance(node, str) else node.tag for node in nodes]
