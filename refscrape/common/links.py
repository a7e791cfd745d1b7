"""Resolving third-party links and reference strings to internal records.

Canonical MyAnimeList URLs encode the entity kind and numeric id in the
path, e.g. ``https://myanimelist.net/anime/5114/Fullmetal_Alchemist``.
LinkResolver decodes those URLs and asks an IdentityMapping for the internal
record mapped to ``("myanimelist/anime", 5114)``.

Reference strings (``"users:42"``) name internal records directly and are
decoded by resolve_reference. ReferenceRegistry maps their type names to
loader functions registered up front.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any, Generic, TypeVar, overload

from lxml.html import HtmlElement
from typing_extensions import assert_never

from refscrape.common.exceptions import FormatError
from refscrape.data_types import EntityKind, IdentityMapping, Reference

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "myanimelist"
DEFAULT_HOST = "myanimelist.net"

_LOOSE_INT = re.compile(r"\s*([+-]?\d+)")

T = TypeVar("T")


@overload
def parse_canonical_id(
    url: str, expected_type: None = None, *, host: str = DEFAULT_HOST
) -> tuple[str, str]: ...


@overload
def parse_canonical_id(
    url: str, expected_type: str, *, host: str = DEFAULT_HOST
) -> str: ...


def parse_canonical_id(
    url: str, expected_type: str | None = None, *, host: str = DEFAULT_HOST
) -> tuple[str, str] | str:
    """Extract the id (and kind) from a canonical URL.

    Args:
        url: The URL from the source site.
        expected_type: The path segment the URL must carry, e.g.
            ``"anime"``. When given, only the id is returned and the host is
            not checked.
        host: The host canonical URLs live on, used when no type is given.

    Returns:
        The id string if ``expected_type`` was given, otherwise a
        ``(kind, id)`` tuple of strings.

    Raises:
        FormatError: If the URL does not have the canonical shape.

    Example::

        >>> parse_canonical_id("https://site/anime/5114/title", "anime")
        '5114'
        >>> parse_canonical_id("https://myanimelist.net/manga/2/Berserk")
        ('manga', '2')
    """
    if expected_type is not None:
        pattern = rf"/{re.escape(expected_type)}/(\d+)/"
        match = re.search(pattern, url)
        if match is None:
            raise FormatError(url, pattern)
        return match.group(1)

    pattern = rf"{re.escape(host)}/([^/]+)/(\d+)/"
    match = re.search(pattern, url)
    if match is None:
        raise FormatError(url, pattern)
    return match.group(1), match.group(2)


def _loose_int(text: str) -> int:
    match = _LOOSE_INT.match(text)
    return int(match.group(1)) if match else 0


def resolve_reference(ref: str) -> Reference:
    """Decode a ``type:id`` reference string.

    The string is split on the first ``:``. The id is parsed loosely:
    leading digits are used and anything that is not a number gives an id
    of 0 instead of an error. Callers that need to tell "id 0" apart from
    "unparseable id" must check the id text themselves.

    Args:
        ref: The reference string, e.g. ``"users:42"``.

    Returns:
        The decoded Reference.

    Raises:
        FormatError: If the string has no ``:`` delimiter.
    """
    type_name, sep, id_text = ref.partition(":")
    if not sep:
        raise FormatError(ref, "'type:id'")
    return Reference(type=type_name, id=_loose_int(id_text))


class LinkResolver:
    """Decode canonical URLs and resolve them against an identity mapping.

    Attributes:
        mapping: The identity mapping to query.
        source: Name of the third-party source, used to namespace mapping
            keys (``"myanimelist/anime"``).
        host: Host name that canonical URLs are expected on.
    """

    def __init__(
        self,
        mapping: IdentityMapping,
        source: str = DEFAULT_SOURCE,
        host: str = DEFAULT_HOST,
    ) -> None:
        self.mapping = mapping
        self.source = source
        self.host = host

    def kind_of(self, url: str) -> EntityKind | None:
        """The EntityKind of a canonical URL, or None if the kind is unknown.

        Raises:
            FormatError: If the URL is not canonical.
        """
        kind, _ = parse_canonical_id(url, host=self.host)
        return EntityKind.from_segment(kind)

    def canonical_url(self, kind: EntityKind, external_id: int) -> str:
        """Build the canonical URL for an entity.

        The result parses back to ``(kind.value, str(external_id))``.
        """
        return f"https://{self.host}/{kind.value}/{external_id}/"

    def mapping_key(self, kind: str) -> str:
        return f"{self.source}/{kind}"

    def resolve_link(self, link: str | HtmlElement) -> Any | None:
        """Load the internal record that a link points at.

        Args:
            link: A canonical URL, or an ``<a>`` element whose href is one.

        Returns:
            The mapped record, or None when the mapping has no entry. An
            unmapped link is expected, not an error.

        Raises:
            FormatError: If the URL is not canonical or the element has no
                href.
        """
        match link:
            case str():
                url = link
            case HtmlElement():
                href = link.get("href")
                if href is None:
                    raise FormatError(None, "<a> element with an href")
                url = href
            case _:
                assert_never(link)

        kind, external_id = parse_canonical_id(url, host=self.host)
        key = self.mapping_key(kind)
        record = self.mapping.lookup(key, int(external_id))
        if record is None:
            logger.debug(
                f"No mapping for {key} {external_id}",
                extra={"url": url, "key": key, "external_id": external_id},
            )
        return record


class ReferenceRegistry(Generic[T]):
    """Explicit registry of loaders keyed by reference type name.

    Loaders are registered at startup; a reference whose type was never
    registered loads as None.

    Example::

        registry = ReferenceRegistry()
        registry.register("users", users.get)
        registry.load("users:42")  # -> users.get(42)
        registry.load("widgets:1")  # -> None
    """

    def __init__(self) -> None:
        self._loaders: dict[str, Callable[[int], T | None]] = {}

    def register(
        self, type_name: str, loader: Callable[[int], T | None]
    ) -> None:
        """Register the loader for a reference type.

        Raises:
            ValueError: If a loader is already registered for the type.
        """
        if type_name in self._loaders:
            raise ValueError(f"Loader already registered for '{type_name}'")
        self._loaders[type_name] = loader

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._loaders

    def load(self, ref: str) -> T | None:
        """Decode a reference string and load its record.

        Raises:
            FormatError: If the reference has no ``:`` delimiter.
        """
        reference = resolve_reference(ref)
        loader = self._loaders.get(reference.type)
        if loader is None:
            logger.debug(f"No loader registered for '{reference.type}'")
            return None
        return loader(reference.id)
