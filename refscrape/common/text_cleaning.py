"""Free-text cleanup for scraped descriptions.

Synopses and biographies on MyAnimeList often end with an attribution line
such as ``[Written by MAL Rewrite]`` or ``(Source: ANN)``, and fields with no
data are filled with a sentence like "No synopsis has been added to this
title." These helpers remove the former and recognize the latter.
clean_html sanitises description markup for storage.
"""

from __future__ import annotations

import re

from lxml import html
from lxml_html_clean import Cleaner

SOURCE_LINE = re.compile(
    r"^[\[(](Written by .*|Source:.*)[\])]$", re.IGNORECASE
)
PLACEHOLDER_TEXT = re.compile(
    r"No .* has been added to this .*|this .* doesn't seem to have a",
    re.IGNORECASE,
)

LANGUAGES = {
    "Brazilian": "pt_br",
    "English": "en",
    "French": "fr",
    "German": "de",
    "Hebrew": "he",
    "Hungarian": "hu",
    "Italian": "it",
    "Japanese": "ja_jp",
    "Korean": "ko",
    "Spanish": "es",
}


def clean_text(text: str) -> str:
    """Remove attribution lines and stray carriage returns.

    Args:
        text: The raw text from the page.

    Returns:
        The text with every line that is entirely a bracketed or
        parenthesized "Written by ..." or "Source: ..." note removed, the
        remaining lines joined in their original order, and surrounding
        whitespace stripped.

    Example::

        >>> clean_text("[Source: Example]\\nReal content")
        'Real content'
    """
    lines = text.strip().split("\n")
    kept = [line for line in lines if not SOURCE_LINE.match(line.rstrip("\r"))]
    return "\n".join(kept).strip().replace("\r", "")


def is_placeholder(text: str) -> bool:
    """Whether the text is the site's "no data" boilerplate.

    A placeholder means the field is absent. Callers should treat it the
    same as a missing field, not as a short value.
    """
    return PLACEHOLDER_TEXT.search(text) is not None


def language_code(label: str) -> str | None:
    """Map a language label (e.g. ``"Japanese"``) to a locale code."""
    return LANGUAGES.get(label.strip())


# Formatting kept in description HTML; other tags are unwrapped.
ALLOWED_TAGS = frozenset(
    "a b blockquote br em i li ol p s span strong sub sup u ul".split()
)

_html_cleaner = Cleaner(
    style=True,
    allow_tags=ALLOWED_TAGS,
    remove_unknown_tags=False,
    safe_attrs_only=True,
    safe_attrs=frozenset({"href"}),
)


def clean_html(markup: str) -> str:
    """Sanitise description HTML.

    Scripts, styles and comments are removed along with their content.
    Tags outside ALLOWED_TAGS are unwrapped so their text survives. Every
    attribute except ``href`` is dropped, and ``javascript:`` links are
    blanked.

    Args:
        markup: An HTML fragment, such as the inner HTML of a synopsis.

    Returns:
        The cleaned fragment, without a wrapping element.
    """
    if not markup.strip():
        return ""
    container = html.fragment_fromstring(markup, create_parent="div")
    _html_cleaner(container)
    return (container.text or "") + "".join(
        html.tostring(child, encoding="unicode") for child in container
    )
