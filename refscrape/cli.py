"""refscrape CLI: inspect how pages and links are parsed.

Usage:
    refscrape sections https://myanimelist.net/anime/1/  # Section layout
    refscrape sections URL --timeout 10 -v               # Debug logging
    refscrape link https://myanimelist.net/manga/2/x     # Kind and id
"""

from __future__ import annotations

import logging

import click

from refscrape.common.exceptions import (
    FormatError,
    PageNotFound,
    ScraperAssumptionException,
    TooManyRequests,
)
from refscrape.common.links import parse_canonical_id
from refscrape.common.request_manager import Fetcher
from refscrape.data_types import NO_SECTION, EntityKind, SectionMap
from refscrape.scraper import MyAnimeListScraper


@click.group()
@click.version_option(package_name="refscrape")
def cli() -> None:
    """refscrape: page-section parsing and link resolution."""


def _echo_sections(title: str, sections: SectionMap) -> None:
    click.echo(f"{title}:")
    if not sections:
        click.echo("  (none)")
    for name, nodes in sections.items():
        label = "(before first header)" if name is NO_SECTION else name
        click.echo(f"  {label}: {len(nodes)} nodes")


@cli.command()
@click.argument("url")
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Request timeout in seconds (default: none).",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def sections(url: str, timeout: float | None, verbose: bool) -> None:
    """Fetch a MyAnimeList page and print its sidebar and main sections.

    \b
    Examples:
        refscrape sections https://myanimelist.net/anime/1/Cowboy_Bebop
    """
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    with Fetcher(timeout=timeout) as fetcher:
        scraper = MyAnimeListScraper(url, fetcher=fetcher)
        try:
            page = scraper.load()
        except PageNotFound as e:
            raise click.ClickException(f"Page not found: {e.url}") from e
        except TooManyRequests as e:
            raise click.ClickException(
                f"Rate limited by {e.url}; try again later"
            ) from e
        except ScraperAssumptionException as e:
            raise click.ClickException(str(e)) from e

    click.echo(f"Header: {page.header}")
    click.echo(f"Status: {page.document.status_code}")
    _echo_sections("Sidebar", page.sidebar_sections)
    _echo_sections("Main", page.main_sections)


@cli.command()
@click.argument("url")
def link(url: str) -> None:
    """Print the entity kind and id encoded in a canonical URL."""
    try:
        kind, external_id = parse_canonical_id(url)
    except FormatError as e:
        raise click.ClickException(str(e)) from e

    known = EntityKind.from_segment(kind)
    suffix = "" if known is not None else " (unknown kind)"
    click.echo(f"{kind} {external_id}{suffix}")


def main() -> None:
    """Entry point for the ``refscrape`` console script."""
    cli()
