"""
Candidate Link Extraction

This module turns the text the browser tool hands back into an ordered list of
candidate links to visit. It does not parse HTML or the accessibility tree
properly; it applies line and attribute patterns that match what
``agent-browser`` prints, and degrades to an empty list when nothing matches.

Input Formats:
--------------
1. Structured snapshot (``snapshot``, ``snapshot -i``, ``snapshot -c``):

       - link "Node.js — Run JavaScript Everywhere" [ref=e12] https://nodejs.org/

   A line qualifies when it mentions ``link`` and carries ``[ref=...]``.

2. Plain snapshot lines: any line with an absolute URL, for snapshots that
   carry no refs.

3. Raw markup (``get html <selector>``): ``href="..."`` / ``href='...'``
   attributes.

Filtering Rules:
----------------
- URLs matching any exclusion pattern (the search engine's own pages, its
  cache proxy, video pages) are dropped
- URLs are deduplicated by exact, case-sensitive match within one call
- Snapshot URLs of 10 characters or fewer are dropped
- At most ``2 * max_results`` candidates are returned; the extra headroom
  covers pages that later fail to load or turn out irrelevant

Functions:
----------
- parse_snapshot_refs(): structured snapshot → links with refs
- parse_snapshot_lines(): any URL-bearing snapshot line → links without refs
- parse_html_links(): markup href attributes → links without refs
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Sequence

import pydantic

from ..config import DEFAULT_EXCLUDED_URL_PATTERNS

logger = logging.getLogger(__name__)

REF_RE = re.compile(r"\[ref=([^\]]+)\]")
QUOTED_TEXT_RE = re.compile(r'"([^"]+)"')
QUOTED_TEXT_ANY_RE = re.compile(r""""([^"]+)"|'([^']+)'""")
SNAPSHOT_URL_RE = re.compile(r"https?://\S+")
LINE_URL_RE = re.compile(r"""https?://[^\s"'<>]+""")
HREF_RE = re.compile(r"""href=["']([^"']+)["']""", re.IGNORECASE)
TAG_TEXT_RE = re.compile(r">([^<]+)<")

MIN_URL_LENGTH = 10

# Fraction of the snapshot shown in the debug log when nothing matched.
_SAMPLE_CHARS = 1000


class Link(pydantic.BaseModel):
    """
    A candidate search result.

    Attributes:
        ref: Snapshot handle for ``click @ref``; None when the source had none
        text: Display label, possibly empty
        url: Absolute http(s) URL
    """

    model_config = pydantic.ConfigDict(frozen=True)

    ref: str | None = None
    text: str = ""
    url: str


LinkParser = Callable[[str, int], list[Link]]


class UrlFilter:
    """
    Admission rules shared by all parsers for one extraction call.

    Keeps track of URLs already admitted so duplicates are rejected.
    """

    def __init__(self, excluded_patterns: Iterable[str] = DEFAULT_EXCLUDED_URL_PATTERNS):
        self._excluded = [re.compile(p) for p in excluded_patterns]
        self._seen: set[str] = set()

    def is_excluded(self, url: str) -> bool:
        return any(p.search(url) for p in self._excluded)

    def admit(self, url: str, min_length: int = 0) -> bool:
        if not url or len(url) <= min_length:
            return False
        if self.is_excluded(url) or url in self._seen:
            return False
        self._seen.add(url)
        return True


def parse_snapshot_refs(
    snapshot: str,
    max_results: int,
    excluded_patterns: Sequence[str] = DEFAULT_EXCLUDED_URL_PATTERNS,
) -> list[Link]:
    """
    Extract links with refs from a structured snapshot.

    Args:
        snapshot: Output of ``agent-browser snapshot``
        max_results: Requested results; up to twice as many links are returned
        excluded_patterns: Regular expressions for URLs to drop

    Returns:
        Links in line order, each URL unique

    Example:
        >>> parse_snapshot_refs('- link "Docs" [ref=e3] https://docs.python.org/3/', 5)
        [Link(ref='e3', text='Docs', url='https://docs.python.org/3/')]
    """
    limit = max_results * 2
    url_filter = UrlFilter(excluded_patterns)
    links: list[Link] = []
    lines = snapshot.split("\n")
    logger.debug("Parsing %d snapshot lines for link refs", len(lines))

    for line in lines:
        if len(links) >= limit:
            break
        if "link" not in line or "[ref=" not in line:
            continue
        ref_match = REF_RE.search(line)
        url_match = SNAPSHOT_URL_RE.search(line)
        if ref_match is None or url_match is None:
            continue
        url = url_match.group(0)
        if not url_filter.admit(url, min_length=MIN_URL_LENGTH):
            continue
        text_match = QUOTED_TEXT_RE.search(line)
        link = Link(
            ref=ref_match.group(1),
            text=text_match.group(1) if text_match else "",
            url=url,
        )
        links.append(link)
        logger.debug("Found link %d: [%s] %.50s -> %.60s", len(links), link.ref, link.text, url)

    _log_outcome("snapshot refs", links, snapshot)
    return links


def parse_snapshot_lines(
    snapshot: str,
    max_results: int,
    excluded_patterns: Sequence[str] = DEFAULT_EXCLUDED_URL_PATTERNS,
) -> list[Link]:
    """
    Extract links from any snapshot line carrying a URL.

    Used when the snapshot has no refs. The label is the first quoted string
    on the line (double or single quotes), falling back to the URL.
    """
    limit = max_results * 2
    url_filter = UrlFilter(excluded_patterns)
    links: list[Link] = []

    for line in snapshot.split("\n"):
        if len(links) >= limit:
            break
        url_match = LINE_URL_RE.search(line)
        if url_match is None:
            continue
        url = url_match.group(0)
        if not url_filter.admit(url, min_length=MIN_URL_LENGTH):
            continue
        title_match = QUOTED_TEXT_ANY_RE.search(line)
        text = (title_match.group(1) or title_match.group(2)) if title_match else url
        links.append(Link(text=text, url=url))

    _log_outcome("snapshot lines", links, snapshot)
    return links


def parse_html_links(
    html: str,
    max_results: int,
    excluded_patterns: Sequence[str] = DEFAULT_EXCLUDED_URL_PATTERNS,
) -> list[Link]:
    """
    Extract links from ``href`` attributes in raw markup.

    Only URLs starting with ``http`` are considered. The label is the first
    text between ``>`` and ``<`` after the attribute, falling back to the URL.
    """
    limit = max_results * 2
    url_filter = UrlFilter(excluded_patterns)
    links: list[Link] = []

    for match in HREF_RE.finditer(html):
        if len(links) >= limit:
            break
        url = match.group(1)
        if not url.startswith("http") or not url_filter.admit(url):
            continue
        title_match = TAG_TEXT_RE.search(html, match.end())
        title = title_match.group(1).strip() if title_match else ""
        links.append(Link(text=title or url, url=url))
        logger.debug("Extracted: %.50s -> %.60s", title or url, url)

    _log_outcome("html attributes", links, html)
    return links


def _log_outcome(source: str, links: list[Link], text: str) -> None:
    logger.info("Parsed %d links from %s", len(links), source)
    if not links:
        logger.debug("No links in %s; sample: %s", source, text[:_SAMPLE_CHARS])
