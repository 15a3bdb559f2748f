"""Keyword relevance scoring for visited pages."""

import math
import re

_WHITESPACE_RE = re.compile(r"\s+")


def extract_keywords(query: str, min_keyword_length: int = 2) -> list[str]:
    """Lower-cased query tokens longer than ``min_keyword_length``."""
    return [
        token
        for token in _WHITESPACE_RE.split(query.lower())
        if len(token) > min_keyword_length
    ]


def check_relevance(
    query: str,
    content: str,
    threshold: float = 0.5,
    min_keyword_length: int = 2,
) -> bool:
    """
    Decide whether ``content`` is relevant to ``query``.

    A keyword matches when it occurs anywhere in the lower-cased content.
    The page is relevant when at least ``max(1, ceil(len(keywords) * threshold))``
    keywords match. A query without any keyword long enough to count
    (e.g. "AI" or "Go") is treated as relevant to every page, since there is
    nothing to check it against.

    Args:
        query: The search query
        content: Page text
        threshold: Fraction of keywords that must match
        min_keyword_length: Tokens of this length or shorter are ignored

    Returns:
        True if the page is relevant
    """
    keywords = extract_keywords(query, min_keyword_length)
    if not keywords:
        return True
    lower_content = content.lower()
    matches = sum(1 for keyword in keywords if keyword in lower_content)
    required = max(1, math.ceil(len(keywords) * threshold))
    return matches >= required
