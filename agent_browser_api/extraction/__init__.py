"""
Turning browser output into candidate links and judging page relevance.

These modules are pure text processing: no I/O, no browser calls. The search
service chooses which browser output to feed them.
"""

from .links import Link, parse_html_links, parse_snapshot_lines, parse_snapshot_refs
from .relevance import check_relevance, extract_keywords

__all__ = [
    "Link",
    "check_relevance",
    "extract_keywords",
    "parse_html_links",
    "parse_snapshot_lines",
    "parse_snapshot_refs",
]
