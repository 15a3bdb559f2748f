"""
Static configuration for agent-browser-api.

All settings live in frozen ``chz`` classes and are built once at startup by
``load_config()``. Durations are seconds.
"""

import os
from typing import Mapping

import chz

from . import __version__

DEFAULT_PORT = 5000

# URLs produced by the search engine itself, its cache proxy, and video pages.
# Matched with ``re.search`` against the full URL.
DEFAULT_EXCLUDED_URL_PATTERNS = (
    r"google\.com/search",
    r"accounts\.google\.",
    r"support\.google\.",
    r"policies\.google\.",
    r"webcache\.googleusercontent\.com",
    r"youtube\.com/watch",
    r"^https?://www\.google\.",
)

# CSS selectors whose markup is scanned for href attributes when no snapshot
# strategy produced candidates.
DEFAULT_RESULT_SELECTORS = (
    "div.g a[href]",
    'a[href^="http"]',
    "h3 a",
)


@chz.chz(typecheck=True)
class Timeouts:
    """Per-command deadlines for the browser executable."""

    command: float = chz.field(default=30.0, doc="Fallback timeout for any command")
    open: float = chz.field(default=15.0, doc="Navigating to a URL or clicking a link")
    wait: float = chz.field(default=20.0, doc="Waiting for network idle")
    extract: float = chz.field(default=10.0, doc="Snapshots and get title/text/html")
    screenshot: float = chz.field(default=10.0, doc="Capturing a screenshot")
    close: float = chz.field(default=5.0, doc="Closing a session")


@chz.chz(typecheck=True)
class RetrySettings:
    max_attempts: int = chz.field(default=3, doc="Default attempts for with_retry")
    base_delay: float = chz.field(default=1.0, doc="First backoff delay; doubles per attempt")
    navigation_attempts: int = chz.field(
        default=2, doc="Attempts for page opens in search, browse and screenshot"
    )


@chz.chz(typecheck=True)
class SearchSettings:
    default_max_results: int = chz.field(default=5, doc="Results returned when the caller sets none")
    max_results_limit: int = chz.field(default=20, doc="Largest maxResults a caller may request")
    relevance_threshold: float = chz.field(
        default=0.5, doc="Fraction of query keywords a page must contain"
    )
    min_keyword_length: int = chz.field(
        default=2, doc="Query tokens of this length or shorter are ignored"
    )
    snippet_length: int = chz.field(default=500, doc="Characters of page text kept per result")
    preview_length: int = chz.field(default=150, doc="Characters of snippet shown in the summary")
    engine_url: str = chz.field(
        default="https://www.google.com/search?q={query}",
        doc="Search page template; {query} receives the percent-encoded query",
    )
    excluded_url_patterns: tuple[str, ...] = chz.field(
        default=DEFAULT_EXCLUDED_URL_PATTERNS,
        doc="Regular expressions for URLs never admitted as candidates",
    )
    result_selectors: tuple[str, ...] = chz.field(
        default=DEFAULT_RESULT_SELECTORS,
        doc="Selectors whose markup is scanned when snapshots yield nothing",
    )
    deadline: float | None = chz.field(
        default=120.0,
        doc="Overall budget for visiting candidates; None disables it",
    )


@chz.chz(typecheck=True)
class Config:
    """
    Process-wide settings.

    Attributes:
        executable: Name or path of the agent-browser CLI
        host: Interface the HTTP server binds to
        port: Port the HTTP server listens on
        max_output_bytes: Cap on stdout/stderr captured per command
        service_name: Reported by /health
        version: Reported by /health and the OpenAPI document
    """

    executable: str = chz.field(default="agent-browser", doc="Browser CLI to invoke")
    host: str = chz.field(default="0.0.0.0", doc="Bind address")
    port: int = chz.field(default=DEFAULT_PORT, doc="Listen port")
    max_output_bytes: int = chz.field(default=10 * 1024 * 1024, doc="Output cap per command")
    service_name: str = chz.field(default="agent-browser-openapi", doc="Service identifier")
    version: str = chz.field(default=__version__, doc="Service version")
    timeouts: Timeouts = chz.field(default_factory=Timeouts)
    retry: RetrySettings = chz.field(default_factory=RetrySettings)
    search: SearchSettings = chz.field(default_factory=SearchSettings)


def load_config(environ: Mapping[str, str] | None = None, **overrides) -> Config:
    """
    Build the process configuration.

    Args:
        environ: Environment to read (defaults to ``os.environ``)
        **overrides: Top-level Config fields that take precedence, e.g. CLI flags

    Returns:
        A frozen Config
    """
    if environ is None:
        environ = os.environ
    settings = {}
    if port := environ.get("PORT"):
        settings["port"] = int(port)
    settings.update({k: v for k, v in overrides.items() if v is not None})
    return Config(**settings)
