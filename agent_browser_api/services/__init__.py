"""
Browser-driving operations.

Each service method opens its own browser session, runs to completion, and
closes the session. None of them is safe to run concurrently with another on
the same browser process; callers go through the RequestQueue.
"""

from .browse import BrowseService
from .screenshot import ScreenshotService
from .search import LinkStrategy, SearchService, default_strategies, generate_summary

__all__ = [
    "BrowseService",
    "LinkStrategy",
    "ScreenshotService",
    "SearchService",
    "default_strategies",
    "generate_summary",
]
