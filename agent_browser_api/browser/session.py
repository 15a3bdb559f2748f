"""
Browser session lifecycle.

One logical operation (a search, a browse, a screenshot) owns exactly one
session. The session is closed exactly once when the operation finishes,
whether it returned or raised, and a failing close never hides the
operation's own outcome.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, TypeVar
from uuid import uuid4

from .agent_browser import AgentBrowser

logger = logging.getLogger(__name__)

R = TypeVar("R")


def generate_session_id() -> str:
    """Millisecond timestamp plus a random suffix, e.g. ``session-1700000000000-3f9a1c2b7``."""
    return f"session-{time.time_ns() // 1_000_000}-{uuid4().hex[:9]}"


@asynccontextmanager
async def browser_session(browser: AgentBrowser) -> AsyncIterator[str]:
    """
    Open a session id for the duration of the ``async with`` block.

    Yields:
        The session id to pass to AgentBrowser commands
    """
    session_id = generate_session_id()
    browser.open_sessions.add(session_id)
    logger.debug("Session %s started", session_id)
    try:
        yield session_id
    finally:
        try:
            await browser.close(session_id)
        except Exception as e:
            logger.warning("Failed to close session %s: %s", session_id, e)


async def with_session(
    browser: AgentBrowser, body: Callable[[str], Awaitable[R]]
) -> R:
    """Run ``body(session_id)`` inside a fresh session and close it afterwards."""
    async with browser_session(browser) as session_id:
        return await body(session_id)
