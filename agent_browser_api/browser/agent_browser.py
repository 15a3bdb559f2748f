"""
Typed access to the agent-browser CLI.

Every command is scoped to a session and issued as

    agent-browser --session <id> <subcommand> [args...]

Subcommands used by the services:
---------------------------------
- open <url>               navigate the session's page
- wait --load networkidle  block until the page has no in-flight requests
- snapshot [-i|-c]         accessibility-tree dump (interactive / compact)
- get title                page title
- get text <selector>      text content of the matching element
- get html <selector>      markup of the matching element
- click @<ref>             click an element by its snapshot ref
- screenshot <path>        write a PNG of the page to ``path``
- close                    end the session

Each subcommand uses the timeout configured for its kind of work.
"""

import logging
from pathlib import Path

from ..config import Timeouts
from .executor import Runner

logger = logging.getLogger(__name__)

NETWORK_IDLE = "networkidle"


class AgentBrowser:
    """
    Session-scoped wrapper around a Runner.

    Attributes:
        runner: Executes the CLI (a CommandRunner in production)
        timeouts: Per-command deadlines
        open_sessions: Ids of sessions that have been started and not yet closed
    """

    def __init__(self, runner: Runner, timeouts: Timeouts | None = None):
        self.runner = runner
        self.timeouts = timeouts or Timeouts()
        self.open_sessions: set[str] = set()

    async def run(self, session_id: str, *command: str, timeout: float | None = None) -> str:
        return await self.runner.run(["--session", session_id, *command], timeout=timeout)

    async def open(self, session_id: str, url: str) -> str:
        return await self.run(session_id, "open", url, timeout=self.timeouts.open)

    async def wait_for_load(self, session_id: str, state: str = NETWORK_IDLE) -> str:
        return await self.run(session_id, "wait", "--load", state, timeout=self.timeouts.wait)

    async def snapshot(self, session_id: str, *flags: str) -> str:
        return await self.run(session_id, "snapshot", *flags, timeout=self.timeouts.extract)

    async def get_title(self, session_id: str) -> str:
        return await self.run(session_id, "get", "title", timeout=self.timeouts.extract)

    async def get_text(self, session_id: str, selector: str = "body") -> str:
        return await self.run(session_id, "get", "text", selector, timeout=self.timeouts.extract)

    async def get_html(self, session_id: str, selector: str = "body") -> str:
        return await self.run(session_id, "get", "html", selector, timeout=self.timeouts.extract)

    async def click(self, session_id: str, ref: str) -> str:
        return await self.run(session_id, "click", f"@{ref}", timeout=self.timeouts.open)

    async def screenshot(self, session_id: str, path: str | Path) -> str:
        return await self.run(
            session_id, "screenshot", str(path), timeout=self.timeouts.screenshot
        )

    async def close(self, session_id: str) -> str:
        self.open_sessions.discard(session_id)
        return await self.run(session_id, "close", timeout=self.timeouts.close)

    async def close_all(self) -> None:
        """Close every session still registered; used at shutdown."""
        for session_id in sorted(self.open_sessions):
            try:
                await self.close(session_id)
            except Exception as e:
                logger.warning("Failed to close session %s: %s", session_id, e)
