"""
Screenshot Service

Captures a page as PNG through the browser tool. The tool can only write the
image to a file, so the service picks a temporary path per session, reads the
file back, base64-encodes it, and removes the file again.
"""

import asyncio
import base64
import tempfile
from pathlib import Path
from typing import Awaitable, Callable

import structlog

from ..browser.agent_browser import AgentBrowser
from ..browser.retry import with_retry
from ..browser.session import browser_session
from ..config import Config
from ..errors import ExecutionError, NotFoundError
from ..models import ScreenshotOutcome

logger = structlog.stdlib.get_logger(component=__name__)


class ScreenshotService:
    """
    Attributes:
        browser: Issues the browser commands
        config: Timeouts and retry settings
        directory: Where temporary images are written (system temp dir by default)
    """

    def __init__(
        self,
        browser: AgentBrowser,
        config: Config,
        directory: str | Path | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.browser = browser
        self.config = config
        self.directory = Path(directory) if directory is not None else Path(tempfile.gettempdir())
        self._sleep = sleep

    def temp_path(self, session_id: str) -> Path:
        return self.directory / f"screenshot-{session_id}.png"

    async def take_screenshot(self, url: str) -> ScreenshotOutcome:
        """
        Open ``url`` and capture it.

        Returns:
            ScreenshotOutcome with the base64-encoded PNG

        Raises:
            ExecutionError: If the page cannot be opened or captured
            NotFoundError: If the tool reported success but wrote no file
        """
        async with browser_session(self.browser) as session_id:
            path = self.temp_path(session_id)
            log = logger.bind(session_id=session_id, url=url, path=str(path))

            async def capture() -> None:
                await self.browser.open(session_id, url)
                try:
                    await self.browser.wait_for_load(session_id)
                except ExecutionError as e:
                    log.warning("Network idle wait failed, continuing", error=str(e))
                await self.browser.screenshot(session_id, path)

            try:
                await with_retry(
                    capture,
                    max_attempts=self.config.retry.navigation_attempts,
                    base_delay=self.config.retry.base_delay,
                    sleep=self._sleep,
                )
                try:
                    image = await asyncio.to_thread(path.read_bytes)
                except FileNotFoundError as e:
                    raise NotFoundError(f"Screenshot was not written to {path}") from e
            finally:
                self._remove(path, log)

            log.info("Captured screenshot", size=len(image))

        return ScreenshotOutcome(url=url, screenshot=base64.b64encode(image).decode("ascii"))

    @staticmethod
    def _remove(path: Path, log) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            log.warning("Failed to delete temp file", error=str(e))
