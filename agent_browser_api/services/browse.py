"""Open a single page and return the text or markup of one element."""

import asyncio
from typing import Awaitable, Callable, Literal

import structlog

from ..browser.agent_browser import AgentBrowser
from ..browser.retry import with_retry
from ..browser.session import browser_session
from ..config import Config
from ..errors import ExecutionError
from ..models import BrowseOutcome

logger = structlog.stdlib.get_logger(component=__name__)

ExtractKind = Literal["text", "html"]


class BrowseService:
    def __init__(
        self,
        browser: AgentBrowser,
        config: Config,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.browser = browser
        self.config = config
        self._sleep = sleep

    async def browse(
        self, url: str, selector: str = "body", extract: ExtractKind = "text"
    ) -> BrowseOutcome:
        """
        Open ``url`` and read the element matching ``selector``.

        Opening, waiting and reading are retried together, so a page that
        loads blank on the first attempt gets a fresh navigation.

        Args:
            url: Absolute http(s) URL
            selector: CSS selector of the element to read
            extract: "text" for text content, "html" for markup

        Returns:
            BrowseOutcome whose ``content`` maps ``extract`` to the trimmed value
        """
        async with browser_session(self.browser) as session_id:
            log = logger.bind(session_id=session_id, url=url, selector=selector, extract=extract)

            async def load_and_read() -> str:
                await self.browser.open(session_id, url)
                try:
                    await self.browser.wait_for_load(session_id)
                except ExecutionError as e:
                    log.warning("Network idle wait failed, continuing", error=str(e))
                if extract == "html":
                    return await self.browser.get_html(session_id, selector)
                return await self.browser.get_text(session_id, selector)

            content = await with_retry(
                load_and_read,
                max_attempts=self.config.retry.navigation_attempts,
                base_delay=self.config.retry.base_delay,
                sleep=self._sleep,
            )
            log.info("Browsed page", content_length=len(content))

        return BrowseOutcome(url=url, content={extract: content.strip()})
