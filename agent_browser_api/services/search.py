"""
Search Service

Runs a web search through the browser tool and returns only the result pages
whose text is actually about the query.

Workflow:
---------
1. OPENING: open the search engine's results page for the query (retried)
2. AWAITING_IDLE: wait for network idle; pages that never settle are used anyway
3. EXTRACTING_LINKS: try each LinkStrategy in order until one yields candidates
4. VISITING: for each candidate, navigate, read title and body text, score
   relevance, keep relevant pages; stop once enough results are collected
5. SUMMARIZING: render a plain-text digest of the results
6. CLOSING: the session is closed on every exit path

Link Strategies:
----------------
A LinkStrategy pairs a browser command that produces text (a snapshot variant,
or the markup of a CSS selector) with a parser from ``extraction.links``. The
default order widens the net step by step:

    snapshot -i  → refs
    snapshot -c  → refs
    snapshot     → refs
    snapshot     → plain URL lines
    get html sel → href attributes, for each configured selector

Each command runs at most once per search even when several strategies share it.

Navigation:
-----------
Snapshot refs identify elements on the results page only. A candidate is
clicked through its ref while the session still shows that page; after the
first navigation, and whenever a click fails, the candidate URL is opened
directly.
"""

import asyncio
import dataclasses
import enum
import functools
import time
from typing import Awaitable, Callable
from urllib.parse import quote, urlsplit

import structlog

from ..browser.agent_browser import AgentBrowser
from ..browser.retry import with_retry
from ..browser.session import browser_session
from ..config import Config, SearchSettings
from ..errors import ExecutionError
from ..extraction.links import (
    Link,
    LinkParser,
    parse_html_links,
    parse_snapshot_lines,
    parse_snapshot_refs,
)
from ..extraction.relevance import check_relevance
from ..models import SearchOutcome, SearchResult

logger = structlog.stdlib.get_logger(component=__name__)


class SearchState(enum.Enum):
    OPENING = "opening"
    AWAITING_IDLE = "awaiting_idle"
    EXTRACTING_LINKS = "extracting_links"
    VISITING = "visiting"
    SUMMARIZING = "summarizing"
    CLOSING = "closing"
    DONE = "done"


@dataclasses.dataclass(frozen=True)
class LinkStrategy:
    """
    One way of finding candidate links on the results page.

    Attributes:
        name: Shown in logs
        command: Browser subcommand whose stdout is parsed, e.g. ("snapshot", "-i")
        parse: ``(text, max_results) -> list[Link]``
    """

    name: str
    command: tuple[str, ...]
    parse: LinkParser


def default_strategies(settings: SearchSettings) -> list[LinkStrategy]:
    excluded = settings.excluded_url_patterns
    refs = functools.partial(parse_snapshot_refs, excluded_patterns=excluded)
    lines = functools.partial(parse_snapshot_lines, excluded_patterns=excluded)
    hrefs = functools.partial(parse_html_links, excluded_patterns=excluded)

    strategies = [
        LinkStrategy("interactive snapshot", ("snapshot", "-i"), refs),
        LinkStrategy("compact snapshot", ("snapshot", "-c"), refs),
        LinkStrategy("full snapshot", ("snapshot",), refs),
        LinkStrategy("full snapshot urls", ("snapshot",), lines),
    ]
    strategies.extend(
        LinkStrategy(f"markup of {selector}", ("get", "html", selector), hrefs)
        for selector in settings.result_selectors
    )
    return strategies


def generate_summary(query: str, results: list[SearchResult], preview_length: int = 150) -> str:
    """Human-readable digest of the results, one numbered block per page."""
    if not results:
        return f'No relevant results found for query: "{query}"'

    summary = [
        f'Search Summary for: "{query}"',
        f"Found {len(results)} relevant result(s):\n",
    ]
    for index, result in enumerate(results, start=1):
        summary.append(f"{index}. {result.title}")
        summary.append(f"   URL: {result.url}")
        summary.append(f"   Relevance: {result.relevance}")
        summary.append(f"   Preview: {result.snippet[:preview_length]}...")
        summary.append("")
    return "\n".join(summary)


class SearchService:
    """
    Search orchestrator.

    Attributes:
        browser: Issues the browser commands
        config: Timeouts, retry and search settings
        strategies: Ordered link strategies (defaults from ``config.search``)
    """

    def __init__(
        self,
        browser: AgentBrowser,
        config: Config,
        strategies: list[LinkStrategy] | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.browser = browser
        self.config = config
        self.settings = config.search
        self.strategies = strategies if strategies is not None else default_strategies(config.search)
        self._clock = clock
        self._sleep = sleep

    def search_url(self, query: str) -> str:
        return self.settings.engine_url.format(query=quote(query, safe="!~*'()"))

    async def search(self, query: str, max_results: int | None = None) -> SearchOutcome:
        """
        Search the web and keep the relevant result pages.

        Args:
            query: Non-empty search query
            max_results: Results to collect (default from configuration)

        Returns:
            SearchOutcome with the relevant results, the candidate count and a summary

        Raises:
            ExecutionError: If the results page cannot be opened
        """
        if max_results is None:
            max_results = self.settings.default_max_results
        search_url = self.search_url(query)
        log = logger.bind(query=query, max_results=max_results)

        async with browser_session(self.browser) as session_id:
            log = log.bind(session_id=session_id)

            async def open_results_page() -> None:
                await self.browser.open(session_id, search_url)

            log.info("Search state", state=SearchState.OPENING.value, url=search_url)
            await with_retry(
                open_results_page,
                max_attempts=self.config.retry.navigation_attempts,
                base_delay=self.config.retry.base_delay,
                sleep=self._sleep,
            )

            log.info("Search state", state=SearchState.AWAITING_IDLE.value)
            await self._settle(session_id)

            log.info("Search state", state=SearchState.EXTRACTING_LINKS.value)
            links = await self.extract_links(session_id, max_results)

            results: list[SearchResult] = []
            if links:
                log.info("Search state", state=SearchState.VISITING.value, candidates=len(links))
                results = await self._visit_candidates(session_id, query, links, max_results)

            log.info("Search state", state=SearchState.SUMMARIZING.value, results=len(results))
            summary = generate_summary(query, results, self.settings.preview_length)
            log.info("Search state", state=SearchState.CLOSING.value)

        log.info("Search state", state=SearchState.DONE.value)
        return SearchOutcome(
            query=query,
            results=results,
            total_found=len(links),
            relevant_count=len(results),
            summary=summary,
        )

    async def extract_links(self, session_id: str, max_results: int) -> list[Link]:
        """Run the link strategies in order; the first non-empty result wins."""
        outputs: dict[tuple[str, ...], str | None] = {}
        for strategy in self.strategies:
            if strategy.command not in outputs:
                try:
                    outputs[strategy.command] = await self.browser.run(
                        session_id, *strategy.command, timeout=self.browser.timeouts.extract
                    )
                except ExecutionError as e:
                    logger.warning("Link source failed", strategy=strategy.name, error=str(e))
                    outputs[strategy.command] = None
            text = outputs[strategy.command]
            if text is None:
                continue
            links = strategy.parse(text, max_results)
            if links:
                logger.info("Extracted links", strategy=strategy.name, count=len(links))
                return links
            logger.info("Strategy found no links", strategy=strategy.name)

        logger.warning("No candidate links found", session_id=session_id)
        return []

    async def _visit_candidates(
        self, session_id: str, query: str, links: list[Link], max_results: int
    ) -> list[SearchResult]:
        results: list[SearchResult] = []
        on_results_page = True
        started = self._clock()
        deadline = self.settings.deadline

        for index, link in enumerate(links[: max_results * 2], start=1):
            if deadline is not None and self._clock() - started > deadline:
                logger.warning(
                    "Search deadline reached", deadline=deadline, visited=index - 1
                )
                break

            # Refs belong to the results page and go stale once the session
            # navigates away, so only the first candidate may be clicked.
            use_ref = on_results_page
            on_results_page = False
            log = logger.bind(candidate=index, url=link.url, domain=urlsplit(link.url).netloc)
            try:
                result = await self._visit(session_id, query, link, use_ref)
            except ExecutionError as e:
                log.warning("Failed to process candidate", error=str(e))
                continue

            if result is None:
                log.info("Candidate not relevant, skipping")
                continue
            results.append(result)
            log.info("Candidate relevant", content_length=result.content_length)

            if len(results) >= max_results:
                logger.info("Reached max results", max_results=max_results)
                break
        return results

    async def _visit(
        self, session_id: str, query: str, link: Link, use_ref: bool
    ) -> SearchResult | None:
        await self._navigate(session_id, link, use_ref)
        await self._settle(session_id)

        try:
            title = (await self.browser.get_title(session_id)).strip()
        except ExecutionError as e:
            logger.info("Title unavailable", url=link.url, error=str(e))
            title = ""
        content = await self.browser.get_text(session_id, "body")

        if not check_relevance(
            query,
            content,
            threshold=self.settings.relevance_threshold,
            min_keyword_length=self.settings.min_keyword_length,
        ):
            return None
        return SearchResult(
            title=title or link.text or link.url,
            url=link.url,
            snippet=content.strip()[: self.settings.snippet_length],
            relevance="high",
            content_length=len(content),
        )

    async def _navigate(self, session_id: str, link: Link, use_ref: bool) -> None:
        if use_ref and link.ref:
            try:
                await self.browser.click(session_id, link.ref)
                return
            except ExecutionError as e:
                logger.info("Click failed, opening URL", ref=link.ref, error=str(e))
        await self.browser.open(session_id, link.url)

    async def _settle(self, session_id: str) -> None:
        # Some pages never reach strict network idle; carry on regardless.
        try:
            await self.browser.wait_for_load(session_id)
        except ExecutionError as e:
            logger.warning("Network idle wait failed, continuing", error=str(e))
