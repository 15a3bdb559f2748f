# Shared fixtures: a scripted stand-in for the agent-browser executable and a
# configuration with zero backoff so retries do not slow the suite down.

from pathlib import Path
from typing import Sequence

import pytest

from agent_browser_api.browser.agent_browser import AgentBrowser
from agent_browser_api.config import Config, RetrySettings
from agent_browser_api.errors import ExecutionError

SEARCH_SNAPSHOT = """\
- banner
  - link "Google Account" [ref=e1] https://accounts.google.com/ServiceLogin
- main
  - heading "Search Results" [level=2]
  - link "Node.js — Run JavaScript Everywhere" [ref=e2] https://nodejs.org/en
  - link "More results" [ref=e3] https://www.google.com/search?q=Node.js&start=10
  - link "Node.js - Wikipedia" [ref=e4] https://en.wikipedia.org/wiki/Node.js
  - link "Weeknight pasta" [ref=e5] https://example.com/recipes/pasta
"""

SEARCH_PAGES = {
    "https://nodejs.org/en": "Node.js® is a free, open-source, cross-platform JavaScript runtime.",
    "https://en.wikipedia.org/wiki/Node.js": "Node.js is a cross-platform JavaScript runtime environment.",
    "https://example.com/recipes/pasta": "Boil the water, salt it generously, and cook the pasta.",
}

SEARCH_TITLES = {
    "https://nodejs.org/en": "Node.js — Run JavaScript Everywhere",
    "https://en.wikipedia.org/wiki/Node.js": "Node.js - Wikipedia",
    "https://example.com/recipes/pasta": "Weeknight pasta",
}

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"


class FakeAgentBrowserCli:
    """
    Scripted replacement for the agent-browser executable.

    Keeps one "current URL" per fake, answers snapshots by flag tuple, page
    text and titles by current URL, and records every call.
    """

    def __init__(
        self,
        snapshots: dict[tuple[str, ...], str] | None = None,
        pages: dict[str, str] | None = None,
        titles: dict[str, str] | None = None,
        refs: dict[str, str] | None = None,
        html: dict[str, str] | None = None,
        elements: dict[str, str] | None = None,
        screenshot_bytes: bytes = PNG_BYTES,
    ):
        self.snapshots = dict(snapshots or {})
        self.pages = dict(pages or {})
        self.titles = dict(titles or {})
        self.refs = dict(refs or {})
        self.html = dict(html or {})
        self.elements = dict(elements or {})
        self.screenshot_bytes = screenshot_bytes
        self.current_url: str | None = None
        self.calls: list[list[str]] = []
        self.timeouts: list[float | None] = []
        self._failures: dict[tuple[str, ...], int | None] = {}

    def fail(self, *command: str, times: int | None = None) -> None:
        """Make commands starting with ``command`` fail ``times`` times (forever if None)."""
        self._failures[command] = times

    def commands(self, *prefix: str) -> list[tuple[str, ...]]:
        found = [tuple(call[2:]) for call in self.calls]
        return [c for c in found if c[: len(prefix)] == prefix]

    def _should_fail(self, command: tuple[str, ...]) -> bool:
        for prefix, remaining in self._failures.items():
            if command[: len(prefix)] != prefix:
                continue
            if remaining is None:
                return True
            if remaining > 0:
                self._failures[prefix] = remaining - 1
                return True
        return False

    async def run(self, args: Sequence[str], timeout: float | None = None) -> str:
        args = list(args)
        self.calls.append(args)
        self.timeouts.append(timeout)
        assert args[0] == "--session"
        command = tuple(args[2:])
        if self._should_fail(command):
            raise ExecutionError(args, "scripted failure", returncode=1, stderr="boom")

        name, rest = command[0], command[1:]
        if name == "open":
            self.current_url = rest[0]
            return ""
        if name in ("wait", "close"):
            return ""
        if name == "snapshot":
            return self.snapshots.get(rest, "")
        if name == "click":
            ref = rest[0].removeprefix("@")
            if ref not in self.refs:
                raise ExecutionError(args, f"unknown ref {ref}", returncode=1)
            self.current_url = self.refs[ref]
            return ""
        if name == "screenshot":
            Path(rest[0]).write_bytes(self.screenshot_bytes)
            return ""
        if command == ("get", "title"):
            return self.titles.get(self.current_url, "") + "\n"
        if name == "get" and rest[0] == "text":
            if rest[1] == "body":
                return self.pages.get(self.current_url, "")
            return self.elements.get(rest[1], "")
        if name == "get" and rest[0] == "html":
            return self.html.get(rest[1], "")
        raise ExecutionError(args, "unknown command", returncode=2)


@pytest.fixture
def config() -> Config:
    return Config(retry=RetrySettings(max_attempts=3, base_delay=0.0, navigation_attempts=2))


@pytest.fixture
def search_cli() -> FakeAgentBrowserCli:
    return FakeAgentBrowserCli(
        snapshots={("-i",): SEARCH_SNAPSHOT},
        pages=SEARCH_PAGES,
        titles=SEARCH_TITLES,
        refs={"e2": "https://nodejs.org/en", "e4": "https://en.wikipedia.org/wiki/Node.js"},
    )


@pytest.fixture
def cli() -> FakeAgentBrowserCli:
    return FakeAgentBrowserCli()


@pytest.fixture
def browser(cli: FakeAgentBrowserCli, config: Config) -> AgentBrowser:
    return AgentBrowser(cli, config.timeouts)
