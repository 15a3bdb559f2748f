"""
Results produced by the services.

Field names are snake_case in Python and camelCase on the wire
(``content_length`` ↔ ``contentLength``), as Open WebUI and other existing
callers expect.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchResult(CamelModel):
    """
    One visited page that passed the relevance check.

    Attributes:
        title: Page title, or the link label / URL when the title was unavailable
        url: The candidate URL that was visited
        snippet: Leading characters of the trimmed page text
        relevance: Relevance tag; only relevant pages become results
        content_length: Length of the full page text in characters
    """

    model_config = ConfigDict(frozen=True)

    title: str
    url: str
    snippet: str
    relevance: Literal["high"] = "high"
    content_length: int


class SearchOutcome(CamelModel):
    query: str
    results: list[SearchResult]
    total_found: int  # candidate links, before relevance filtering
    relevant_count: int
    summary: str


class BrowseOutcome(CamelModel):
    url: str
    content: dict[str, str]


class ScreenshotOutcome(CamelModel):
    url: str
    screenshot: str  # base64-encoded PNG
