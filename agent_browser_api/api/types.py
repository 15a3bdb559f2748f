"""
Request and response bodies for the HTTP API.

Request fields are typed loosely (mostly optional) on purpose: missing or
empty values are rejected by ``validation.py`` with a 400 and a readable
message, instead of FastAPI's generic 422.
"""

from typing import Optional

from pydantic import BaseModel

from ..models import BrowseOutcome, CamelModel, ScreenshotOutcome, SearchOutcome


class SearchRequest(CamelModel):
    query: Optional[str] = None
    max_results: Optional[int] = None  # maxResults on the wire


class BrowseRequest(CamelModel):
    url: Optional[str] = None
    selector: str = "body"
    extract: str = "text"


class ScreenshotRequest(CamelModel):
    url: Optional[str] = None


class Timed(CamelModel):
    timestamp: str  # ISO-8601, UTC
    duration: int  # milliseconds


class SearchResponse(SearchOutcome, Timed):
    pass


class BrowseResponse(BrowseOutcome, Timed):
    pass


class ScreenshotResponse(ScreenshotOutcome, Timed):
    pass


class ErrorResponse(BaseModel):
    error: str
    message: str
    duration: int


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    queue: int
