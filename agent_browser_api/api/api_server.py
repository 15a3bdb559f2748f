"""
FastAPI application for agent-browser-api.

Routes:
- GET  /health        liveness plus current queue length
- GET  /openapi.json  OpenAPI document with servers[0].url set to this host
- POST /search        search, visit, and keep relevant result pages
- POST /browse        text or markup of one element on one page
- POST /screenshot    base64 PNG of one page

Every browser-driving route goes through the shared RequestQueue, so at most
one operation touches the browser at a time. Errors are rendered as
``{error, message, duration}`` with the status carried by the exception.
"""

import copy
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..browser.agent_browser import AgentBrowser
from ..browser.executor import CommandRunner
from ..config import Config, load_config
from ..errors import BrowserApiError
from ..request_queue import RequestQueue
from ..services import BrowseService, ScreenshotService, SearchService
from .types import (
    BrowseRequest,
    BrowseResponse,
    ErrorResponse,
    HealthResponse,
    ScreenshotRequest,
    ScreenshotResponse,
    SearchRequest,
    SearchResponse,
)
from .validation import (
    validate_extract,
    validate_max_results,
    validate_search_query,
    validate_selector,
    validate_url_parameter,
)

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    500: {"model": ErrorResponse, "description": "Browser operation failed"},
}


def _elapsed_ms(request: Request) -> int:
    started = getattr(request.state, "started", None)
    if started is None:
        return 0
    return int((time.monotonic() - started) * 1000)


def _timing(request: Request) -> dict:
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return {"timestamp": timestamp.replace("+00:00", "Z"), "duration": _elapsed_ms(request)}


def _error_response(request: Request, status_code: int, error: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, duration=_elapsed_ms(request))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_browser(config: Config) -> AgentBrowser:
    runner = CommandRunner(
        executable=config.executable,
        default_timeout=config.timeouts.command,
        max_output_bytes=config.max_output_bytes,
    )
    return AgentBrowser(runner, config.timeouts)


def create_api_server(
    config: Config | None = None,
    browser: AgentBrowser | None = None,
    queue: RequestQueue | None = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        config: Settings (``load_config()`` when omitted)
        browser: AgentBrowser to drive; built from ``config`` when omitted
        queue: RequestQueue shared by all routes; a new one when omitted

    Returns:
        The configured FastAPI application
    """
    if config is None:
        config = load_config()
    if browser is None:
        browser = create_browser(config)
    if queue is None:
        queue = RequestQueue()

    search_service = SearchService(browser, config)
    browse_service = BrowseService(browser, config)
    screenshot_service = ScreenshotService(browser, config)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "%s %s ready (executable=%s)", config.service_name, config.version, config.executable
        )
        yield
        logger.info("Shutting down; closing open browser sessions")
        await queue.close()
        await browser.close_all()

    app = FastAPI(
        title="Agent Browser API",
        description="Web search, page browsing and screenshots driven by agent-browser.",
        version=config.version,
        servers=[{"url": f"http://localhost:{config.port}"}],
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.browser = browser
    app.state.queue = queue

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def record_start_time(request: Request, call_next):
        request.state.started = time.monotonic()
        return await call_next(request)

    @app.exception_handler(BrowserApiError)
    async def handle_api_error(request: Request, exc: BrowserApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return _error_response(request, exc.status_code, exc.title, str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        problems = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
            problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
        return _error_response(request, 400, "Bad Request", "; ".join(problems))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(
            request, 500, "Internal Server Error", str(exc) or "An unexpected error occurred"
        )

    @app.get("/openapi.json", include_in_schema=False)
    async def openapi_document(request: Request) -> JSONResponse:
        document = copy.deepcopy(app.openapi())
        document["servers"] = [{"url": str(request.base_url).rstrip("/")}]
        return JSONResponse(document)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            service=config.service_name,
            version=config.version,
            queue=len(queue),
        )

    @app.post(
        "/search",
        response_model=SearchResponse,
        responses=ERROR_RESPONSES,
        operation_id="search",
        summary="Search the web",
        description=(
            "Searches the web for `query`, opens each result page, and returns the pages "
            "whose text mentions the query keywords, with a snippet and a summary."
        ),
    )
    async def search(request: Request, body: SearchRequest) -> SearchResponse:
        query = validate_search_query(body.query)
        max_results = validate_max_results(
            body.max_results,
            default=config.search.default_max_results,
            limit=config.search.max_results_limit,
        )
        logger.info("Search query=%r max_results=%d", query, max_results)
        outcome = await queue.enqueue(lambda: search_service.search(query, max_results))
        return SearchResponse(**outcome.model_dump(), **_timing(request))

    @app.post(
        "/browse",
        response_model=BrowseResponse,
        responses=ERROR_RESPONSES,
        operation_id="browse",
        summary="Read a web page",
        description=(
            "Opens `url` and returns the text (or HTML) of the element matching `selector`."
        ),
    )
    async def browse(request: Request, body: BrowseRequest) -> BrowseResponse:
        url = validate_url_parameter(body.url)
        selector = validate_selector(body.selector)
        extract = validate_extract(body.extract)
        logger.info("Browse url=%r selector=%r extract=%s", url, selector, extract)
        outcome = await queue.enqueue(lambda: browse_service.browse(url, selector, extract))
        return BrowseResponse(**outcome.model_dump(), **_timing(request))

    @app.post(
        "/screenshot",
        response_model=ScreenshotResponse,
        responses=ERROR_RESPONSES,
        operation_id="screenshot",
        summary="Screenshot a web page",
        description="Opens `url` and returns a base64-encoded PNG of the page.",
    )
    async def screenshot(request: Request, body: ScreenshotRequest) -> ScreenshotResponse:
        url = validate_url_parameter(body.url)
        logger.info("Screenshot url=%r", url)
        outcome = await queue.enqueue(lambda: screenshot_service.take_screenshot(url))
        return ScreenshotResponse(**outcome.model_dump(), **_timing(request))

    return app
