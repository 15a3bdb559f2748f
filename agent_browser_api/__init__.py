"""
agent-browser-api: an HTTP façade over the ``agent-browser`` CLI

This package exposes web search, page browsing and screenshotting to callers
such as LLM tool-calling hosts (Open WebUI imports it through its OpenAPI
document). It never talks to the web itself: every page interaction is a
session-scoped subcommand of the external ``agent-browser`` executable.

Layout:
- browser/: running the executable, retries, and session lifecycle
- extraction/: snapshot and markup parsing into candidate links, relevance scoring
- services/: the search, browse and screenshot orchestrators
- request_queue.py: the single-flight FIFO that serializes browser work
- api/: FastAPI application, request/response types, validation
- serve.py: command-line entry point (uvicorn)
"""

__version__ = "1.0.0"
