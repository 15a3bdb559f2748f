import base64
import re
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from agent_browser_api.api import create_api_server
from agent_browser_api.browser.agent_browser import AgentBrowser
from agent_browser_api.config import load_config

from conftest import PNG_BYTES


@pytest.fixture
def app(search_cli, config):
    return create_api_server(config, browser=AgentBrowser(search_cli, config.timeouts))


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def assert_error(resp, status_code, error, message_part):
    assert resp.status_code == status_code, resp.text
    body = resp.json()
    assert body["error"] == error
    assert message_part in body["message"]
    assert isinstance(body["duration"], int)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "service": "agent-browser-openapi",
        "version": "1.0.0",
        "queue": 0,
    }


def test_openapi_document_points_at_request_host(client):
    resp = client.get("/openapi.json")
    assert resp.status_code == 200
    document = resp.json()
    assert document["servers"] == [{"url": "http://testserver"}]
    assert set(document["paths"]) == {"/health", "/search", "/browse", "/screenshot"}
    assert document["paths"]["/search"]["post"]["operationId"] == "search"
    search_request = document["components"]["schemas"]["SearchRequest"]
    assert "maxResults" in search_request["properties"]


def test_docs_pages_are_disabled(client):
    assert client.get("/docs").status_code == 404


def test_search(client):
    resp = client.post("/search", json={"query": "Node.js", "maxResults": 2})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["query"] == "Node.js"
    assert body["totalFound"] == 3
    assert body["relevantCount"] == 2
    assert len(body["results"]) == 2
    assert body["results"][0]["url"] == "https://nodejs.org/en"
    assert body["results"][0]["relevance"] == "high"
    assert body["results"][0]["contentLength"] > 0
    assert body["summary"].startswith('Search Summary for: "Node.js"')
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", body["timestamp"])
    assert isinstance(body["duration"], int)


@pytest.mark.parametrize(
    "payload, message",
    [
        ({}, "Query parameter is required and must be a string"),
        ({"query": ""}, "Query parameter is required and must be a string"),
        ({"query": "   "}, "Query cannot be empty"),
        ({"query": "x", "maxResults": 0}, "maxResults must be between 1 and 20"),
        ({"query": "x", "maxResults": 21}, "maxResults must be between 1 and 20"),
        ({"query": "x", "maxResults": "many"}, "maxResults"),
        ({"query": 42}, "query"),
    ],
)
def test_search_rejects_bad_input(client, search_cli, payload, message):
    resp = client.post("/search", json=payload)
    assert_error(resp, 400, "Bad Request", message)
    assert search_cli.calls == []


def test_browse_text(client, search_cli):
    search_cli.pages["https://example.org/page"] = "  Page text  "
    resp = client.post("/browse", json={"url": "https://example.org/page"})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["url"] == "https://example.org/page"
    assert body["content"] == {"text": "Page text"}


def test_browse_html(client, search_cli):
    search_cli.html["main"] = "<main>Hi</main>"
    resp = client.post(
        "/browse", json={"url": "https://example.org/page", "selector": "main", "extract": "html"}
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["content"] == {"html": "<main>Hi</main>"}


@pytest.mark.parametrize(
    "payload, message",
    [
        ({}, "URL parameter is required and must be a string"),
        ({"url": "not-a-url"}, "Invalid URL"),
        ({"url": "ftp://example.org/file"}, "Only HTTP/HTTPS protocols are allowed"),
        ({"url": "https://example.org/", "extract": "pdf"}, "extract must be one of text, html"),
        ({"url": "https://example.org/", "selector": " "}, "selector cannot be empty"),
    ],
)
def test_browse_rejects_bad_input(client, payload, message):
    assert_error(client.post("/browse", json=payload), 400, "Bad Request", message)


def test_screenshot(client, search_cli):
    resp = client.post("/screenshot", json={"url": "https://example.org/page"})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["url"] == "https://example.org/page"
    assert base64.b64decode(body["screenshot"]) == PNG_BYTES
    (path,) = [call[3] for call in search_cli.calls if call[2] == "screenshot"]
    assert not Path(path).exists()


def test_screenshot_rejects_bad_url(client):
    resp = client.post("/screenshot", json={"url": "javascript:alert(1)"})
    assert_error(resp, 400, "Bad Request", "Invalid URL")


def test_browser_failure_is_500(client, search_cli):
    search_cli.fail("open")
    resp = client.post("/browse", json={"url": "https://example.org/page"})
    assert_error(resp, 500, "Internal Server Error", "scripted failure")
    assert search_cli.commands("close") == [("close",)]


def test_requests_share_one_session_each(client, search_cli):
    search_cli.pages["https://example.org/a"] = "A"
    client.post("/browse", json={"url": "https://example.org/a"})
    client.post("/browse", json={"url": "https://example.org/a"})
    first, second = [call[1] for call in search_cli.calls[:4]], [call[1] for call in search_cli.calls[4:]]
    assert len(set(first)) == 1
    assert len(set(second)) == 1
    assert first[0] != second[0]


def test_default_port_and_environment():
    assert load_config(environ={}).port == 5000
    assert load_config(environ={"PORT": "8123"}).port == 8123
    assert load_config(environ={"PORT": "8123"}, port=9000, host=None).port == 9000
