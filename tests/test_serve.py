import logging

import pytest
import structlog
from fastapi import FastAPI

from agent_browser_api import serve


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_main_starts_uvicorn_with_flags(monkeypatch):
    started = {}

    def fake_run(app, host, port, log_level):
        started.update(app=app, host=host, port=port, log_level=log_level)

    monkeypatch.setenv("PORT", "7000")
    monkeypatch.setattr(serve.uvicorn, "run", fake_run)

    serve.main(["--host", "127.0.0.1", "--executable", "/opt/agent-browser", "--log-level", "debug"])

    assert isinstance(started["app"], FastAPI)
    assert started["app"].state.config.executable == "/opt/agent-browser"
    assert started["host"] == "127.0.0.1"
    assert started["port"] == 7000
    assert started["log_level"] == "debug"


def test_port_flag_overrides_environment(monkeypatch):
    started = {}
    monkeypatch.setenv("PORT", "7000")
    monkeypatch.setattr(serve.uvicorn, "run", lambda app, host, port, log_level: started.update(port=port))

    serve.main(["--port", "8081"])

    assert started["port"] == 8081


def test_structlog_events_follow_log_level(caplog):
    serve.configure_logging("info")

    with caplog.at_level(logging.WARNING):
        log = structlog.stdlib.get_logger(component="search")
        log.info("quiet event")
        log.warning("loud event", state="opening")

    messages = [record.getMessage() for record in caplog.records]
    assert any("loud event" in m and "state='opening'" in m for m in messages)
    assert not any("quiet event" in m for m in messages)
