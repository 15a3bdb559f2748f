"""
agent-browser-api server entry point.

This script starts the HTTP server. It handles:
- Command-line argument parsing
- Configuration loading (PORT from the environment, flags override)
- FastAPI application creation
- Server startup with uvicorn

Usage:
    # Listen on $PORT (default 5000)
    python -m agent_browser_api.serve

    # Explicit port and a non-default browser executable
    python -m agent_browser_api.serve --port 8080 --executable /opt/bin/agent-browser

Open WebUI imports the tools from http://<host>:<port>/openapi.json
(use http://host.docker.internal:<port>/openapi.json when Open WebUI runs in Docker).
"""

import argparse
import logging

import structlog
import uvicorn

from .api.api_server import create_api_server
from .config import load_config


def configure_logging(level: str) -> None:
    """Send stdlib and structlog records through one handler at ``level``."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="agent-browser HTTP API server")
    parser.add_argument(
        "--host",
        metavar="HOST",
        type=str,
        default=None,
        help="Interface to bind (default 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        metavar="PORT",
        type=int,
        default=None,
        help="Port to listen on (default $PORT or 5000)",
    )
    parser.add_argument(
        "--executable",
        metavar="PATH",
        type=str,
        default=None,
        help="agent-browser executable to drive",
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        type=str,
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Logging level",
    )
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    config = load_config(host=args.host, port=args.port, executable=args.executable)
    app = create_api_server(config)

    logging.getLogger(__name__).info(
        "OpenAPI document: http://localhost:%d/openapi.json", config.port
    )
    uvicorn.run(app, host=config.host, port=config.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
