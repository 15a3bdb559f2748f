from .api_server import create_api_server, create_browser

__all__ = ["create_api_server", "create_browser"]
