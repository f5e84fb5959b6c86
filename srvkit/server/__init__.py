"""
HTTP and HTTPS listeners and the routers they serve.
"""

from .base import ServerState, WebServer
from .http import HTTPServer
from .https import HTTPSServer
from .router import Router, RouterAssembler, RouteLayer, not_found, route_path
from .templates import TemplateEngine

__all__ = [
    "HTTPServer",
    "HTTPSServer",
    "WebServer",
    "ServerState",
    "Router",
    "RouterAssembler",
    "RouteLayer",
    "TemplateEngine",
    "not_found",
    "route_path",
]
