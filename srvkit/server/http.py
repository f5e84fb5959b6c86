"""
Plain HTTP listener, configured under ``server.http``:

    server.http.disabled = false
    server.http.port = 8080
    server.http.basePath = /
    server.http.routerName = public
"""

from .base import WebServer


class HTTPServer(WebServer):
    section = "http"
    label = "HTTP"
    scheme = "http"
