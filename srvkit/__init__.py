"""
srvkit: configuration-driven HTTP/HTTPS servers.

Configuration (``srvkit.config``) names the middleware each router is
assembled from (``srvkit.server.router``); listeners
(``srvkit.server.http``, ``srvkit.server.https``) serve the assembled
routers and ``srvkit.bootstrap`` ties the process together.
"""

from .exceptions import (
    AssemblyError,
    ConfigError,
    HookError,
    LoggingError,
    ResourceError,
    ServerError,
    SrvError,
    TemplateError,
    iter_causes,
)
from .version import package_version

__version__ = package_version()

__all__ = [
    "__version__",
    "SrvError",
    "ConfigError",
    "LoggingError",
    "AssemblyError",
    "ServerError",
    "HookError",
    "TemplateError",
    "ResourceError",
    "iter_causes",
]
