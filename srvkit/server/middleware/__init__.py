"""Built-in router modules, by the identifier used in configuration."""

from .body import FormParser, JSONParser, XMLParser
from .request_log import RequestLog
from .server_error import ServerError
from .session import Session
from .static import Static
from .templates import Templates
from .upload import Upload

BUILTIN_MIDDLEWARE = {
    "Session": Session,
    "Templates": Templates,
    "Static": Static,
    "JSON": JSONParser,
    "XML": XMLParser,
    "Form": FormParser,
    "Upload": Upload,
    "RequestLog": RequestLog,
    "ServerError": ServerError,
}

__all__ = [
    "BUILTIN_MIDDLEWARE",
    "FormParser",
    "JSONParser",
    "RequestLog",
    "ServerError",
    "Session",
    "Static",
    "Templates",
    "Upload",
    "XMLParser",
]
