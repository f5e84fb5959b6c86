"""
TLS listener, configured under ``server.https``.

Takes the same keys as the HTTP listener plus ``sslKey`` and ``sslCert``
(PEM files, relative to the working directory) and an optional
``sslPassphrase`` for an encrypted key.
"""

from pathlib import Path
from typing import Any

from ..exceptions import ServerError
from .base import WebServer


class HTTPSServer(WebServer):
    section = "https"
    label = "HTTPS"
    scheme = "https"

    def _credential_file(self, key: str, what: str) -> Path:
        name = self._get(key)
        if not isinstance(name, str):
            raise AssertionError(f"'{self._key(key)}' must be a string")
        path = Path.cwd() / name
        try:
            path.read_bytes()
        except OSError as e:
            raise ServerError(f"Failed to read {what} file {name}", cause=e) from e
        return path

    def _ssl_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "ssl_keyfile": str(self._credential_file("sslKey", "key")),
            "ssl_certfile": str(self._credential_file("sslCert", "certificate")),
        }
        passphrase = self._get("sslPassphrase")
        if passphrase is not None:
            options["ssl_keyfile_password"] = str(passphrase)
        return options
