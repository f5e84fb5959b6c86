"""
Signed-cookie sessions.

    server.router.Session.secret = change-me
    server.router.Session.maxAge = 3600000     (milliseconds, optional)
    server.router.Session.cookieName = srv.sid (optional)

Without ``maxAge`` (or with 0) the cookie lasts for the browser session.
Cookies carry whole seconds, so ``maxAge`` is rounded up.
"""

import math

from starlette.middleware.sessions import SessionMiddleware

from ...core.middleware import Middleware

DEFAULT_COOKIE_NAME = "srv.sid"


def max_age_seconds(max_age_ms: int | float | None) -> int | None:
    """Cookie lifetime in seconds for ``maxAge`` in milliseconds."""
    if not max_age_ms:
        return None
    return max(1, math.ceil(max_age_ms / 1000))


class Session(Middleware):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.secret = self.str_option("secret")
        max_age = self.option("maxAge")
        if max_age is not None:
            max_age = self.number_option("maxAge")
            if max_age < 0:
                raise AssertionError(f"'{self.config_path}.maxAge' must not be negative")
        self.max_age: int | None = max_age_seconds(max_age)
        self.cookie_name = self.str_option("cookieName", DEFAULT_COOKIE_NAME)

    def bind_to_router(self) -> None:
        self.router.use(
            SessionMiddleware,
            secret_key=self.secret,
            session_cookie=self.cookie_name,
            max_age=self.max_age,
        )
