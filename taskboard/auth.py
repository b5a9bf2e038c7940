"""
Collaborators consumed by the board services.

Authentication provider:
    current_user() -> user id or None
    sign_out()

Sticky preference store:
    get(key) -> value or None
    set(key, value, path, httponly, samesite, secure, max_age)
    delete(key)

The HTTP implementations trust an upstream auth proxy that forwards the
signed-in user in X-User-Id and proves itself with the shared X-API-Key.
"""
import hmac
import logging
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class StaticAuth:
    """Auth provider with a fixed (or no) user. Used by scripts and tests."""

    def __init__(self, user_id: Optional[str] = None):
        self.user_id = user_id

    def current_user(self) -> Optional[str]:
        return self.user_id

    def sign_out(self) -> None:
        self.user_id = None


class HeaderAuth:
    """Resolves the user from proxy headers guarded by the shared API key."""

    def __init__(self, headers, api_secret: str):
        self.headers = headers
        self.api_secret = api_secret
        self.signed_out = False

    def current_user(self) -> Optional[str]:
        if self.signed_out or not self.api_secret:
            return None
        provided = self.headers.get("X-API-Key", "").strip()
        if not provided or not hmac.compare_digest(
            provided.encode(), self.api_secret.encode()
        ):
            if provided:
                logger.warning("Rejected request with invalid X-API-Key")
            return None
        user_id = self.headers.get("X-User-Id", "").strip()
        return user_id or None

    def sign_out(self) -> None:
        # Sessions live at the proxy; only this request stops being authenticated
        self.signed_out = True


class MemoryPreferences:
    """Dict-backed preference store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.values: Dict[str, str] = dict(initial or {})
        self.options: Dict[str, dict] = {}

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str, **options) -> None:
        self.values[key] = value
        self.options[key] = options

    def delete(self, key: str) -> None:
        self.values.pop(key, None)
        self.options.pop(key, None)


class CookiePreferences:
    """
    Cookie-backed preference store for one request.

    Writes are queued and applied to the response by apply(); reads see the
    queued value first so later calls in the same request agree.
    """

    def __init__(self, cookies):
        self.cookies = cookies
        self.pending: Dict[str, Tuple[Optional[str], dict]] = {}

    def get(self, key: str) -> Optional[str]:
        if key in self.pending:
            return self.pending[key][0]
        return self.cookies.get(key) or None

    def set(
        self,
        key: str,
        value: str,
        path: str = "/",
        httponly: bool = True,
        samesite: str = "Lax",
        secure: bool = False,
        max_age: Optional[int] = None,
    ) -> None:
        self.pending[key] = (value, {
            "path": path,
            "httponly": httponly,
            "samesite": samesite,
            "secure": secure,
            "max_age": max_age,
        })

    def delete(self, key: str) -> None:
        self.pending[key] = (None, {"path": "/"})

    def apply(self, response):
        """Write queued cookies onto a Flask response."""
        for key, (value, options) in self.pending.items():
            if value is None:
                response.delete_cookie(key, path=options.get("path", "/"))
            else:
                response.set_cookie(key, value, **options)
        return response
