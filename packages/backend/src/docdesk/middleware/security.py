"""Security headers middleware.

Learn: every response gets a fixed set of hardening headers. On top of
that, any exchange that carries a session is marked Cache-Control:
no-store, so no shared cache keeps a token or someone's document:
- anything under /api/auth/ (tokens live in those bodies)
- requests that present a bearer token or the session cookie
- responses that set or clear the session cookie

HSTS goes on https requests, and on every response in production, where
TLS usually ends at a proxy and the app only sees plain http.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

AUTH_PREFIX = "/api/auth/"

HARDENING_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
HSTS = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Harden every response; keep session-bearing ones out of caches."""

    def __init__(self, app, session_cookie: str, force_hsts: bool = False):
        super().__init__(app)
        self.session_cookie = session_cookie
        self.force_hsts = force_hsts

    def _carries_session(self, request: Request, response: Response) -> bool:
        if request.url.path.startswith(AUTH_PREFIX):
            return True
        if "authorization" in request.headers:
            return True
        if self.session_cookie in request.cookies:
            return True
        prefix = f"{self.session_cookie}="
        return any(
            c.startswith(prefix) for c in response.headers.getlist("set-cookie")
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(HARDENING_HEADERS)
        if self._carries_session(request, response):
            response.headers["Cache-Control"] = "no-store"
        if self.force_hsts or request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = HSTS
        return response
