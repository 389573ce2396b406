"""Security headers middleware.

Learn: Two header sets. BASE_HEADERS go on every response. API_HEADERS go
on /api/ responses only, because those carry bearer tokens and user
records that no browser or proxy may keep. HSTS is sent over HTTPS only,
with a configurable max-age (0 turns it off).

Headers are applied with setdefault, so a handler that sets one itself
keeps its own value.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}

API_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, hsts_max_age: int = 31536000):
        super().__init__(app)
        self.hsts = (
            f"max-age={hsts_max_age}; includeSubDomains" if hsts_max_age > 0 else None
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        headers = dict(BASE_HEADERS)
        if request.url.path.startswith("/api/"):
            headers.update(API_HEADERS)
        if self.hsts and request.url.scheme == "https":
            headers["Strict-Transport-Security"] = self.hsts
        for name, value in headers.items():
            response.headers.setdefault(name, value)
        return response
