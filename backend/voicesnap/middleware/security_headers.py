"""
VoiceSnap Backend — Security Headers Middleware
=================================================

What:  Adds baseline browser-hardening headers to every response.
How:   Sets each header unless the route already chose a value.
Who:   Applied to every request via Starlette middleware, errors included.

Headers:
    X-Content-Type-Options:     nosniff
    X-Frame-Options:            DENY
    Referrer-Policy:            no-referrer
    Strict-Transport-Security:  max-age=15552000; includeSubDomains
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
