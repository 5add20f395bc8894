"""
VoiceSnap Backend — Request Logging Middleware
================================================

What:  One structured access-log line per HTTP request.
How:   Measures wall time around call_next and logs method, path, status,
       duration, request ID and client IP. Level follows the status code
       (5xx ERROR, 4xx WARNING, otherwise INFO). Requests slower than
       SLOW_REQUEST_MS get an extra WARNING.
Who:   Applied to every request via Starlette middleware.

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path, status, duration, IP, request ID
    ❌ Don't log: request bodies (transcripts), the X-API-Key header
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from voicesnap.middleware.request_id import request_id_var

logger = logging.getLogger("voicesnap.access")

SLOW_REQUEST_MS = 5000
QUIET_PATHS = {"/", "/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Typical durations:
        - GET /health: 1-5ms (plus the Gemini reachability probe)
        - POST /api/summary: 2000-8000ms (Gemini call dominates)
        - POST /api/* with retries: up to ~4s of extra backoff
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path

        if path in QUIET_PATHS:
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        if duration_ms > SLOW_REQUEST_MS:
            logger.warning("[%s] Slow request detected: %s %.0fms", rid, path, duration_ms)

        return response
