"""
VoiceSnap Backend — Rate Limiting Middleware
==============================================

What:  Per-client sliding window rate limiter for the /api routes.
How:   Tracks request timestamps in memory, keyed by API key when one is
       presented, otherwise by client IP.
Who:   Applied to every request via Starlette middleware.
When:  Outermost middleware (rejects abuse before any processing).

Algorithm: Sliding Window Counter
    1. Each client key gets a list of request timestamps
    2. On each request, drop timestamps older than the window
    3. If remaining count >= limit, reject with 429
    4. Otherwise, record the current timestamp and allow through

Scope:
    Single-process only. Counters live in this process and reset on restart;
    multi-worker deployments need a shared store.
"""

import hashlib
import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from voicesnap.config import settings
from voicesnap.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Configuration (from settings):
        rate_limit_requests: Max requests per window (default: 100)
        rate_limit_window: Window duration in seconds (default: 3600 = 1 hour)

    Response on rate limit:
        HTTP 429 with Retry-After header and the standard error body
        (code RATE_LIMITED, retryable true).
    """

    EXCLUDED_PATHS = {"/", "/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)

    @staticmethod
    def _client_key(request: Request) -> str:
        api_key = request.headers.get("X-API-Key")
        if api_key:
            # Hash so raw secrets never sit in the counter table or logs
            return "key:" + hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:16]
        host = getattr(request.client, "host", "unknown") if request.client else "unknown"
        return f"ip:{host}"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client = self._client_key(request)
        now = time.time()
        window_start = now - settings.rate_limit_window

        self._requests[client] = [
            ts for ts in self._requests[client] if ts > window_start
        ]

        if len(self._requests[client]) >= settings.rate_limit_requests:
            oldest = self._requests[client][0]
            retry_after = int(oldest + settings.rate_limit_window - now) + 1

            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds window",
                client,
                len(self._requests[client]),
                settings.rate_limit_window,
            )

            return JSONResponse(
                status_code=429,
                content={
                    "error": f"Too many requests. Please wait {retry_after} seconds before retrying.",
                    "code": "RATE_LIMITED",
                    "retryable": True,
                    "request_id": request_id_var.get("") or None,
                },
                headers={"Retry-After": str(retry_after)},
            )

        self._requests[client].append(now)

        # Periodic cleanup of inactive clients
        if sum(len(v) for v in self._requests.values()) % 1000 == 0:
            self._cleanup_inactive_clients(window_start)

        return await call_next(request)

    def _cleanup_inactive_clients(self, window_start: float) -> None:
        inactive = [
            key for key, timestamps in self._requests.items()
            if not timestamps or max(timestamps) < window_start
        ]
        for key in inactive:
            del self._requests[key]

        if inactive:
            logger.debug("Cleaned up %d inactive rate-limit entries", len(inactive))
