"""
VoiceSnap Backend — Health Check Route
========================================

What:  Liveness/health endpoint for monitoring and load balancer probes.
How:   Reports process uptime and whether the generation transport answers
       its lightweight health probe.
Who:   Docker health checks, load balancers, uptime monitors.

Status levels:
    - ok:        Gemini reachable
    - degraded:  Gemini unreachable (HTTP 200; the API still answers,
                 operations will fail with classified errors)
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from voicesnap import __version__
from voicesnap.schemas.transcript import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/", response_model=HealthResponse, summary="Service status")
@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(request: Request) -> HealthResponse:
    gemini_status = "available"
    overall = "ok"

    transport = getattr(request.app.state, "transport", None)
    if transport is None or not await transport.health_check():
        gemini_status = "unavailable"
        overall = "degraded"
        logger.warning("Health check: generation service unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        gemini=gemini_status,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
