"""
VoiceSnap Backend — API Key Authentication
============================================

What:  FastAPI dependency that guards every /api route with a shared secret.
How:   Compares the X-API-Key header with settings.api_secret_key using
       hmac.compare_digest (constant time). Any failure raises
       AuthenticationError, rendered as 401 by main.py.
Who:   Attached to the transcripts router via `dependencies=[...]`.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header

from voicesnap.config import settings
from voicesnap.exceptions import AuthenticationError
from voicesnap.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


def api_key_matches(provided: Optional[str], expected: Optional[str]) -> bool:
    """Constant-time comparison; an unset server key never matches."""
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


async def require_api_key(
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
) -> None:
    if not api_key_matches(x_api_key, settings.api_secret_key):
        logger.warning(
            "[%s] Rejected request with %s API key",
            request_id_var.get(""),
            "missing" if not x_api_key else "invalid",
        )
        raise AuthenticationError()
