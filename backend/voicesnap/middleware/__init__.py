# Middleware package init
"""
VoiceSnap Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Security Headers] → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Security headers: outermost, so 429s carry them too
    2. Rate Limit: reject abusive clients before any processing
    3. Request ID: correlation ID for logs and error bodies
    4. Logging: one access line per request, tagged with the request ID
    5. CORS: FastAPI's CORSMiddleware (handles preflight)

API key authentication is a route dependency (auth.py), not middleware,
so /health and the docs stay public.
"""
