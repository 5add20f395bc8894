# Routes package init
"""
VoiceSnap Backend — API Routes Package
========================================

Route Inventory:
    - transcripts.py:  POST /api/<operation>  (15 transcript operations)
    - health.py:       GET  /, GET /health    (service health check)

Design Principle:
    Routes are THIN. They extract the body, call TranscriptService, and
    shape the response. Classification of failures happens in the core;
    status codes are chosen by the exception handlers in main.py.
"""
