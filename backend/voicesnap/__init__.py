"""
VoiceSnap Backend — Application Package
=========================================

Layered architecture:

    ┌─────────────────────────────────────┐
    │        Routes + Middleware          │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │        TranscriptService            │  ← one coroutine per operation
    ├─────────────────────────────────────┤
    │  Sanitizer │ Parser │ Validators    │  ← pure, stateless
    ├─────────────────────────────────────┤
    │  InvocationClient + ErrorClassifier │  ← retries, backoff, envelope checks
    ├─────────────────────────────────────┤
    │  GenerationTransport (Gemini)       │  ← upstream boundary
    └─────────────────────────────────────┘

The core returns values (success or ClassifiedError); only the HTTP layer
turns failures into status codes.
"""

__version__ = "1.0.0"
