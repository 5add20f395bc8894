# Services package init
"""
VoiceSnap Backend — Generation Core
=====================================

What:  Everything between the HTTP layer and the upstream model.

Service Inventory (leaves first):
    - sanitizer:          SanitizationPolicy + sanitize()
    - response_parser:    unwrap() fenced JSON, parse_and_validate()
    - shape_validators:   Shape enum + per-shape validators
    - error_classifier:   ErrorKind, ClassifiedError, is_retryable(), classify_failure()
    - llm_base:           GenerationTransport (abstract upstream boundary)
    - gemini_service:     GeminiTransport (google-generativeai)
    - invocation_client:  InvocationClient (retries, backoff, envelope checks)
    - prompts:            operation catalogue, token budgets, languages
    - transcript_service: TranscriptService (one coroutine per operation)
"""
