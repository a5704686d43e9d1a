"""
Groceree Backend - Middleware Package
=======================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the access log line and every log record
    emitted while handling the request can carry the same correlation ID.
    On the way out the order reverses: logging sees the final status code
    and the request ID header is attached last.
"""
