"""
ClassNotes Backend - Middleware Package
=========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first so every later log line can be correlated
    2. Logging sees the final status code and total duration
    3. GZip and CORS are the stock Starlette/FastAPI middleware

    Responses travel back through the chain in reverse, which is when
    X-Request-ID is attached and the access line is written.
"""
