# Middleware package init
"""
ReadSync Backend — Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Preflight] → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Preflight FIRST: OPTIONS is answered before anything else runs,
       including authentication.
    2. Request ID: correlation id for logs and the X-Request-ID header.
    3. Logging: access line with status and duration.
    4. GZip / CORS: Starlette built-ins for ordinary responses.
"""
