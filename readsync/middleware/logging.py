"""
ReadSync Backend — Request Logging Middleware
==============================================

What:  One access-log line for every HTTP request.
How:   Measures duration around call_next and logs method, path, status,
       duration, request id and client ip.
When:  Inside RequestIDMiddleware, so the request id is already set.

Never logged: request bodies (passwords), the Authorization header, tokens.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from readsync.middleware.request_id import request_id_var

logger = logging.getLogger("readsync.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request at a level chosen by status class:
    5xx -> ERROR, 4xx -> WARNING, everything else -> INFO.

    Typical durations are dominated by the identity-provider round-trip
    that every protected route makes (no token caching).
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        # Health checks run every few seconds
        if path == "/health":
            return await call_next(request)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
