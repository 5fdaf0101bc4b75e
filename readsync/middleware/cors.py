"""
ReadSync Backend — CORS Preflight Middleware
=============================================

What:  Answers every OPTIONS request with 200 and permissive CORS headers,
       and stamps the allowed origin on every other response.
How:   Short-circuits before routing, so preflights never hit the auth guard
       and never produce 405 on routes that don't declare OPTIONS.
When:  Outermost middleware.

Starlette's CORSMiddleware only treats a request as a preflight when it
carries both `Origin` and `Access-Control-Request-Method`, and only adds
`Access-Control-Allow-Origin` when the request sent `Origin`. Reader
clients send bare OPTIONS and often no Origin at all.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class PreflightMiddleware(BaseHTTPMiddleware):
    """
    Args:
        allow_any_origin: Also set `Access-Control-Allow-Origin: *` on
            ordinary responses that don't already carry one. Off when
            CORS_ORIGINS names specific origins.
    """

    def __init__(self, app: ASGIApp, allow_any_origin: bool = True):
        super().__init__(app)
        self.allow_any_origin = allow_any_origin

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=PREFLIGHT_HEADERS)
        response = await call_next(request)
        if self.allow_any_origin:
            response.headers.setdefault("Access-Control-Allow-Origin", "*")
        return response
