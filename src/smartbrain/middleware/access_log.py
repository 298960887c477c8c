"""Access log middleware — one structured line per request.

Learn: Logs method, path, status and duration as an "http.request"
event. Runs inside RequestIdMiddleware so the line carries the
request_id, and the user id once the gate has admitted the request.
The Authorization header is never logged: it is the
session token itself.
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        started = time.perf_counter()
        response: Response = await call_next(request)
        logger.info(
            "http.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            client=request.client.host if request.client else None,
            user_id=getattr(request.state, "user_id", None),
        )
        return response
