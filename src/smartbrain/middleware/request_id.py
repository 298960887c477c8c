"""Request ID middleware.

Learn: The React frontend and any proxy in front of Smart Brain may send
X-Request-ID; otherwise a UUID is generated. The id is bound to
structlog's contextvars, so every log line of one request can be
grepped together, and echoed back in the response so
a user reporting a failed sign-in can quote it.

Contextvars are cleared first: a worker reuses its context between
requests and a user_id bound by the gate must not leak into the next one.
"""

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(HEADER) or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        request.state.request_id = request_id

        response: Response = await call_next(request)
        response.headers[HEADER] = request_id
        return response
