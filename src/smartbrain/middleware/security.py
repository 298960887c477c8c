"""Security headers middleware.

Learn: Smart Brain responses carry session tokens (/register, /signin)
and profile data (/profile/{id}), so nothing may be cached or framed:

- Cache-Control: no-store, so a shared browser or proxy never replays a
  token or a profile to the next user
- X-Content-Type-Options / X-Frame-Options: the JSON API is never
  sniffed into HTML or embedded in another site's frame
- Referrer-Policy: image URLs the user submits stay out of referrers
- Strict-Transport-Security: only when the request itself came over HTTPS
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

NO_STORE = "no-store"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        headers = response.headers
        headers["Cache-Control"] = NO_STORE
        headers["X-Content-Type-Options"] = "nosniff"
        headers["X-Frame-Options"] = "DENY"
        headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.scheme == "https":
            headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
