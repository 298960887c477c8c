"""Rate limiting middleware — Redis-based fixed window.

Learn: Uses a per-minute counter stored in Redis.
Each IP gets a counter key like "smartbrain:rl:{ip}:{bucket}:{minute}".
The counters go to app.state.rate_limit_redis, a separate database from
the session store: the gate admits any key it finds there, so a counter
key in that keyspace would work as a token.
/signin and /register get a stricter limit to slow down credential
guessing.

Skips rate limiting if its Redis is unavailable.
"""

import time

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()

AUTH_PATHS = ("/signin", "/register")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Redis-based rate limiting per IP per minute."""

    def __init__(self, app, default_rpm: int = 100, auth_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.auth_rpm = auth_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        redis = getattr(request.app.state, "rate_limit_redis", None)
        if redis is None:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        is_auth = request.url.path in AUTH_PATHS
        rpm = self.auth_rpm if is_auth else self.default_rpm

        window = int(time.time() // 60)
        bucket = "auth" if is_auth else "api"
        key = f"smartbrain:rl:{client_ip}:{bucket}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)  # 2-min TTL for safety
        except RedisError as e:
            logger.warning("rate_limit.redis_unavailable", error=str(e))
            return await call_next(request)

        if count > rpm:
            logger.warning("rate_limit.exceeded", client=client_ip, bucket=bucket)
            return JSONResponse(
                status_code=429,
                content={
                    "error": {
                        "kind": "rate_limited",
                        "message": "Rate limit exceeded. Try again later.",
                    }
                },
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
