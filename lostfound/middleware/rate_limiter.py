"""
Lost & Found API — Sliding window rate limiter middleware (Redis-backed)

Limits POST {API_PREFIX}/auth/login to RATE_LIMIT_MAX_ATTEMPTS per
RATE_LIMIT_WINDOW_SECONDS per username, using a sorted set of attempt
timestamps (ZREMRANGEBYSCORE/ZCARD/ZADD) for a true sliding window.
"""
import json
import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest

from lostfound.core.config import Settings
from lostfound.core.errors import error_response

logger = logging.getLogger(__name__)

RATE_LIMIT_PREFIX = "ratelimit:login:"


def tracking_key(body: bytes, request: Request) -> str:
    """Username from the JSON body, falling back to the client address."""
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        data = None
    if isinstance(data, dict) and isinstance(data.get("username"), str) and data["username"]:
        return data["username"]
    return request.client.host if request.client else "unknown"


class SlidingWindowRateLimiter(BaseHTTPMiddleware):
    """
    Applies only to POST {API_PREFIX}/auth/login and only when the app has
    a Redis client on app.state.
    """

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings
        login_path = f"{settings.API_PREFIX.rstrip('/')}/auth/login"
        self.paths = (login_path, login_path + "/")

    async def dispatch(self, request: Request, call_next) -> Response:
        redis = getattr(request.app.state, "redis", None)
        if redis is None or request.method != "POST" or request.url.path not in self.paths:
            return await call_next(request)

        body = await request.body()
        key = f"{RATE_LIMIT_PREFIX}{tracking_key(body, request)}"
        window = self.settings.RATE_LIMIT_WINDOW_SECONDS
        now = time.time()

        pipe = redis.pipeline()
        pipe.zremrangebyscore(key, "-inf", now - window)
        pipe.zcard(key)
        pipe.zadd(key, {f"{now}:{uuid.uuid4().hex}": now})
        pipe.expire(key, window + 1)
        results = await pipe.execute()

        attempts = results[1]  # count before this attempt
        if attempts >= self.settings.RATE_LIMIT_MAX_ATTEMPTS:
            logger.warning("Login rate limit hit for key=%s", key)
            return error_response(
                429,
                f"Too many login attempts. Maximum {self.settings.RATE_LIMIT_MAX_ATTEMPTS} "
                f"attempts per {window} seconds.",
                headers={"Retry-After": str(window)},
            )

        # Re-attach the consumed body so the route can read it.
        async def receive():
            return {"type": "http.request", "body": body, "more_body": False}

        return await call_next(StarletteRequest(request.scope, receive))
