"""Rate limiting middleware for relay endpoints."""

import logging
from typing import Callable, Iterable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from bloom_maps.config import RATE_LIMIT_ENABLED
from bloom_maps.rate_limiter import RelayRateLimiter

logger = logging.getLogger(__name__)

RELAY_PATHS = frozenset({"/fetch_climate", "/fetch_ndvi"})


class RelayRateLimitMiddleware(BaseHTTPMiddleware):
    """Enforces the upstream budget on relay paths.

    Other paths pass through untouched. Returns HTTP 429 with an
    `{"error": ...}` body when the budget is exhausted.
    """

    def __init__(
        self,
        app,
        limiter: Optional[RelayRateLimiter] = None,
        enabled: bool = RATE_LIMIT_ENABLED,
        paths: Iterable[str] = RELAY_PATHS
    ):
        """Initialize rate limit middleware.

        Args:
            app: ASGI application
            limiter: Limiter instance (creates default if None and enabled)
            enabled: Whether limiting is active
            paths: Paths the limit applies to
        """
        super().__init__(app)
        self.enabled = enabled
        self.paths = frozenset(paths)
        self.rate_limiter = limiter or (RelayRateLimiter() if enabled else None)
        logger.info(f"Relay rate limit enabled: {self.enabled}")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Answer 429 for relay paths once the upstream budget is spent."""
        if not self.enabled or request.url.path not in self.paths:
            return await call_next(request)

        allowed, retry_after = await self.rate_limiter.is_allowed()
        if not allowed:
            request_host = request.client.host if request.client else "unknown"
            logger.warning(f"Relay rate limit exceeded for {request_host} accessing {request.url.path}")

            return JSONResponse(
                status_code=429,
                content={"error": "Rate limit exceeded. Please try again later."},
                headers={"Retry-After": str(retry_after)}
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.rate_limiter.max_requests)
        response.headers["X-RateLimit-Window"] = str(self.rate_limiter.window_size)
        return response
