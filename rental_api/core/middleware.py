from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import time
from typing import Dict, Tuple, Callable
import logging
from datetime import datetime, timedelta

from rental_api.core.config import settings
from rental_api.core.errors import error_body
from rental_api.core.security import verify_token

logger = logging.getLogger(__name__)

# Per-process counters; each instance enforces its own window
rate_limit_store: Dict[str, Tuple[int, datetime]] = {}

class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request with its status and duration, and exposes the
    duration in the ``X-Response-Time`` header. Requests slower than
    ``SLOW_REQUEST_MS`` are logged as warnings.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"
        message = f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.2f}ms)"
        if elapsed_ms > settings.SLOW_REQUEST_MS:
            logger.warning(f"Slow request: {message}")
        else:
            logger.info(message)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware for API rate limiting based on client IP and user role.
    Admins get a higher limit; the health endpoint is never limited.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip rate limiting for certain paths
        if request.url.path.startswith(f"{settings.API_V1_STR}/health"):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"

        # Check for Authorization header to identify user role
        auth_header = request.headers.get("Authorization")
        rate_limit = settings.RATE_LIMIT_PER_MINUTE

        user_role = None
        if auth_header and auth_header.startswith("Bearer "):
            try:
                payload = verify_token(auth_header.replace("Bearer ", "", 1))
                user_role = payload.role

                # Admin users get higher rate limits
                if user_role == "admin":
                    rate_limit = settings.ADMIN_RATE_LIMIT_PER_MINUTE
            except Exception as e:
                # Invalid tokens are rejected later by the endpoint; count them as anonymous
                logger.debug(f"Token validation failed in rate limiting: {str(e)}")

        # Rate limit key combines IP and role for more granular control
        rate_limit_key = f"{client_ip}:{user_role or 'anonymous'}"

        current_time = datetime.now()
        window_size = timedelta(minutes=1)
        if rate_limit_key in rate_limit_store:
            count, window_start = rate_limit_store[rate_limit_key]

            # If window has expired, reset the counter
            if current_time - window_start > window_size:
                rate_limit_store[rate_limit_key] = (1, current_time)
            else:
                if count >= rate_limit:
                    logger.warning(f"Rate limit exceeded for {rate_limit_key}")
                    retry_after = max(1, int((window_start + window_size - current_time).total_seconds()))
                    return JSONResponse(
                        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                        content=error_body("Too many requests", "TOO_MANY_REQUESTS"),
                        headers={
                            "X-RateLimit-Limit": str(rate_limit),
                            "X-RateLimit-Remaining": "0",
                            "X-RateLimit-Reset": str(int((window_start + window_size).timestamp())),
                            "Retry-After": str(retry_after),
                        },
                    )
                rate_limit_store[rate_limit_key] = (count + 1, window_start)
        else:
            rate_limit_store[rate_limit_key] = (1, current_time)

        count, _ = rate_limit_store[rate_limit_key]
        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rate_limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rate_limit - count))

        return response

def add_middleware(app: FastAPI) -> None:
    """Add all middleware to the FastAPI application."""
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS] or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
