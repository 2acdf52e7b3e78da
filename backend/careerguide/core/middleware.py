"""
Career Guidance - HTTP Middleware

- RequestLoggingMiddleware: request id, timing headers, one log line per request
- SecurityHeadersMiddleware: static hardening headers
- RequestSizeLimitMiddleware: rejects oversized bodies before they are read
"""

import logging
import time
from typing import Callable, FrozenSet

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from careerguide.core.logging_config import (
    generate_request_id,
    logger,
    set_request_id,
    set_user_id,
)

# Health checks and docs are polled constantly; not worth a log line
QUIET_PATHS: FrozenSet[str] = frozenset({
    "/",
    "/health",
    "/health/live",
    "/health/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
})

SLOW_REQUEST_MS = 1000.0


def should_skip_logging(path: str) -> bool:
    return path in QUIET_PATHS


def is_streaming_path(path: str) -> bool:
    """Notification streams stay open for the whole session"""
    return path.endswith("/notifications/stream")


def level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an id (honouring an incoming X-Request-ID),
    logs its outcome and adds X-Request-ID / X-Response-Time to the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)
        path = request.url.path
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.log_error_with_context(
                exc,
                context=f"{request.method} {path}",
                http_method=request.method,
                http_path=path,
                duration_ms=round(elapsed_ms, 2),
            )
            raise
        finally:
            # The user id is bound inside the handler; clear it for the next request
            set_user_id("")

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"

        if not should_skip_logging(path):
            streaming = is_streaming_path(path)
            logger.log_request(
                request.method,
                path,
                response.status_code,
                elapsed_ms,
                level=level_for_status(response.status_code),
                client_ip=request.client.host if request.client else None,
                is_streaming=streaming,
            )
            if elapsed_ms > SLOW_REQUEST_MS and not streaming:
                logger.warning(f"Slow request: {request.method} {path} took {elapsed_ms:.0f}ms")

        set_request_id("")
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in self.HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """413 for bodies whose declared length exceeds `max_size` bytes"""

    def __init__(self, app: ASGIApp, max_size: int):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_size:
            logger.warning(
                f"Rejected {request.method} {request.url.path}: body of {declared} bytes exceeds {self.max_size}",
                extra={"event_type": "request_too_large", "content_length": int(declared)},
            )
            return JSONResponse(
                status_code=413,
                content={
                    "success": False,
                    "message": f"Request body too large. Maximum size is {self.max_size // (1024 * 1024)}MB",
                    "code": "REQUEST_TOO_LARGE",
                },
            )
        return await call_next(request)


__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "RequestSizeLimitMiddleware",
    "should_skip_logging",
    "is_streaming_path",
    "level_for_status",
]
