"""
API Middleware - Request/response processing.

Provides:
- Request ID tracking
- Response latency measurement
- Error handling with taxonomy codes
- Rate limiting
"""

from __future__ import annotations

import logging
import time
import uuid
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from fiscalrag.config.errors import ErrorCode, FiscalRAGError

logger = logging.getLogger(__name__)

Dispatch = Callable[[Request], Awaitable[Response]]

# Never rate limited
OPEN_PATHS = frozenset({"/health", "/api"})


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _error_response(
    status_code: int,
    error: dict[str, Any],
    request_id: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "request_id": request_id},
        headers=headers,
    )


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach request ID for tracing across logs and responses."""

    async def dispatch(self, request: Request, call_next: Dispatch) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class LatencyMiddleware(BaseHTTPMiddleware):
    """Track and log request latency; warn on slow requests."""

    def __init__(self, app: ASGIApp, slow_request_ms: float = 5000.0) -> None:
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Dispatch) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        level = logging.WARNING if duration_ms > self.slow_request_ms else logging.INFO
        logger.log(
            level,
            "%s %s status=%d latency_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            _request_id(request),
        )
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert FiscalRAGError exceptions to structured JSON responses."""

    async def dispatch(self, request: Request, call_next: Dispatch) -> Response:
        try:
            return await call_next(request)
        except FiscalRAGError as e:
            status_code = _error_code_to_status(e.code)
            logger.log(
                logging.ERROR if status_code >= 500 else logging.WARNING,
                "%s: %s request_id=%s details=%s",
                e.code.value,
                e.message,
                _request_id(request),
                e.details,
            )
            return _error_response(status_code, e.to_dict(), _request_id(request))
        except Exception as e:
            logger.exception("Unhandled error: %s request_id=%s", e, _request_id(request))
            return _error_response(
                500,
                {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": "Internal server error",
                    "details": {},
                },
                _request_id(request),
            )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window in-memory rate limiting per client IP."""

    def __init__(self, app: ASGIApp, requests_per_minute: int = 60) -> None:
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.buckets: dict[str, dict[str, int]] = defaultdict(lambda: {"window": 0, "tokens": 0})
        self._window = 0

    async def dispatch(self, request: Request, call_next: Dispatch) -> Response:
        if request.url.path in OPEN_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        window = int(time.time() // 60)
        if window != self._window:
            # buckets from a closed window are never read again
            self.buckets.clear()
            self._window = window
        bucket = self.buckets[client_ip]

        if bucket["window"] != window:
            bucket["window"] = window
            bucket["tokens"] = self.requests_per_minute

        if bucket["tokens"] <= 0:
            logger.warning(
                "Rate limit exceeded for %s request_id=%s", client_ip, _request_id(request)
            )
            return _error_response(
                429,
                {
                    "code": ErrorCode.SECURITY_RATE_LIMITED.value,
                    "message": "Trop de requetes. Reessayez dans 60 secondes.",
                    "details": {"retry_after": 60},
                },
                _request_id(request),
                headers={"Retry-After": "60"},
            )

        bucket["tokens"] -= 1
        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(bucket["tokens"])
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_minute)
        return response


def _error_code_to_status(code: ErrorCode) -> int:
    """Map error codes to HTTP status codes."""
    mapping = {
        # 400 Bad Request
        ErrorCode.SEARCH_INVALID_QUERY: 400,
        ErrorCode.SEARCH_UNKNOWN_VERSION: 400,
        ErrorCode.VALIDATION_ERROR: 400,
        # 404 Not Found
        ErrorCode.NOT_FOUND: 404,
        # 429 Rate Limited
        ErrorCode.SECURITY_RATE_LIMITED: 429,
        # 500 Internal (rule tables are deployment artifacts)
        ErrorCode.CONFIG_INVALID_RULESET: 500,
        ErrorCode.CONFIG_MISSING_TABLE: 500,
        # 503 Service Unavailable
        ErrorCode.PROVIDER_UNAVAILABLE: 503,
        ErrorCode.PROVIDER_INVALID_RESPONSE: 503,
        ErrorCode.COMPARISON_PARTIAL_FAILURE: 503,
        ErrorCode.LLM_UNAVAILABLE: 503,
        ErrorCode.LLM_RATE_LIMITED: 503,
        ErrorCode.LLM_INVALID_RESPONSE: 503,
    }
    return mapping.get(code, 500)
