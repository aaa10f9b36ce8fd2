# aiready/middleware/request_logging.py
from __future__ import annotations

import logging
import time
import uuid
from typing import Iterable, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from aiready.services.activity import ip_from_request

logger = logging.getLogger("aiready.request")


DEFAULT_IGNORED_PREFIXES: Tuple[str, ...] = (
    "/api/healthz",
    "/api/readyz",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
)


def _level_for(status: int) -> int:
    # Choose log level by status class
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    One log line per request with trace_id, acting user and duration.
    Adds X-Request-ID to every response; health and docs paths are not logged.
    """

    def __init__(self, app, ignored_prefixes: Iterable[str] = DEFAULT_IGNORED_PREFIXES):
        super().__init__(app)
        self.ignored_prefixes = tuple(ignored_prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        method = request.method.upper()

        # Generate / propagate trace_id early
        trace_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.trace_id = trace_id

        # Skip logging for OPTIONS and ignored paths (still set X-Request-ID)
        skip = method == "OPTIONS" or any(path.startswith(p) for p in self.ignored_prefixes)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Log crash timing, then let global error handlers respond
            if not skip:
                logger.exception(
                    "request CRASH %s %s ip=%s dur_ms=%s trace_id=%s",
                    method,
                    path,
                    ip_from_request(request),
                    int((time.perf_counter() - start) * 1000),
                    trace_id,
                )
            raise

        # Always attach the trace header
        response.headers["X-Request-ID"] = trace_id
        if skip:
            return response

        status = getattr(response, "status_code", 0)
        logger.log(
            _level_for(status),
            "request %s %s -> %s len=%s ip=%s ua=%r user=%s dur_ms=%s trace_id=%s",
            method,
            path,
            status,
            response.headers.get("content-length", "-"),
            ip_from_request(request),
            request.headers.get("user-agent", "-"),
            getattr(request.state, "user_id", "-"),
            int((time.perf_counter() - start) * 1000),
            trace_id,
        )
        return response
