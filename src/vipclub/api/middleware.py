"""Request correlation IDs and access logging.

Query strings can carry bearer tokens, so logged paths go through
``redact_path`` first.
"""

import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

CallNext = Callable[[Request], Awaitable[Response]]

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    return request_id_var.get()


def redact_path(request: Request) -> str:
    if "token" in request.query_params:
        return f"{request.url.path}?token=<redacted>"
    return request.url.path


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Request-ID or mint one, and echo it back."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        reset_token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(reset_token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request with status and elapsed time."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        started = time.perf_counter()
        line = f"{request.method} {redact_path(request)}"

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"{line} raised after {(time.perf_counter() - started) * 1000:.1f}ms")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(level, f"{line} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response


class RequestContextFilter(logging.Filter):
    """Stamp ``request_id`` on every record so formats can reference it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True
