"""
Per-request trace id and access logging.
"""

import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.utils.logger import setup_logger, trace_id_var

logger = setup_logger("http")

TRACE_HEADER = "X-Trace-Id"
REQUEST_ID_HEADER = "X-Request-ID"
# Client-supplied ids are only reused when they look harmless in a log line.
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


def resolve_trace_id(request: Request) -> str:
    candidate = request.headers.get(REQUEST_ID_HEADER, "")
    if _REQUEST_ID_RE.match(candidate):
        return candidate
    return uuid.uuid4().hex


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tags every request with a trace id and logs method, path, status and timing."""

    async def dispatch(self, request: Request, call_next):
        trace_id = resolve_trace_id(request)
        request.state.trace_id = trace_id
        token = trace_id_var.set(trace_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} "
                f"({duration_ms:.1f}ms)"
            )
            response.headers[TRACE_HEADER] = trace_id
            return response
        finally:
            trace_id_var.reset(token)
