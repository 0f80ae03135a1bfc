"""Request ID + one summary log line per request.

A single callback fans out into three provider calls, and two browsers
finishing the flow at once interleave their "OAUTH FLOW" lines.  The
request ID (echoed from X-Request-ID or freshly generated) ties every line
back to its request and is shown on the callback's error page so a user
report can be matched to the server log.

The ID lives in a ContextVar: Starlette copies the context into the
threadpool worker that runs the sync route handlers.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestContextFilter(logging.Filter):
    """Stamps the current request ID onto records that lack one.

    Attached to the output handler rather than the root logger: logger
    filters only run for records created on that same logger, handler
    filters see everything that propagates up.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()  # type: ignore[attr-defined]
        return True


def _log_summary(request: Request, status_code: int, started: float) -> None:
    # Path only: the callback's query string carries the authorization code.
    duration_ms = round((time.monotonic() - started) * 1000, 1)
    level = logging.ERROR if status_code >= 500 else logging.INFO
    logger.log(
        level,
        "%s %s → %d (%.1fms)",
        request.method,
        request.url.path,
        status_code,
        duration_ms,
        extra={
            "request_id": request_id_var.get(),
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": duration_ms,
        },
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request_id_var.set(req_id)
        started = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            _log_summary(request, 500, started)
            raise

        _log_summary(request, response.status_code, started)
        response.headers[REQUEST_ID_HEADER] = req_id
        return response
