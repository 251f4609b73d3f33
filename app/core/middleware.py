"""
HTTP middleware - request ids and request logging.

Every request gets a short request_id bound into structlog contextvars, so
all log lines emitted while handling it carry the same id. The id is echoed
back in the X-Request-ID response header.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from structlog.contextvars import bind_contextvars, clear_contextvars

logger = structlog.get_logger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a request id and log method/path/status/duration."""

    def __init__(self, app, header_name: str = "X-Request-ID") -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = uuid.uuid4().hex
        bind_contextvars(request_id=request_id)
        request.state.request_id = request_id

        started_at = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started_at) * 1000.0
            logger.info(
                "http request",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round(elapsed_ms, 2),
            )
        finally:
            clear_contextvars()

        response.headers[self.header_name] = request_id
        return response
