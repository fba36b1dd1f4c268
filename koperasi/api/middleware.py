"""
Request logging middleware

Binds a correlation id to every request (the caller's X-Request-ID, or a
fresh UUID), echoes it back on the response and logs one line per request
with method, path, status and duration.
"""

import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from ..logging_config import get_logger, log_action, bind_correlation_id, reset_correlation_id


REQUEST_ID_HEADER = "X-Request-ID"

logger = get_logger("koperasi.api.requests")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Correlation id and access log for every request"""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = bind_correlation_id(request_id)
        start_time = time.monotonic()
        try:
            try:
                response = await call_next(request)
            except Exception:
                log_action(
                    logger, "error", "Request failed",
                    action=request.method, resource=request.url.path,
                    extra={"status_code": 500,
                           "duration_ms": round((time.monotonic() - start_time) * 1000, 2)}
                )
                raise

            response.headers[REQUEST_ID_HEADER] = request_id
            level = "info" if response.status_code < 400 else "warning"
            if response.status_code >= 500:
                level = "error"
            log_action(
                logger, level, "Request completed",
                action=request.method, resource=request.url.path,
                extra={"status_code": response.status_code,
                       "duration_ms": round((time.monotonic() - start_time) * 1000, 2)}
            )
            return response
        finally:
            reset_correlation_id(token)
