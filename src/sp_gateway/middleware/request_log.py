"""Request logging middleware.

Logs every HTTP request with method, path, status code, latency and the
request ID set by RequestIDMiddleware. Level follows the status: info for
success, warning for 4xx, error for 5xx. No bodies or headers are logged.

Log format:
    INFO [POST] /v1/users → 201 (23ms) rid=0b9d6c1e-...
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.sp_gateway.middleware.request_id import get_request_id

logger = logging.getLogger("sp.request")


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.log(
            _level_for(response.status_code),
            "[%s] %s → %d (%.0fms) rid=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            get_request_id(request),
        )
        return response
