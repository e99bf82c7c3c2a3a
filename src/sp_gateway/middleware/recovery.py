"""Panic recovery: any exception escaping the inner stack becomes a 500 envelope.

Registered outermost so the process keeps serving after a handler bug. The
inner header middleware never finishes on that path, so the security
headers and the request ID are set here as well.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.sp_common.errors import AppError, ErrorKind
from src.sp_common.response import error_json
from src.sp_gateway.middleware.request_id import REQUEST_ID_HEADER, get_request_id
from src.sp_gateway.middleware.security_headers import SECURITY_HEADERS

logger = logging.getLogger(__name__)


class RecoveryMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception:
            request_id = get_request_id(request)
            logger.exception(
                "Unhandled exception: [%s] %s rid=%s",
                request.method,
                request.url.path,
                request_id,
            )
            headers = dict(SECURITY_HEADERS)
            if request_id != "-":
                headers[REQUEST_ID_HEADER] = request_id
            return error_json(AppError(ErrorKind.INTERNAL, "Internal server error"), headers=headers)
