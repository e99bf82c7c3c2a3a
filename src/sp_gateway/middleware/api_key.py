"""API key authentication.

When an API key is configured, every request must carry
`Authorization: Bearer <key>`. Probe and scrape endpoints and CORS
preflights are exempt. The key is compared in constant time.
"""

import hmac

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from src.sp_common.errors import UnauthorizedError
from src.sp_common.response import error_json

BEARER_PREFIX = "Bearer "
EXEMPT_PATHS = frozenset({"/health", "/ready", "/metrics"})

_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def _reject(message: str) -> Response:
    return error_json(UnauthorizedError(message), headers=_CHALLENGE)


class APIKeyMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, api_key: str) -> None:
        super().__init__(app)
        self._api_key = api_key.encode()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if (
            not self._api_key
            or request.method == "OPTIONS"
            or request.url.path in EXEMPT_PATHS
        ):
            return await call_next(request)

        header = request.headers.get("Authorization", "")
        if not header:
            return _reject("Missing authorization header")
        if not header.startswith(BEARER_PREFIX):
            return _reject("Invalid authorization header format")

        presented = header[len(BEARER_PREFIX):].encode()
        if not hmac.compare_digest(presented, self._api_key):
            return _reject("Invalid API key")
        return await call_next(request)
