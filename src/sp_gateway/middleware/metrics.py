"""Request metrics: one counter + one latency histogram per route template."""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Match
from starlette.types import ASGIApp

from src.sp_common.metrics import Metrics

UNMATCHED_PATH = "<unmatched>"


def route_template(request: Request) -> str:
    """Return the matching route's path template (e.g. /v1/users/{user_id})."""
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", UNMATCHED_PATH)
    return UNMATCHED_PATH


class MetricsMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, metrics: Metrics) -> None:
        super().__init__(app)
        self._metrics = metrics

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        self._metrics.observe_request(
            request.method,
            route_template(request),
            response.status_code,
            time.perf_counter() - start,
        )
        return response
