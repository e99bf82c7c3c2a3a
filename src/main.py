"""FastAPI application entry point.

Run with: uvicorn src.main:app --port 8080   (or: python -m src)

Middleware order, outermost first:
    recovery → security headers → request id → access log → CORS
    → API key (if API_KEY set) → metrics (if METRICS_ENABLED) → routes
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from config.settings import Settings, get_settings
from src.sp_common.database import Database
from src.sp_common.errors import AppError, RouteNotFoundError, ValidationError
from src.sp_common.log_config import configure_logging
from src.sp_common.metrics import Metrics
from src.sp_common.response import error_json, error_response
from src.sp_gateway.middleware.api_key import APIKeyMiddleware
from src.sp_gateway.middleware.cors import add_cors
from src.sp_gateway.middleware.metrics import MetricsMiddleware
from src.sp_gateway.middleware.recovery import RecoveryMiddleware
from src.sp_gateway.middleware.request_id import RequestIDMiddleware, get_request_id
from src.sp_gateway.middleware.request_log import RequestLogMiddleware
from src.sp_gateway.middleware.security_headers import SecurityHeadersMiddleware
from src.sp_health.api.router import router as health_router
from src.sp_user.api.router import router as user_router
from src.sp_user.application.service import UserService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: configure logging, verify DB connection. Shutdown: dispose pool."""
    settings: Settings = app.state.settings
    database: Database = app.state.database

    configure_logging(settings)
    await database.ping(timeout=5.0)
    logger.info(
        "Database connected: driver=%s host=%s port=%s database=%s pool=%s",
        settings.DB_DRIVER,
        settings.DB_HOST,
        settings.DB_PORT,
        settings.DB_NAME,
        database.pool_stats(),
    )
    yield
    await database.dispose()


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("Request failed: %s rid=%s", exc.message, get_request_id(request))
    return error_json(exc)


def _field_name(loc: tuple[object, ...]) -> str:
    """("body", "email") → "email"; ("body",) → "body"."""
    if not loc:
        return ""
    return ".".join(str(part) for part in loc[1:]) or str(loc[0])


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    sources = {err["loc"][0] for err in errors if err.get("loc")}
    if "body" in sources:
        message = "Invalid request body"
    elif "query" in sources:
        message = "Invalid query parameters"
    else:
        message = "Invalid request"
    details = [
        {"field": _field_name(tuple(err.get("loc", ()))), "message": err.get("msg", "")}
        for err in errors
    ]
    return error_json(ValidationError(message, details=details))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code == 404:
        return error_json(RouteNotFoundError())
    code = HTTPStatus(exc.status_code).name
    resp = error_response(code, str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=resp.model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    user_service: UserService | None = None,
    metrics: Metrics | None = None,
) -> FastAPI:
    """Build a fully wired application.

    Collaborators default to real implementations built from `settings`;
    tests pass fakes instead.
    """
    settings = settings or get_settings()
    metrics = metrics or Metrics()
    database = database or Database(settings)
    user_service = user_service or UserService(
        logger=logging.getLogger("sp.user"),
        metrics=metrics if settings.METRICS_ENABLED else None,
    )

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_dev else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.is_dev else None,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.metrics = metrics
    app.state.user_service = user_service

    # add_middleware prepends, so register innermost first
    if settings.METRICS_ENABLED:
        app.add_middleware(MetricsMiddleware, metrics=metrics)
    if settings.API_KEY:
        app.add_middleware(APIKeyMiddleware, api_key=settings.API_KEY)
    add_cors(app, settings)
    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RecoveryMiddleware)

    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]

    app.include_router(health_router)
    app.include_router(user_router, prefix="/v1")

    if settings.METRICS_ENABLED:

        @app.get("/metrics", include_in_schema=False)
        async def scrape_metrics() -> Response:
            payload, content_type = metrics.render()
            return Response(content=payload, media_type=content_type)

    return app


app = create_app()
