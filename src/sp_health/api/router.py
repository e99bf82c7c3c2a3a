"""Liveness and readiness probes.

GET /health : static, never touches dependencies
GET /ready  : pings the database (1s bound); 503 with per-dependency details on failure
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from src.sp_common.database import Database, get_database
from src.sp_common.errors import ServiceUnavailableError
from src.sp_common.response import SuccessResponse, success_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthStatus(BaseModel):
    status: str
    service: str
    version: str
    checks: dict[str, str] | None = None


@router.get("/health", summary="Liveness probe")
async def health(request: Request) -> SuccessResponse:
    settings = request.app.state.settings
    data = HealthStatus(status="ok", service=settings.APP_NAME, version=settings.APP_VERSION)
    return success_response(data.model_dump(exclude_none=True))


@router.get("/ready", summary="Readiness probe")
async def ready(
    request: Request,
    database: Annotated[Database, Depends(get_database)],
) -> SuccessResponse:
    settings = request.app.state.settings
    checks: dict[str, str] = {}

    try:
        await database.ping()
    except (TimeoutError, SQLAlchemyError, OSError) as exc:
        logger.warning("Readiness check failed: database unreachable (%r)", exc)
        checks["database"] = "fail"
        raise ServiceUnavailableError("Service not ready", details=checks) from exc
    checks["database"] = "ok"

    data = HealthStatus(
        status="ready",
        service=settings.APP_NAME,
        version=settings.APP_VERSION,
        checks=checks,
    )
    return success_response(data.model_dump())
