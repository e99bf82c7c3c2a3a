"""Unified API response envelopes.

Success:            {"data": ...}
Paginated success:  {"data": [...], "pagination": {"offset", "limit", "total"}}
Error:              {"error": {"code", "message", "details"?}}
"""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.sp_common.errors import AppError


class SuccessResponse(BaseModel):
    data: Any = None


class Pagination(BaseModel):
    offset: int
    limit: int
    total: int


class PaginatedResponse(BaseModel):
    data: list[Any]
    pagination: Pagination


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Any = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


def success_response(data: Any = None) -> SuccessResponse:
    return SuccessResponse(data=data)


def paginated_response(data: list[Any], offset: int, limit: int, total: int) -> PaginatedResponse:
    return PaginatedResponse(
        data=data,
        pagination=Pagination(offset=offset, limit=limit, total=total),
    )


def error_response(code: str, message: str, details: Any = None) -> ErrorResponse:
    return ErrorResponse(error=ErrorDetail(code=code, message=message, details=details))


def error_json(exc: AppError, headers: dict[str, str] | None = None) -> JSONResponse:
    """Render an AppError as a JSONResponse with the status of its kind."""
    resp = error_response(exc.code, exc.public_message, exc.details)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(exclude_none=True),
        headers=headers,
    )
