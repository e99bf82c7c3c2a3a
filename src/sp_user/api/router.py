"""sp_user REST endpoints.

GET    /users         : list with offset pagination + status/search filters
GET    /users/{id}    : fetch one
POST   /users         : create
PUT    /users/{id}    : partial update
DELETE /users/{id}    : soft delete (204, empty body)

Requests are shape-checked here before any service call; service errors
reach the client through the AppError handler registered in src/main.py.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.sp_common.database import get_db_session
from src.sp_common.errors import ValidationError
from src.sp_common.response import (
    PaginatedResponse,
    SuccessResponse,
    paginated_response,
    success_response,
)
from src.sp_user.application.schemas import CreateUserRequest, UpdateUserRequest, UserResponse
from src.sp_user.application.service import UserService
from src.sp_user.domain.models import DEFAULT_LIMIT, ListUsersQuery, UserStatus

router = APIRouter(prefix="/users", tags=["users"])

NAME_MIN_LEN = 2
NAME_MAX_LEN = 100
SEARCH_MAX_LEN = 100
MAX_USER_ID = 2**63 - 1  # BIGINT upper bound

_email_adapter: TypeAdapter[str] = TypeAdapter(EmailStr)


def get_user_service(request: Request) -> UserService:
    """Service instance built once by the app factory."""
    return request.app.state.user_service  # type: ignore[no-any-return]


DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Service = Annotated[UserService, Depends(get_user_service)]


# ---------------------------------------------------------------------------
# Shallow request checks
# ---------------------------------------------------------------------------


def _parse_user_id(raw: str) -> int:
    # Length check first: int() refuses very long digit strings
    if not (raw.isascii() and raw.isdigit()) or len(raw) > len(str(MAX_USER_ID)):
        raise ValidationError("Invalid user ID")
    uid = int(raw)
    if uid > MAX_USER_ID:
        raise ValidationError("Invalid user ID")
    return uid


def _name_in_bounds(name: str) -> bool:
    return NAME_MIN_LEN <= len(name) <= NAME_MAX_LEN


def _is_email(value: str) -> bool:
    try:
        _email_adapter.validate_python(value)
    except PydanticValidationError:
        return False
    return True


def _check_create(body: CreateUserRequest) -> None:
    if not body.name:
        raise ValidationError("Name is required")
    if not body.email:
        raise ValidationError("Email is required")
    if not _name_in_bounds(body.name):
        raise ValidationError("Name must be between 2 and 100 characters")
    if not _is_email(body.email):
        raise ValidationError("Invalid email format")


def _check_update(body: UpdateUserRequest) -> None:
    if body.name is not None and not _name_in_bounds(body.name):
        raise ValidationError("Name must be between 2 and 100 characters")
    if body.email is not None:
        if not body.email:
            raise ValidationError("Email cannot be empty")
        if not _is_email(body.email):
            raise ValidationError("Invalid email format")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("", summary="List users")
async def list_users(
    db: DbSession,
    service: Service,
    offset: int = Query(0, description="Rows to skip; negative values become 0"),
    limit: int = Query(DEFAULT_LIMIT, description="Page size 1-100; anything else becomes 20"),
    status_filter: UserStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=SEARCH_MAX_LEN),
) -> PaginatedResponse:
    query = ListUsersQuery(offset=offset, limit=limit, status=status_filter, search=search)
    users, total, used = await service.list_users(db, query)
    data = [UserResponse.from_domain(u).model_dump() for u in users]
    return paginated_response(data, used.offset, used.limit, total)


@router.get("/{user_id}", summary="Get user by ID")
async def get_user(user_id: str, db: DbSession, service: Service) -> SuccessResponse:
    uid = _parse_user_id(user_id)
    user = await service.get_by_id(db, uid)
    return success_response(UserResponse.from_domain(user).model_dump())


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create user")
async def create_user(body: CreateUserRequest, db: DbSession, service: Service) -> SuccessResponse:
    _check_create(body)
    async with db.begin():
        user = await service.create(db, body)
    return success_response(UserResponse.from_domain(user).model_dump())


@router.put("/{user_id}", summary="Update user")
async def update_user(
    user_id: str,
    body: UpdateUserRequest,
    db: DbSession,
    service: Service,
) -> SuccessResponse:
    uid = _parse_user_id(user_id)
    _check_update(body)
    async with db.begin():
        user = await service.update(db, uid, body)
    return success_response(UserResponse.from_domain(user).model_dump())


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete user",
)
async def delete_user(user_id: str, db: DbSession, service: Service) -> Response:
    uid = _parse_user_id(user_id)
    async with db.begin():
        await service.delete(db, uid)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
