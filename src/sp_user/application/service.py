"""UserService: business rules on top of the repository.

- email must be unique on create and on an email-changing update
- delete checks existence first so a missing user is a clean NOT_FOUND
- list paging is normalised before it reaches the repository

The caller (router) passes the db session and owns the transaction via
`async with db.begin()`. Logger and metrics are injected at construction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.sp_common.errors import AppError, EmailExistsError, ErrorKind, UserNotFoundError
from src.sp_common.metrics import Metrics
from src.sp_user.application.schemas import CreateUserRequest, UpdateUserRequest
from src.sp_user.domain.models import ListUsersQuery, User
from src.sp_user.domain.repository import UserRepositoryProtocol
from src.sp_user.infrastructure.persistence import UserRepository


class UserService:
    def __init__(
        self,
        repo: UserRepositoryProtocol | None = None,
        logger: logging.Logger | None = None,
        metrics: Metrics | None = None,
    ) -> None:
        self._repo: UserRepositoryProtocol = repo or UserRepository()
        self._log = logger or logging.getLogger(__name__)
        self._metrics = metrics

    def _log_failure(self, operation: str, exc: AppError) -> None:
        # Client-side rejections are warnings; anything else is an error
        if exc.kind in (ErrorKind.CONFLICT, ErrorKind.NOT_FOUND):
            self._log.warning("%s rejected: %s", operation, exc.message)
        else:
            self._log.error("%s failed: %s", operation, exc.message)

    async def _ensure_email_free(self, db: AsyncSession, email: str) -> None:
        """Best-effort pre-check; the unique index is the final guard."""
        if await self._repo.get_by_email(db, email) is not None:
            raise EmailExistsError(email)

    async def create(self, db: AsyncSession, request: CreateUserRequest) -> User:
        try:
            await self._ensure_email_free(db, request.email)
            user = await self._repo.create(db, request.to_domain())
        except AppError as exc:
            self._log_failure("user.create", exc)
            raise

        if self._metrics is not None:
            self._metrics.users_created.inc()
        self._log.info("User created: user_id=%s email=%s", user.id, user.email)
        return user

    async def get_by_id(self, db: AsyncSession, user_id: int) -> User:
        try:
            user = await self._repo.get_by_id(db, user_id)
        except AppError as exc:
            self._log_failure("user.get", exc)
            raise
        if user is None:
            self._log.warning("User not found: user_id=%s", user_id)
            raise UserNotFoundError(user_id)
        return user

    async def update(self, db: AsyncSession, user_id: int, request: UpdateUserRequest) -> User:
        user = await self.get_by_id(db, user_id)

        try:
            if request.email is not None and request.email != user.email:
                await self._ensure_email_free(db, request.email)
            updated = await self._repo.update(db, request.apply_to(user))
        except AppError as exc:
            self._log_failure("user.update", exc)
            raise

        self._log.info("User updated: user_id=%s", user_id)
        return updated

    async def delete(self, db: AsyncSession, user_id: int) -> None:
        try:
            exists = await self._repo.exists(db, user_id)
            if not exists:
                raise UserNotFoundError(user_id)
            await self._repo.delete(db, user_id)
        except AppError as exc:
            self._log_failure("user.delete", exc)
            raise

        if self._metrics is not None:
            self._metrics.users_deleted.inc()
        self._log.info("User deleted: user_id=%s", user_id)

    async def list_users(
        self, db: AsyncSession, query: ListUsersQuery
    ) -> tuple[list[User], int, ListUsersQuery]:
        """Return (page, total, normalised query) so callers can echo the paging used."""
        query = query.normalized()
        try:
            users, total = await self._repo.list_users(db, query)
        except AppError as exc:
            self._log_failure("user.list", exc)
            raise

        self._log.info(
            "Users listed: count=%d total=%d offset=%d limit=%d",
            len(users),
            total,
            query.offset,
            query.limit,
        )
        return users, total, query
