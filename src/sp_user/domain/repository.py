"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock or in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.

Every lookup sees live rows only (deleted_at IS NULL).
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sp_user.domain.models import ListUsersQuery, User


class UserRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, user: User) -> User: ...

    async def get_by_id(self, db: AsyncSession, user_id: int) -> User | None: ...

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None: ...

    async def update(self, db: AsyncSession, user: User) -> User: ...

    async def delete(self, db: AsyncSession, user_id: int) -> None: ...

    async def list_users(
        self,
        db: AsyncSession,
        query: ListUsersQuery,
    ) -> tuple[list[User], int]: ...

    async def exists(self, db: AsyncSession, user_id: int) -> bool: ...
