"""UserRepository: concrete implementation of UserRepositoryProtocol.

Queries are built with the SQLAlchemy ORM against UserModel. Soft-deleted
rows (deleted_at set) are invisible to every read. Driver errors are
wrapped in PersistenceError with the failing operation; a unique-key
violation on email is reported as EmailExistsError so a create racing
past the service pre-check still surfaces as a conflict.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import ColumnElement, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.sp_common.errors import EmailExistsError, PersistenceError
from src.sp_user.domain.models import ListUsersQuery, User, UserStatus
from src.sp_user.infrastructure.db_models import UserModel

_PG_UNIQUE_VIOLATION = "23505"
_MYSQL_DUP_ENTRY = 1062
_LIKE_ESCAPE = "!"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _live() -> ColumnElement[bool]:
    return UserModel.deleted_at.is_(None)


def _to_domain(row: UserModel) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        status=UserStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _escape_like(term: str) -> str:
    for ch in (_LIKE_ESCAPE, "%", "_"):
        term = term.replace(ch, _LIKE_ESCAPE + ch)
    return term


def _is_duplicate_key(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == _PG_UNIQUE_VIOLATION:
        return True
    if getattr(orig, "pgcode", None) == _PG_UNIQUE_VIOLATION:
        return True
    args = getattr(orig, "args", ())
    return bool(args) and args[0] == _MYSQL_DUP_ENTRY


@contextmanager
def _translate_errors(operation: str, email: str | None = None) -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        if email is not None and _is_duplicate_key(exc):
            raise EmailExistsError(email) from exc
        raise PersistenceError(operation, exc) from exc
    except SQLAlchemyError as exc:
        raise PersistenceError(operation, exc) from exc


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserRepository:
    """Stateless; the request-scoped session is passed to every call."""

    async def create(self, db: AsyncSession, user: User) -> User:
        now = datetime.now(UTC)
        row = UserModel(
            name=user.name,
            email=user.email,
            status=user.status.value,
            created_at=now,
            updated_at=now,
        )
        with _translate_errors("create user", email=user.email):
            db.add(row)
            await db.flush()  # assigns row.id without committing
        return _to_domain(row)

    async def get_by_id(self, db: AsyncSession, user_id: int) -> User | None:
        stmt = select(UserModel).where(UserModel.id == user_id, _live())
        with _translate_errors("get user by id"):
            result = await db.execute(stmt)
        row = result.scalar_one_or_none()
        return _to_domain(row) if row else None

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        stmt = select(UserModel).where(UserModel.email == email, _live())
        with _translate_errors("get user by email"):
            result = await db.execute(stmt)
        row = result.scalar_one_or_none()
        return _to_domain(row) if row else None

    async def update(self, db: AsyncSession, user: User) -> User:
        """Write every mutable column of an already-loaded user."""
        now = datetime.now(UTC)
        stmt = (
            update(UserModel)
            .where(UserModel.id == user.id, _live())
            .values(
                name=user.name,
                email=user.email,
                status=user.status.value,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        with _translate_errors("update user", email=user.email):
            await db.execute(stmt)
        user.updated_at = now
        return user

    async def delete(self, db: AsyncSession, user_id: int) -> None:
        """Soft delete. A second call matches no live row and is a no-op."""
        now = datetime.now(UTC)
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id, _live())
            .values(deleted_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        with _translate_errors("delete user"):
            await db.execute(stmt)

    async def list_users(
        self,
        db: AsyncSession,
        query: ListUsersQuery,
    ) -> tuple[list[User], int]:
        filters: list[ColumnElement[bool]] = [_live()]
        if query.status is not None:
            filters.append(UserModel.status == query.status.value)
        if query.search:
            term = f"%{_escape_like(query.search.lower())}%"
            filters.append(
                or_(
                    func.lower(UserModel.name).like(term, escape=_LIKE_ESCAPE),
                    func.lower(UserModel.email).like(term, escape=_LIKE_ESCAPE),
                )
            )

        count_stmt = select(func.count()).select_from(UserModel).where(*filters)
        page_stmt = (
            select(UserModel)
            .where(*filters)
            .order_by(UserModel.created_at.desc(), UserModel.id.desc())
            .offset(query.offset)
            .limit(query.limit)
        )

        with _translate_errors("count users"):
            total = (await db.execute(count_stmt)).scalar_one()
        with _translate_errors("list users"):
            rows = (await db.execute(page_stmt)).scalars().all()
        return [_to_domain(row) for row in rows], int(total)

    async def exists(self, db: AsyncSession, user_id: int) -> bool:
        stmt = select(func.count()).select_from(UserModel).where(UserModel.id == user_id, _live())
        with _translate_errors("check user existence"):
            count = (await db.execute(stmt)).scalar_one()
        return int(count) > 0
