"""Unit tests for UserRepository using MagicMock AsyncSession."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from src.sp_common.errors import EmailExistsError, PersistenceError
from src.sp_user.domain.models import ListUsersQuery, User, UserStatus
from src.sp_user.infrastructure.persistence import UserRepository, _escape_like


class _PgUniqueViolation(Exception):
    sqlstate = "23505"


def _make_user_row(**kwargs):
    """Build a mock DB row with all required fields."""
    row = MagicMock()
    row.id = kwargs.get("id", 1)
    row.name = kwargs.get("name", "Ann Lee")
    row.email = kwargs.get("email", "ann@acme.io")
    row.status = kwargs.get("status", "active")
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar_one.return_value = value
    return result


def _sql(db) -> str:
    return str(db.execute.call_args[0][0])


@pytest.fixture
def db():
    return MagicMock()


@pytest.fixture
def repo():
    return UserRepository()


class TestCreate:
    async def test_adds_row_and_flushes(self, db, repo) -> None:
        db.flush = AsyncMock()

        user = await repo.create(db, User(name="Ann Lee", email="ann@acme.io"))

        row = db.add.call_args[0][0]
        assert row.email == "ann@acme.io"
        assert row.status == "active"
        assert row.created_at == row.updated_at
        assert row.created_at.tzinfo is not None
        db.flush.assert_awaited_once()
        assert user.name == "Ann Lee"
        assert user.status is UserStatus.ACTIVE

    async def test_postgres_duplicate_becomes_conflict(self, db, repo) -> None:
        db.flush = AsyncMock(side_effect=IntegrityError("INSERT", {}, _PgUniqueViolation()))

        with pytest.raises(EmailExistsError):
            await repo.create(db, User(name="Ann", email="ann@acme.io"))

    async def test_mysql_duplicate_becomes_conflict(self, db, repo) -> None:
        orig = Exception(1062, "Duplicate entry 'ann@acme.io' for key 'uq_users_email'")
        db.flush = AsyncMock(side_effect=IntegrityError("INSERT", {}, orig))

        with pytest.raises(EmailExistsError):
            await repo.create(db, User(name="Ann", email="ann@acme.io"))

    async def test_other_integrity_error_is_persistence_error(self, db, repo) -> None:
        orig = Exception(3819, "Check constraint 'ck_users_status' is violated")
        db.flush = AsyncMock(side_effect=IntegrityError("INSERT", {}, orig))

        with pytest.raises(PersistenceError) as exc_info:
            await repo.create(db, User(name="Ann", email="ann@acme.io"))
        assert exc_info.value.public_message == "Failed to create user"


class TestGetById:
    async def test_returns_user_when_found(self, db, repo) -> None:
        db.execute = AsyncMock(return_value=_scalar_result(_make_user_row(id=7, status="suspended")))

        user = await repo.get_by_id(db, 7)

        assert user is not None
        assert user.id == 7
        assert user.status is UserStatus.SUSPENDED

    async def test_returns_none_when_not_found(self, db, repo) -> None:
        db.execute = AsyncMock(return_value=_scalar_result(None))

        assert await repo.get_by_id(db, 99) is None

    async def test_filters_soft_deleted(self, db, repo) -> None:
        db.execute = AsyncMock(return_value=_scalar_result(None))

        await repo.get_by_id(db, 1)

        assert "users.deleted_at IS NULL" in _sql(db)

    async def test_driver_error_wrapped(self, db, repo) -> None:
        db.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("gone away")))

        with pytest.raises(PersistenceError) as exc_info:
            await repo.get_by_id(db, 1)
        assert "gone away" in exc_info.value.message
        assert exc_info.value.public_message == "Failed to get user by id"


class TestGetByEmail:
    async def test_filters_on_email_and_live_rows(self, db, repo) -> None:
        db.execute = AsyncMock(return_value=_scalar_result(_make_user_row()))

        user = await repo.get_by_email(db, "ann@acme.io")

        assert user is not None
        sql = _sql(db)
        assert "users.email" in sql
        assert "users.deleted_at IS NULL" in sql


class TestUpdate:
    async def test_writes_columns_and_bumps_updated_at(self, db, repo) -> None:
        db.execute = AsyncMock()
        before = datetime(2020, 1, 1, tzinfo=UTC)
        user = User(id=3, name="Ann", email="ann@acme.io", created_at=before, updated_at=before)

        result = await repo.update(db, user)

        sql = _sql(db)
        assert sql.startswith("UPDATE users SET")
        assert "users.deleted_at IS NULL" in sql
        assert result.updated_at is not None
        assert result.updated_at > before
        assert result.created_at == before

    async def test_duplicate_email_is_conflict(self, db, repo) -> None:
        db.execute = AsyncMock(side_effect=IntegrityError("UPDATE", {}, _PgUniqueViolation()))

        with pytest.raises(EmailExistsError):
            await repo.update(db, User(id=3, name="Ann", email="bob@acme.io"))


class TestDelete:
    async def test_soft_deletes_live_row(self, db, repo) -> None:
        db.execute = AsyncMock()

        await repo.delete(db, 5)

        sql = _sql(db)
        assert sql.startswith("UPDATE users SET")
        assert "deleted_at=" in sql
        assert "users.deleted_at IS NULL" in sql


class TestListUsers:
    async def test_returns_page_and_total(self, db, repo) -> None:
        count = _scalar_result(3)
        page = MagicMock()
        page.scalars.return_value.all.return_value = [_make_user_row(id=3), _make_user_row(id=2)]
        db.execute = AsyncMock(side_effect=[count, page])

        users, total = await repo.list_users(db, ListUsersQuery(limit=2))

        assert total == 3
        assert [u.id for u in users] == [3, 2]

    async def test_page_query_ordering_and_filters(self, db, repo) -> None:
        count = _scalar_result(0)
        page = MagicMock()
        page.scalars.return_value.all.return_value = []
        db.execute = AsyncMock(side_effect=[count, page])

        await repo.list_users(db, ListUsersQuery(status=UserStatus.ACTIVE, search="50%"))

        page_stmt = db.execute.call_args_list[1][0][0]
        sql = str(page_stmt)
        assert "ORDER BY users.created_at DESC, users.id DESC" in sql
        assert "users.deleted_at IS NULL" in sql
        assert "lower(users.name) LIKE" in sql
        assert "ESCAPE '!'" in sql
        assert "%50!%%" in page_stmt.compile().params.values()

    async def test_count_query_ignores_paging(self, db, repo) -> None:
        count = _scalar_result(0)
        page = MagicMock()
        page.scalars.return_value.all.return_value = []
        db.execute = AsyncMock(side_effect=[count, page])

        await repo.list_users(db, ListUsersQuery(offset=40, limit=20))

        count_sql = str(db.execute.call_args_list[0][0][0])
        assert "count(*)" in count_sql
        assert "LIMIT" not in count_sql
        assert "OFFSET" not in count_sql


class TestExists:
    @pytest.mark.parametrize(("count", "expected"), [(0, False), (1, True)])
    async def test_exists(self, db, repo, count: int, expected: bool) -> None:
        db.execute = AsyncMock(return_value=_scalar_result(count))

        assert await repo.exists(db, 1) is expected


class TestEscapeLike:
    @pytest.mark.parametrize(("raw", "escaped"), [
        ("ann", "ann"),
        ("50%", "50!%"),
        ("a_b", "a!_b"),
        ("wow!", "wow!!"),
        ("!%_", "!!!%!_"),
    ])
    def test_escape(self, raw: str, escaped: str) -> None:
        assert _escape_like(raw) == escaped
