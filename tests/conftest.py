"""Shared test fixtures.

API tests run the real app (middleware, routers, service) against an
in-memory repository and a fake Database, so no server is needed.
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from config.settings import Settings
from src.main import create_app
from src.sp_common.errors import EmailExistsError
from src.sp_common.metrics import Metrics
from src.sp_user.application.service import UserService
from src.sp_user.domain.models import ListUsersQuery, User


@dataclass
class _Row:
    user: User
    deleted_at: datetime | None = None


class InMemoryUserRepository:
    """UserRepositoryProtocol backed by a dict.

    Mirrors the real table: email is unique across all rows, deleted
    rows included.
    """

    def __init__(self) -> None:
        self._rows: dict[int, _Row] = {}
        self._next_id = 1
        self._clock = datetime(2026, 1, 1, tzinfo=UTC)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def _email_taken(self, email: str, exclude_id: int | None = None) -> bool:
        return any(r.user.email == email and r.user.id != exclude_id for r in self._rows.values())

    async def create(self, db: Any, user: User) -> User:
        if self._email_taken(user.email):
            raise EmailExistsError(user.email)
        now = self._tick()
        stored = replace(user, id=self._next_id, created_at=now, updated_at=now)
        self._rows[self._next_id] = _Row(stored)
        self._next_id += 1
        return replace(stored)

    async def get_by_id(self, db: Any, user_id: int) -> User | None:
        row = self._rows.get(user_id)
        if row is None or row.deleted_at is not None:
            return None
        return replace(row.user)

    async def get_by_email(self, db: Any, email: str) -> User | None:
        for row in self._rows.values():
            if row.user.email == email and row.deleted_at is None:
                return replace(row.user)
        return None

    async def update(self, db: Any, user: User) -> User:
        if self._email_taken(user.email, exclude_id=user.id):
            raise EmailExistsError(user.email)
        row = self._rows[user.id]  # type: ignore[index]
        row.user = replace(user, updated_at=self._tick())
        return replace(row.user)

    async def delete(self, db: Any, user_id: int) -> None:
        row = self._rows.get(user_id)
        if row is not None and row.deleted_at is None:
            row.deleted_at = self._tick()

    async def list_users(self, db: Any, query: ListUsersQuery) -> tuple[list[User], int]:
        users = [r.user for r in self._rows.values() if r.deleted_at is None]
        if query.status is not None:
            users = [u for u in users if u.status == query.status]
        if query.search:
            term = query.search.lower()
            users = [u for u in users if term in u.name.lower() or term in u.email.lower()]
        users.sort(key=lambda u: (u.created_at, u.id), reverse=True)
        page = users[query.offset:query.offset + query.limit]
        return [replace(u) for u in page], len(users)

    async def exists(self, db: Any, user_id: int) -> bool:
        return await self.get_by_id(db, user_id) is not None


class FakeSession:
    """Stands in for AsyncSession: supports `async with` and `begin()`."""

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    @asynccontextmanager
    async def begin(self) -> AsyncIterator["FakeSession"]:
        yield self


class FakeDatabase:
    def __init__(self, healthy: bool = True) -> None:
        self.healthy = healthy
        self.pings = 0

    def session_factory(self) -> FakeSession:
        return FakeSession()

    async def ping(self, timeout: float = 1.0) -> None:
        self.pings += 1
        if not self.healthy:
            raise TimeoutError("ping timed out")

    def pool_stats(self) -> dict[str, int]:
        return {"size": 0, "checked_in": 0, "checked_out": 0, "overflow": 0}

    async def dispose(self) -> None:
        return None


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        ENV="test",
        API_KEY="",
        METRICS_ENABLED=True,
        CORS_ALLOW_ORIGINS="",
    )


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def metrics() -> Metrics:
    return Metrics()


@pytest.fixture
def make_app(
    settings: Settings,
    user_repo: InMemoryUserRepository,
    fake_db: FakeDatabase,
    metrics: Metrics,
) -> Callable[..., FastAPI]:
    """Factory: make_app(API_KEY="k") builds the app with overridden settings."""

    def _make(**overrides: Any) -> FastAPI:
        app_settings = settings.model_copy(update=overrides)
        service = UserService(repo=user_repo, metrics=metrics)
        return create_app(
            app_settings,
            database=fake_db,  # type: ignore[arg-type]
            user_service=service,
            metrics=metrics,
        )

    return _make


@pytest.fixture
def app(make_app: Callable[..., FastAPI]) -> FastAPI:
    return make_app()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
