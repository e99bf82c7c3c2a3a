"""Integration-test fixtures.

All integration tests share a single event loop so that the SQLAlchemy
async engine pool created by the module-level app stays valid across the
whole session.
"""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client against the configured database."""
    settings = app.state.settings
    headers = {"Authorization": f"Bearer {settings.API_KEY}"} if settings.API_KEY else {}
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers=headers) as ac:
        yield ac
    await app.state.database.dispose()
