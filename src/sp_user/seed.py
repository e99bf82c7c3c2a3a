"""Development seed data.

Run with: python -m src.sp_user.seed

Only runs when ENV is dev or local. A users table that already holds live
rows is left untouched; otherwise the sample users below are inserted in
one transaction, skipping any email that is already live.
"""

import asyncio
import logging
from dataclasses import replace

from config.settings import Settings, get_settings
from src.sp_common.database import Database
from src.sp_common.log_config import configure_logging
from src.sp_user.domain.models import ListUsersQuery, User, UserStatus
from src.sp_user.domain.repository import UserRepositoryProtocol
from src.sp_user.infrastructure.persistence import UserRepository

logger = logging.getLogger(__name__)

SEED_USERS: tuple[User, ...] = (
    User(name="John Doe", email="john.doe@example.com"),
    User(name="Jane Smith", email="jane.smith@example.com"),
    User(name="Bob Johnson", email="bob.johnson@example.com", status=UserStatus.INACTIVE),
    User(name="Alice Brown", email="alice.brown@example.com"),
    User(name="Charlie Wilson", email="charlie.wilson@example.com", status=UserStatus.SUSPENDED),
    User(name="Diana Davis", email="diana.davis@example.com"),
    User(name="Eve Miller", email="eve.miller@example.com"),
    User(name="Frank Garcia", email="frank.garcia@example.com", status=UserStatus.INACTIVE),
    User(name="Grace Martinez", email="grace.martinez@example.com"),
    User(name="Henry Rodriguez", email="henry.rodriguez@example.com"),
)


class SeedNotAllowedError(RuntimeError):
    """Raised when seeding is attempted outside a development environment."""


async def seed_users(database: Database, repo: UserRepositoryProtocol | None = None) -> int:
    """Insert SEED_USERS into an empty table; returns the number inserted."""
    repo = repo or UserRepository()
    inserted = 0

    async with database.session_factory() as db:
        async with db.begin():
            _, existing = await repo.list_users(db, ListUsersQuery(limit=1))
            if existing > 0:
                logger.info("Users table already has %d rows; seed skipped", existing)
                return 0

            for seed in SEED_USERS:
                if await repo.get_by_email(db, seed.email) is not None:
                    logger.warning("User %s already exists, skipping", seed.email)
                    continue
                user = await repo.create(db, replace(seed))
                logger.info("Created user: %s (%s) %s", user.name, user.email, user.status.value)
                inserted += 1

    logger.info("Seed completed: inserted %d of %d users", inserted, len(SEED_USERS))
    return inserted


async def run(
    settings: Settings,
    *,
    database: Database | None = None,
    repo: UserRepositoryProtocol | None = None,
) -> int:
    if not settings.is_dev:
        raise SeedNotAllowedError(
            f"seeding only runs with ENV=dev or ENV=local (ENV={settings.ENV})"
        )

    database = database or Database(settings)
    logger.info("Seeding database: env=%s driver=%s", settings.ENV, settings.DB_DRIVER)
    try:
        return await seed_users(database, repo)
    finally:
        await database.dispose()


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    try:
        asyncio.run(run(settings))
    except SeedNotAllowedError as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
