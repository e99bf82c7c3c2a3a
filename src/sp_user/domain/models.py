"""Domain models for sp_user: pure dataclasses, no I/O."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


class UserStatus(str, Enum):
    """Must match the ck_users_status CHECK constraint exactly."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


@dataclass
class User:
    name: str
    email: str
    status: UserStatus = UserStatus.ACTIVE
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ListUsersQuery:
    offset: int = 0
    limit: int = DEFAULT_LIMIT
    status: UserStatus | None = None
    search: str | None = None

    def normalized(self) -> "ListUsersQuery":
        """Clamp paging: negative offset → 0, limit outside 1..100 → 20."""
        offset = max(self.offset, 0)
        limit = self.limit if 1 <= self.limit <= MAX_LIMIT else DEFAULT_LIMIT
        search = self.search or None
        return replace(self, offset=offset, limit=limit, search=search)
