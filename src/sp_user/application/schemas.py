"""Pydantic request/response schemas for sp_user.

Request models are deliberately loose (plain str) so the router can
report "Name is required" style messages itself; shape checks live in
sp_user/api/router.py. All responses are wrapped in the envelopes from
sp_common/response.py at the router layer.
"""

from dataclasses import replace

from pydantic import BaseModel

from src.sp_user.domain.models import User, UserStatus


class CreateUserRequest(BaseModel):
    name: str = ""
    email: str = ""
    status: UserStatus | None = None

    def to_domain(self) -> User:
        return User(
            name=self.name,
            email=self.email,
            status=self.status or UserStatus.ACTIVE,
        )


class UpdateUserRequest(BaseModel):
    """Partial update; None means "leave unchanged"."""

    name: str | None = None
    email: str | None = None
    status: UserStatus | None = None

    def apply_to(self, user: User) -> User:
        changes: dict[str, object] = {}
        if self.name is not None:
            changes["name"] = self.name
        if self.email is not None:
            changes["email"] = self.email
        if self.status is not None:
            changes["status"] = self.status
        return replace(user, **changes)  # type: ignore[arg-type]


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    status: str
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, u: User) -> "UserResponse":
        return cls(
            id=u.id,  # type: ignore[arg-type]
            name=u.name,
            email=u.email,
            status=u.status.value,
            created_at=u.created_at.isoformat() if u.created_at else None,
            updated_at=u.updated_at.isoformat() if u.updated_at else None,
        )
