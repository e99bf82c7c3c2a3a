"""Typed error taxonomy shared by every layer.

Each error carries an ErrorKind; the HTTP boundary maps kinds to status
codes by equality, never by inspecting message text.

  BAD_REQUEST            400  malformed / out-of-bounds input
  UNAUTHORIZED           401  missing or wrong API key
  NOT_FOUND              404  missing entity or route
  CONFLICT               409  duplicate email
  INTERNAL_SERVER_ERROR  500  any other persistence failure
  SERVICE_UNAVAILABLE    503  readiness dependency failure
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL = "INTERNAL_SERVER_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
    ErrorKind.SERVICE_UNAVAILABLE: 503,
}


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: Any = None,
    ) -> None:
        self.kind = kind
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_KIND.get(self.kind, 500)

    @property
    def public_message(self) -> str:
        """Message safe to return to API clients."""
        return self.message


# --- 400 ---

class ValidationError(AppError):
    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(ErrorKind.BAD_REQUEST, message, details)


# --- 401 ---

class UnauthorizedError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.UNAUTHORIZED, message)


# --- 404 ---

class NotFoundError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.NOT_FOUND, message)


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"user not found with id {user_id}")


class RouteNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("route not found")


# --- 409 ---

class ConflictError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.CONFLICT, message)


class EmailExistsError(ConflictError):
    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("Email already exists")


# --- 500 ---

class PersistenceError(AppError):
    """Database failure wrapped with the operation that triggered it."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        message = f"failed to {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(ErrorKind.INTERNAL, message)

    @property
    def public_message(self) -> str:
        # Driver messages stay in the logs
        return f"Failed to {self.operation}"


# --- 503 ---

class ServiceUnavailableError(AppError):
    def __init__(self, message: str = "Service not ready", details: Any = None) -> None:
        super().__init__(ErrorKind.SERVICE_UNAVAILABLE, message, details)
