"""Typed failures raised by the user center services.

Every error carries a machine-readable ``kind`` and a human-readable message.
The HTTP layer maps the kind to a status code; services never build HTTP
responses themselves.
"""

from enum import Enum


class ErrorKind(str, Enum):
    REQUEST_ERROR = "request_error"
    PARAM_ERROR = "param_error"
    CONFLICT = "conflict"
    AUTH_ERROR = "auth_error"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    INVALID_STATE = "invalid_state"
    SYSTEM_ERROR = "system_error"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.REQUEST_ERROR: 400,
    ErrorKind.PARAM_ERROR: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.AUTH_ERROR: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.INVALID_STATE: 401,
    ErrorKind.SYSTEM_ERROR: 500,
}


class UserCenterError(Exception):
    """Base exception for all user center errors."""

    kind: ErrorKind = ErrorKind.SYSTEM_ERROR
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class RequestError(UserCenterError):
    """Raised when the request body is absent or malformed."""

    kind = ErrorKind.REQUEST_ERROR
    default_message = "Malformed request"


class ParamError(UserCenterError):
    """Raised when a parameter fails validation."""

    kind = ErrorKind.PARAM_ERROR
    default_message = "Invalid parameter"


class ConflictError(UserCenterError):
    """Raised when an account name is already taken."""

    kind = ErrorKind.CONFLICT
    default_message = "Account already exists"


class AuthError(UserCenterError):
    """Raised on bad credentials or a missing login."""

    kind = ErrorKind.AUTH_ERROR
    default_message = "Authentication failed"


class NotFoundError(UserCenterError):
    """Raised when a requested user does not exist."""

    kind = ErrorKind.NOT_FOUND
    default_message = "User not found"


class PermissionDeniedError(UserCenterError):
    """Raised when the acting role may not touch a target or a field."""

    kind = ErrorKind.PERMISSION_DENIED
    default_message = "Permission denied"

    def __init__(self, message: str | None = None, field: str | None = None):
        self.field = field
        super().__init__(message)


class InvalidStateError(UserCenterError):
    """Raised when the session identity is unusable; the caller must log in again."""

    kind = ErrorKind.INVALID_STATE
    default_message = "Unrecognized user role, please log in again"


class ServerError(UserCenterError):
    """Raised on infrastructure failures (session store, persistence)."""

    kind = ErrorKind.SYSTEM_ERROR
