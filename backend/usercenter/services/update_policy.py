"""Role-scoped authorization for user updates.

Two decisions are made before anything is written:

1. Whether the acting user may touch the target record at all, based on the
   actor's role, the target's role and whether the target is the actor.
2. Which fields of the payload the actor's role may change. ``CAPABILITIES``
   maps every (role, field) pair to ``ALLOW``, ``STRIP`` (silently dropped) or
   ``DENY`` (the whole update is rejected).

``authorize_update`` returns the sanitized payload with any password value
re-hashed, or raises without side effects.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

from usercenter.auth import hash_password
from usercenter.exceptions import InvalidStateError, PermissionDeniedError

logger = logging.getLogger(__name__)


class Role(IntEnum):
    DEFAULT = 0
    ADMIN = 1
    ROOT = 2

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """Coerce a stored role code, failing closed on anything unknown."""
        if isinstance(value, bool):
            raise InvalidStateError()
        try:
            return cls(value)
        except (ValueError, TypeError):
            raise InvalidStateError() from None


class UserField(str, Enum):
    ACCOUNT = "account"
    PASSWORD = "password"
    NICKNAME = "nickname"
    AVATAR_ID = "avatar_id"
    GENDER = "gender"
    PHONE = "phone"
    EMAIL = "email"
    STATUS = "status"
    ROLE = "role"
    IS_DELETE = "is_delete"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class Access(Enum):
    ALLOW = "allow"
    STRIP = "strip"
    DENY = "deny"


A, S, D = Access.ALLOW, Access.STRIP, Access.DENY

# fmt: off
CAPABILITIES: dict[Role, dict[UserField, Access]] = {
    Role.DEFAULT: {
        UserField.ACCOUNT: D, UserField.PASSWORD: A, UserField.NICKNAME: A,
        UserField.AVATAR_ID: S, UserField.GENDER: A, UserField.PHONE: A,
        UserField.EMAIL: A, UserField.STATUS: D, UserField.ROLE: D,
        UserField.IS_DELETE: A, UserField.CREATED_AT: D, UserField.UPDATED_AT: D,
    },
    Role.ADMIN: {
        UserField.ACCOUNT: A, UserField.PASSWORD: A, UserField.NICKNAME: A,
        UserField.AVATAR_ID: S, UserField.GENDER: A, UserField.PHONE: A,
        UserField.EMAIL: A, UserField.STATUS: A, UserField.ROLE: D,
        UserField.IS_DELETE: A, UserField.CREATED_AT: D, UserField.UPDATED_AT: D,
    },
    Role.ROOT: {
        UserField.ACCOUNT: A, UserField.PASSWORD: A, UserField.NICKNAME: A,
        UserField.AVATAR_ID: S, UserField.GENDER: A, UserField.PHONE: A,
        UserField.EMAIL: A, UserField.STATUS: A, UserField.ROLE: A,
        UserField.IS_DELETE: A, UserField.CREATED_AT: A, UserField.UPDATED_AT: A,
    },
}
# fmt: on

DENY_MESSAGES = {
    UserField.ACCOUNT: "Account cannot be modified",
    UserField.STATUS: "Status cannot be modified",
    UserField.ROLE: "User role cannot be changed",
    UserField.CREATED_AT: "Creation time cannot be modified",
    UserField.UPDATED_AT: "Update time cannot be modified",
}


@dataclass(frozen=True)
class Identity:
    """The subject of an authorization decision: who acts, or who is acted on."""

    id: int
    role: Any

    @classmethod
    def from_view(cls, view: Mapping[str, Any]) -> "Identity":
        return cls(id=view.get("id"), role=view.get("role"))


def check_target(actor: Identity, target: Identity) -> Role:
    """Decide whether ``actor`` may update ``target``.

    Returns the actor's role, which selects the field capabilities.
    """
    actor_role = Role.parse(actor.role)
    target_role = Role.parse(target.role)
    is_self = actor.id == target.id

    if actor_role is Role.DEFAULT:
        if is_self:
            return actor_role
        raise PermissionDeniedError("You cannot modify other users")

    if actor_role is Role.ADMIN:
        if is_self or target_role is Role.DEFAULT:
            return actor_role
        raise PermissionDeniedError("You cannot modify other administrators")

    # root
    if target_role is Role.ROOT and not is_self:
        raise PermissionDeniedError("You cannot modify other root users")
    return actor_role


def filter_fields(role: Role, payload: Mapping[str, Any]) -> dict[str, Any]:
    """Apply the capability matrix for ``role`` to ``payload``.

    Keys whose value is None are treated as absent. Unknown keys are ignored.
    """
    capabilities = CAPABILITIES[role]
    permitted: dict[str, Any] = {}
    for field in UserField:
        value = payload.get(field.value)
        if value is None:
            continue
        access = capabilities[field]
        if access is Access.DENY:
            raise PermissionDeniedError(
                DENY_MESSAGES.get(field, f"{field.value} cannot be modified"),
                field=field.value,
            )
        if access is Access.STRIP:
            logger.debug(f"Dropping unsupported field {field.value} from update")
            continue
        permitted[field.value] = value
    return permitted


def authorize_update(
    actor: Identity,
    target: Identity,
    payload: Mapping[str, Any],
    hasher: Callable[[str], str] = hash_password,
) -> dict[str, Any]:
    """Return the subset of ``payload`` that ``actor`` may write to ``target``.

    Raises PermissionDeniedError for a forbidden target or field and
    InvalidStateError for an unrecognized role. A password in the result is
    already hashed.
    """
    role = check_target(actor, target)
    logger.debug(f"User {actor.id} ({role.name}) updating user {target.id}")
    permitted = filter_fields(role, payload)
    if UserField.PASSWORD.value in permitted:
        permitted[UserField.PASSWORD.value] = hasher(permitted[UserField.PASSWORD.value])
    return permitted
