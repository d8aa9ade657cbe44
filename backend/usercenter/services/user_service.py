"""Registration, login, update and search for user accounts.

Each operation takes its collaborators explicitly: a ``UserRepository`` for
storage and, where login state matters, a ``LoginContext``. A ``None``
context means the caller has no session to write to, which is a system
failure for the flows that need one.
"""

import logging
import math
from typing import Any

from usercenter.auth import hash_password, verify_password
from usercenter.config import settings
from usercenter.exceptions import (
    AuthError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ParamError,
    ServerError,
)
from usercenter.models.user import User, UserPage, UserView
from usercenter.repository import UserRepository
from usercenter.services.update_policy import Identity, Role, UserField, authorize_update
from usercenter.services.validator import has_blank, validate_account, validate_password
from usercenter.session import LoginContext

logger = logging.getLogger(__name__)


def to_view(user: User) -> UserView:
    return UserView.model_validate(user)


def _bind(context: LoginContext, view: UserView) -> None:
    context.set_login_user(view.model_dump(mode="json"))


def register(
    repo: UserRepository, account: str | None, password: str | None, check_password: str | None
) -> int:
    """Create a default-role user and return its id."""
    logger.debug(f"Registering account {account!r}")

    if has_blank(account, password, check_password):
        raise ParamError("Registration fields must not be blank")
    if password != check_password:
        raise ParamError("Password and confirmation do not match")
    validate_account(account)
    validate_password(password)

    if repo.find_by_account(account, include_deleted=True) is not None:
        logger.debug(f"Account {account!r} already registered")
        raise ConflictError()

    # The UNIQUE constraint on users.account catches concurrent registrations
    # that both pass the check above; insert() maps that to ConflictError.
    user = User(account=account, password_hash=hash_password(password), role=Role.DEFAULT)
    user_id = repo.insert(user)
    logger.info(f"Registered account {account!r} as user {user_id}")
    return user_id


def login(
    repo: UserRepository,
    account: str | None,
    password: str | None,
    context: LoginContext | None,
) -> UserView:
    """Check credentials and bind the sanitized user to the session."""
    logger.debug(f"Login attempt for account {account!r}")

    if has_blank(account, password):
        raise ParamError("Account and password must not be blank")
    validate_account(account)
    validate_password(password)

    user = repo.find_by_account(account)
    if user is None:
        raise NotFoundError("No user with this account")
    if not verify_password(password, user.password_hash):
        raise AuthError("Incorrect password")

    view = to_view(user)
    if context is None:
        raise ServerError("Login state cannot be saved")
    _bind(context, view)
    logger.info(f"User {user.id} logged in")
    return view


def logout(context: LoginContext | None) -> None:
    if context is None:
        raise ServerError("Login state cannot be cleared")
    if not context.is_logged_in:
        raise AuthError("Not logged in")
    context.clear()


def current_user(repo: UserRepository, context: LoginContext | None) -> UserView:
    """Reload the logged-in user from storage and refresh the session copy."""
    login_user = _require_login(context)
    user = repo.find_by_id(login_user.get("id"))
    if user is None:
        context.clear()
        raise NotFoundError()
    view = to_view(user)
    _bind(context, view)
    return view


def _require_login(context: LoginContext | None) -> dict[str, Any]:
    if context is None:
        raise ServerError("Login state is unavailable")
    login_user = context.get_login_user()
    if login_user is None:
        raise AuthError("Not logged in")
    return login_user


def _load_actor(repo: UserRepository, context: LoginContext | None) -> Identity:
    """Resolve the acting identity against storage, not just the session copy.

    A deleted actor is logged out. An actor whose stored role no longer
    matches the session must log in again.
    """
    login_user = _require_login(context)
    session_role = Role.parse(login_user.get("role"))
    user_id = login_user.get("id")
    user = repo.find_by_id(user_id) if user_id is not None else None
    if user is None:
        context.clear()
        raise AuthError("Login user no longer exists, please log in again")
    if Role.parse(user.role) is not session_role:
        logger.warning(f"Role of user {user.id} changed since login, forcing re-login")
        context.clear()
        raise InvalidStateError()
    return Identity(id=user.id, role=user.role)


def _hash_new_password(password: str) -> str:
    validate_password(password)
    return hash_password(password)


def update_user(
    repo: UserRepository, payload: dict[str, Any], context: LoginContext | None
) -> UserView:
    """Apply ``payload`` to the user it names, as permitted by the actor's role.

    ``payload`` must carry the target ``id``; every other key is an optional
    field value, with None meaning "leave unchanged". Authorization and
    validation complete before anything is written.
    """
    actor = _load_actor(repo, context)

    target_id = payload.get("id")
    if target_id is None:
        raise ParamError("User id is required")
    target = repo.find_by_id(target_id)
    if target is None:
        raise NotFoundError("User to update does not exist")

    permitted = authorize_update(
        actor,
        Identity(id=target.id, role=target.role),
        payload,
        hasher=_hash_new_password,
    )

    values = dict(permitted)
    if UserField.PASSWORD.value in values:
        values["password_hash"] = values.pop(UserField.PASSWORD.value)
    if UserField.ROLE.value in values:
        try:
            values["role"] = int(Role(values["role"]))
        except ValueError:
            raise ParamError("Unknown role") from None
    new_account = values.get(UserField.ACCOUNT.value)
    if new_account is not None and new_account != target.account:
        validate_account(new_account)
        if repo.find_by_account(new_account, include_deleted=True) is not None:
            raise ConflictError()

    if not values:
        logger.debug(f"Nothing to update for user {target.id}")
        view = to_view(target)
    else:
        updated = repo.update_by_id(target.id, values)
        logger.info(f"User {actor.id} updated user {target.id}: {sorted(permitted)}")
        view = to_view(updated)

    if actor.id == target.id:
        if values.get(UserField.IS_DELETE.value):
            context.clear()
        else:
            _bind(context, view)
    return view


def search(repo: UserRepository, name: str | None, page: int, size: int) -> UserPage:
    """Return one page of sanitized users whose nickname contains ``name``.

    A page past the end is clamped to the last page.
    """
    if page < 1 or size < 1:
        raise ParamError("Page and size must be positive")
    if size > settings.max_page_size:
        raise ParamError(f"Page size must not exceed {settings.max_page_size}")

    logger.debug(f"Searching users by nickname {name!r}, page {page}, size {size}")
    records, total, page = repo.page_query(name, page, size)
    pages = math.ceil(total / size)

    return UserPage(
        records=[to_view(u) for u in records],
        total=total,
        page=page,
        size=size,
        pages=pages,
    )
