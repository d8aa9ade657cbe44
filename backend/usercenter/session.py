"""Request-scoped login state.

``LoginContext`` wraps the mutable mapping the session middleware exposes as
``request.session`` so services receive the login state explicitly instead of
reaching for the request.
"""

from collections.abc import MutableMapping
from typing import Any

LOGIN_STATE = "user_login_state"


class LoginContext:
    def __init__(self, store: MutableMapping[str, Any]):
        self._store = store

    def set_login_user(self, view: dict[str, Any]) -> None:
        self._store[LOGIN_STATE] = view

    def get_login_user(self) -> dict[str, Any] | None:
        return self._store.get(LOGIN_STATE)

    def clear(self) -> None:
        self._store.pop(LOGIN_STATE, None)

    @property
    def is_logged_in(self) -> bool:
        return self.get_login_user() is not None
