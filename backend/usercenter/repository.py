"""Persistence layer for User records.

UserRepository is the only code that talks to the database. Storage failures
are translated into the service error taxonomy here: a UNIQUE violation on
``users.account`` becomes ConflictError, anything else from SQLAlchemy becomes
ServerError. Soft-deleted rows are hidden from every lookup unless asked for.
"""

import logging
import math
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, func, select

from usercenter.exceptions import ConflictError, ServerError
from usercenter.models.user import User

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_account(self, account: str, include_deleted: bool = False) -> User | None:
        stmt = select(User).where(User.account == account)
        if not include_deleted:
            stmt = stmt.where(User.is_delete == False)  # noqa: E712
        return self._run(lambda: self.session.exec(stmt).first())

    def find_by_id(self, user_id: int) -> User | None:
        user = self._run(lambda: self.session.get(User, user_id))
        if user is None or user.is_delete:
            return None
        return user

    def insert(self, user: User) -> int:
        self.session.add(user)
        self._commit()
        self.session.refresh(user)
        return user.id

    def update_by_id(self, user_id: int, values: dict[str, Any]) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise ServerError(f"User {user_id} disappeared during update")
        for key, value in values.items():
            setattr(user, key, value)
        if "updated_at" not in values:
            user.updated_at = datetime.now(UTC)
        self.session.add(user)
        self._commit()
        self.session.refresh(user)
        return user

    def page_query(
        self, name: str | None, page: int, size: int
    ) -> tuple[list[User], int, int]:
        """Return one page of non-deleted users, the total match count and the page served.

        A blank ``name`` matches every user; otherwise nicknames containing
        ``name`` literally match. A page past the end is clamped to the last
        page (page 1 when nothing matches) before the offset is computed.
        """
        conditions = [User.is_delete == False]  # noqa: E712
        if name and name.strip():
            conditions.append(col(User.nickname).contains(name, autoescape=True))

        def run() -> tuple[list[User], int, int]:
            total = self.session.exec(
                select(func.count()).select_from(User).where(*conditions)
            ).one()
            last = max(math.ceil(total / size), 1)
            served = page
            if page > last:
                logger.debug(f"Page {page} beyond last page {last}, serving last page")
                served = last
            records = self.session.exec(
                select(User)
                .where(*conditions)
                .order_by(User.id)
                .offset((served - 1) * size)
                .limit(size)
            ).all()
            return list(records), total, served

        return self._run(run)

    # --- Helpers ---

    def _commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.debug(f"Integrity violation on users: {exc.orig}")
            raise ConflictError() from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(f"Failed to write users: {exc}")
            raise ServerError("Failed to save user") from exc

    def _run(self, query):
        try:
            return query()
        except SQLAlchemyError as exc:
            logger.error(f"Failed to query users: {exc}")
            raise ServerError("Failed to query users") from exc
