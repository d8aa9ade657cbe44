from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    account: str = Field(unique=True, index=True)
    password_hash: str
    role: int = Field(default=0)  # see services.update_policy.Role
    nickname: str | None = Field(default=None, index=True)
    avatar_id: int | None = Field(default=None)
    gender: int | None = Field(default=None)
    phone: str | None = Field(default=None)
    email: str | None = Field(default=None)
    status: int = Field(default=0)  # 0 = normal
    is_delete: bool = Field(default=False)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class UserView(SQLModel):
    """User projection safe to hand back to callers: no password hash, no delete flag."""

    id: int
    account: str
    role: int
    nickname: str | None = None
    avatar_id: int | None = None
    gender: int | None = None
    phone: str | None = None
    email: str | None = None
    status: int = 0
    created_at: datetime
    updated_at: datetime


class UserPage(SQLModel):
    records: list[UserView]
    total: int
    page: int
    size: int
    pages: int
