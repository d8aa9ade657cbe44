from fastapi import Depends, Request
from sqlmodel import Session

from usercenter.database import get_session
from usercenter.repository import UserRepository
from usercenter.session import LoginContext


def get_repository(session: Session = Depends(get_session)) -> UserRepository:
    return UserRepository(session)


def get_login_context(request: Request) -> LoginContext | None:
    # request.session asserts when SessionMiddleware is not installed
    if "session" not in request.scope:
        return None
    return LoginContext(request.session)
