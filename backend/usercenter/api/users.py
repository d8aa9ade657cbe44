from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from usercenter.api.deps import get_login_context, get_repository
from usercenter.config import settings
from usercenter.models.user import UserPage, UserView
from usercenter.repository import UserRepository
from usercenter.services import user_service
from usercenter.session import LoginContext

router = APIRouter(prefix="/users", tags=["users"])


class RegisterRequest(BaseModel):
    account: str | None = None
    password: str | None = None
    check_password: str | None = None


class RegisterResponse(BaseModel):
    id: int


class LoginRequest(BaseModel):
    account: str | None = None
    password: str | None = None


class UpdateUserRequest(BaseModel):
    id: int
    account: str | None = None
    password: str | None = None
    nickname: str | None = None
    avatar_id: int | None = None
    gender: int | None = None
    phone: str | None = None
    email: str | None = None
    status: int | None = None
    role: int | None = None
    is_delete: bool | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    body: RegisterRequest,
    repo: UserRepository = Depends(get_repository),
):
    user_id = user_service.register(repo, body.account, body.password, body.check_password)
    return RegisterResponse(id=user_id)


@router.post("/login", response_model=UserView)
async def login(
    body: LoginRequest,
    repo: UserRepository = Depends(get_repository),
    context: LoginContext | None = Depends(get_login_context),
):
    return user_service.login(repo, body.account, body.password, context)


@router.post("/logout")
async def logout(context: LoginContext | None = Depends(get_login_context)):
    user_service.logout(context)
    return {"detail": "Logged out"}


@router.get("/current", response_model=UserView)
async def current(
    repo: UserRepository = Depends(get_repository),
    context: LoginContext | None = Depends(get_login_context),
):
    return user_service.current_user(repo, context)


@router.api_route("/update", methods=["PATCH", "POST"], response_model=UserView)
async def update_user(
    body: UpdateUserRequest,
    repo: UserRepository = Depends(get_repository),
    context: LoginContext | None = Depends(get_login_context),
):
    return user_service.update_user(repo, body.model_dump(), context)


@router.get("/search", response_model=UserPage)
async def search(
    name: str = "",
    page: int = Query(1),
    size: int = Query(settings.default_page_size),
    repo: UserRepository = Depends(get_repository),
):
    return user_service.search(repo, name, page, size)
