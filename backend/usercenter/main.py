import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.sessions import SessionMiddleware

from usercenter.api.users import router as users_router
from usercenter.auth import hash_password
from usercenter.config import settings
from usercenter.database import engine, init_db
from usercenter.exceptions import ErrorKind, UserCenterError
from usercenter.repository import UserRepository
from usercenter.services.update_policy import Role

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail


def _error_response(kind: ErrorKind, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=kind.status_code,
        content=ErrorResponse(error=ErrorDetail(code=kind.value, message=message)).model_dump(),
    )


def _seed_root_user() -> None:
    """Create the configured root account on first startup."""
    from sqlmodel import Session

    from usercenter.models.user import User

    if not (settings.root_account and settings.root_password):
        return
    with Session(engine) as session:
        repo = UserRepository(session)
        if repo.find_by_account(settings.root_account, include_deleted=True) is None:
            repo.insert(
                User(
                    account=settings.root_account,
                    password_hash=hash_password(settings.root_password),
                    role=Role.ROOT,
                )
            )
            logger.info(f"Seeded root account {settings.root_account!r}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    _seed_root_user()
    yield


app = FastAPI(title="UserCenter", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie=settings.session_cookie,
    max_age=settings.session_max_age,
)

app.include_router(users_router, prefix="/api")


@app.exception_handler(UserCenterError)
async def user_center_error_handler(request: Request, exc: UserCenterError) -> JSONResponse:
    if exc.kind is ErrorKind.SYSTEM_ERROR:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.debug(f"{request.method} {request.url.path} rejected ({exc.kind.value}): {exc.message}")
    return _error_response(exc.kind, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Absent or malformed request bodies and query parameters.

    Only the location and reason of each error are echoed; submitted values
    (passwords included) never are.
    """
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid')}"
        for error in exc.errors()
    )
    return _error_response(ErrorKind.REQUEST_ERROR, f"Malformed request: {problems}")


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(ErrorKind.SYSTEM_ERROR, "Internal server error")


@app.get("/health")
async def health():
    return {"status": "ok"}
