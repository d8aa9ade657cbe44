import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from usercenter.auth import hash_password
from usercenter.database import get_session
from usercenter.main import app
from usercenter.models.user import User
from usercenter.repository import UserRepository
from usercenter.services.update_policy import Role
from usercenter.session import LoginContext

DEFAULT_PASSWORD = "password1"


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def repo(session: Session) -> UserRepository:
    return UserRepository(session)


@pytest.fixture
def context() -> LoginContext:
    return LoginContext({})


@pytest.fixture
def create_user(session: Session):
    """Insert a user directly, bypassing registration."""

    def _create(
        account: str,
        role: Role = Role.DEFAULT,
        password: str = DEFAULT_PASSWORD,
        id: int | None = None,
        **fields,
    ) -> User:
        user = User(
            id=id,
            account=account,
            password_hash=hash_password(password),
            role=role,
            **fields,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _create


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def login_client(client: TestClient):
    """Return a factory producing a separate logged-in client per account.

    Each TestClient keeps its own cookie jar, so each holds its own session.
    """

    def _login(account: str, password: str = DEFAULT_PASSWORD) -> TestClient:
        user_client = TestClient(app)
        response = user_client.post(
            "/api/users/login",
            json={"account": account, "password": password},
        )
        assert response.status_code == 200, response.text
        return user_client

    return _login
