"""
Shared fixtures.

The service is configured for an in-memory SQLite database before any
application module is imported; every test starts from empty tables.
"""

import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-at-least-32-bytes!")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["GOOGLE_MAPS_API_KEY"] = ""
os.environ["CLOUDINARY_CLOUD_NAME"] = ""
os.environ["CLOUDINARY_UPLOAD_PRESET"] = ""

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from app.core.auth_service import AuthService
from app.core.database import engine
from app.core.record_store import RecordStoreGateway
from app.core.security import create_access_token
from app.main import app
from app.models.user import User, UserRegister, UserRole

PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def fresh_database():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def db_session():
    """Create a database session for testing."""
    with Session(engine) as session:
        yield session


@pytest.fixture
def store(db_session):
    return RecordStoreGateway(db_session)


@pytest.fixture
def auth_service(store):
    return AuthService(store)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def asgi_client():
    """Async HTTP client talking to the application in-process."""
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    )


@pytest.fixture
def user_factory(auth_service):
    """Register users directly through the auth service."""

    def make_user(
        email: str, name: str | None = None, role: UserRole = UserRole.EMPLOYEE
    ) -> User:
        return auth_service.register(
            UserRegister(email=email, password=PASSWORD, name=name), role=role
        )

    return make_user


def bearer(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return bearer


@pytest.fixture
def employee(user_factory):
    return user_factory("alice@example.com", name="Alice")


@pytest.fixture
def other_employee(user_factory):
    return user_factory("bob@example.com", name="Bob")


@pytest.fixture
def admin(user_factory):
    return user_factory("admin@example.com", name="Admin", role=UserRole.ADMIN)


@pytest.fixture
def employee_headers(employee):
    return bearer(employee)


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def password():
    return PASSWORD
