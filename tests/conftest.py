"""Pytest fixtures and configuration for calgate tests."""

import pytest
from datetime import datetime
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from cryptography.fernet import Fernet

from calgate.database.database import Base
from calgate.database import models  # noqa: F401
from calgate.database.credential_repository import CredentialRepository
from calgate.database.user_repository import UserRepository
from calgate.engine.catalog import build_catalog
from calgate.models.user import User


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

# Zoom and Stripe configured; Office 365 and Google left unconfigured.
TEST_ENV = {
    "ZOOM_CLIENT_ID": "zoom-id",
    "ZOOM_CLIENT_SECRET": "zoom-secret",
    "STRIPE_CLIENT_ID": "stripe-id",
    "STRIPE_PUBLIC_KEY": "pk_test",
    "STRIPE_PRIVATE_KEY": "sk_test",
}


@pytest.fixture(autouse=True)
def credential_encryption_key(monkeypatch):
    """Every test gets a fresh Fernet key for credential payloads."""
    key = Fernet.generate_key().decode("utf-8")
    monkeypatch.setenv("CREDENTIAL_ENCRYPTION_KEY", key)
    return key


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def catalog():
    return build_catalog(TEST_ENV)


def make_user(user_id: str, username: str, completed_onboarding: bool = True, **overrides) -> User:
    now = datetime.utcnow()
    data = {
        "id": user_id,
        "username": username,
        "email": f"{username}@example.com",
        "name": username.title(),
        "completed_onboarding": completed_onboarding,
        "created_date": now,
        "updated_at": now,
    }
    data.update(overrides)
    return User(**data)


@pytest.fixture
def user_factory():
    """Build User objects with sensible defaults."""
    return make_user


@pytest.fixture(scope="function")
def db_session(test_user_id):
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    Also creates an onboarded test user in the database.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    UserRepository(session).create_or_update(make_user(test_user_id, "tester"))

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def user_repository(db_session: Session):
    return UserRepository(db_session)


@pytest.fixture
def credential_repository(db_session: Session):
    return CredentialRepository(db_session)


@pytest.fixture
def test_user(user_repository, test_user_id):
    return user_repository.get(test_user_id)


@pytest.fixture
def test_client(db_session: Session, test_user, catalog):
    """Create a FastAPI test client with overridden database, catalog and authentication."""
    from calgate.api.app import app, get_catalog
    from calgate.api.public import public_app
    from calgate.database.database import get_db
    from calgate.auth.dependencies import get_current_user

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    def override_get_current_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_catalog] = lambda: catalog
    public_app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    public_app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(db_session: Session, catalog):
    """Test client without an authentication override (real session handling)."""
    from calgate.api.app import app, get_catalog, get_telemetry
    from calgate.api.public import public_app
    from calgate.database.database import get_db
    from calgate.integrations.telemetry import TelemetryClient

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_telemetry] = lambda: TelemetryClient(url="")
    public_app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    public_app.dependency_overrides.clear()
