"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from prase.config import get_settings
from prase.database import Base, get_db
from prase.models.card import Card, Lock  # noqa: F401
from prase.models.log import Log  # noqa: F401
from prase.models.project import Project  # noqa: F401
from prase.models.user import User  # noqa: F401
from prase.models.web_session import WebSession  # noqa: F401
from prase.services.auth import AuthService
from tests.helpers import TEST_EMAIL, TEST_PASSWORD, RecordingNotifier, login


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="settings")
def settings_fixture(monkeypatch, tmp_path):
    """Cached settings with uploads in a temp dir. Tests monkeypatch attributes on it."""
    settings = get_settings()
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "SIGNUP_EMAIL_REQUIRED_SUBSTRING", "")
    monkeypatch.setattr(settings, "ACCESS_API_KEYS", [])
    monkeypatch.setattr(settings, "LOG_REFERENCE_POLICY", "allow")
    return settings


@pytest.fixture(name="notifier")
def notifier_fixture(monkeypatch):
    """Route every notification to an in-memory recorder."""
    from prase.services import notifications

    recorder = RecordingNotifier()
    monkeypatch.setattr(notifications, "_notifier", recorder)
    return recorder


@pytest.fixture(name="client")
def client_fixture(db_session: Session, settings, notifier):
    """Create a test client with overridden DB dependency and disabled rate limiting."""
    from main import app
    from prase.rate_limit import limiter

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session, settings) -> User:
    """Create a registered user."""
    return AuthService().signup(
        db_session, {"email": TEST_EMAIL, "password": TEST_PASSWORD, "confirm_password": TEST_PASSWORD}
    )


@pytest.fixture(name="auth_client")
def auth_client_fixture(client: TestClient, test_user: User) -> TestClient:
    """A client with a logged-in session for ``test_user``."""
    response = login(client)
    assert response.status_code == 302
    return client
