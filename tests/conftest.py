"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from meco_auth.config import Settings
from meco_auth.database import Base, get_db
from meco_auth.models.user import User  # noqa: F401
from meco_auth.services.auth import AuthFlows, get_auth_flows
from meco_auth.services.notifier import NotificationError, Notifier


class RecordingNotifier(Notifier):
    """Keeps sent messages in memory. Set ``fail`` to simulate a mail outage."""

    def __init__(self) -> None:
        self.messages: list[dict] = []
        self.fail = False

    def send(self, address: str, subject: str, body: str) -> None:
        if self.fail:
            raise NotificationError("mail relay unavailable")
        self.messages.append({"to": address, "subject": subject, "body": body})

    def last_token(self) -> str:
        return self.messages[-1]["body"].rsplit("token=", 1)[1]


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
def settings_fixture() -> Settings:
    settings = Settings()
    settings.JWT_SECRET_KEY = "test-secret"
    settings.BCRYPT_ROUNDS = 4
    settings.FRONTEND_URL = "http://localhost:5173"
    settings.TOKEN_TTL_MINUTES = 60
    return settings


@pytest.fixture(name="notifier")
def notifier_fixture() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(name="flows")
def flows_fixture(settings: Settings, notifier: RecordingNotifier) -> AuthFlows:
    return AuthFlows(settings, notifier)


@pytest.fixture(name="client")
def client_fixture(db_session: Session, flows: AuthFlows):
    """Create a test client with overridden DB and flow dependencies."""
    from main import app
    from meco_auth.routers import auth as auth_module

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    # Point post-response work at the test DB session
    auth_module._session_factory = lambda: db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_auth_flows] = lambda: flows
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    auth_module._session_factory = None


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session, flows: AuthFlows) -> dict:
    """Register an unconfirmed user and return its details."""
    user = flows.register(db_session, "Alice", "alice@example.com", "longenough1")
    return {"id": user.id, "name": "Alice", "email": "alice@example.com", "password": "longenough1"}


@pytest.fixture(name="confirmed_user")
def confirmed_user_fixture(db_session: Session, flows: AuthFlows, test_user: dict) -> dict:
    """Register a user and confirm its email through a confirmation token."""
    issued = flows.issuer.issue(flows.token_ttl)
    flows.store.set_confirm_token(db_session, test_user["id"], issued.token, issued.expires_at)
    flows.confirm_email(db_session, issued.token)
    return test_user
