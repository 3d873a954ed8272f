# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from quorum.api.v1.dependencies import get_notifier
from quorum.core.settings import settings
from quorum.db.session import Base, build_engine
from quorum.db.session import get_db as app_get_session
from quorum.main import app as fastapi_app
from quorum.repositories.store import ContentStore
from quorum.schemas.notification import Notification
from quorum.services.notifications import NotificationManager

TEST_DB_URL = "sqlite://"

ALICE = "user:default/alice"
BOB = "user:default/bob"
CAROL = "user:default/carol"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = build_engine(TEST_DB_URL, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    # Store commits release a savepoint; the outer transaction is rolled back.
    session = Session(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits escaped.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def store(db_session: Session) -> ContentStore:
    return ContentStore(db_session)


class RecordingTransport:
    """Transport double that keeps every notification it was handed."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    async def send(self, notification: Notification) -> None:
        self.sent.append(notification)


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def notifier(transport: RecordingTransport) -> NotificationManager:
    return NotificationManager(transport, timeout_seconds=1.0, link_prefix="/qa")


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    notifier: NotificationManager,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def create_access_token(user_ref: str) -> str:
    return jwt.encode({"sub": user_ref}, settings.secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture()
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Return a factory producing bearer headers for a user reference."""

    def _headers(user_ref: str = ALICE) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_ref)}"}

    return _headers


@pytest.fixture()
def make_post(store: ContentStore) -> Callable[..., Any]:
    """Create a post with sensible defaults."""

    def _make(**overrides: Any):
        values: dict[str, Any] = {
            "user_ref": ALICE,
            "title": "How do I deploy the catalog?",
            "content": "Looking for the recommended way.",
            "type": "question",
        }
        values.update(overrides)
        return store.create_post(**values)

    return _make
