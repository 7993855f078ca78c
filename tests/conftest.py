import os
import tempfile
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

os.environ["ENVIRONMENT"] = "development"

import app.models  # noqa: F401
from app.db.base_class import Base
from app.db.session import get_db
from app.main import app

ADMIN_HEADERS = {"X-Admin-Key": "dev-admin-key"}


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    db_file = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    db_file.close()

    engine = create_engine(
        f"sqlite:///{db_file.name}",
        connect_args={"check_same_thread": False},
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        os.unlink(db_file.name)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def admin_headers(monkeypatch) -> dict:
    from app.core.config import settings

    monkeypatch.setattr(settings, "ADMIN_API_KEY", ADMIN_HEADERS["X-Admin-Key"])
    return dict(ADMIN_HEADERS)


@pytest.fixture()
def queued_emails(monkeypatch) -> list:
    """Capture Celery email tasks instead of sending them to a broker."""
    from app.tasks.email_tasks import send_email_task

    sent = []

    class _Result:
        id = "test-task-id"

    def fake_delay(*args, **kwargs):
        sent.append(args)
        return _Result()

    monkeypatch.setattr(send_email_task, "delay", fake_delay)
    return sent
