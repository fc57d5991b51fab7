"""Pytest configuration and fixtures."""
import pytest
import os
import tempfile
from datetime import datetime
from typing import Optional
from admin_dashboard.config import settings
from admin_dashboard.main import app
from admin_dashboard.models import init_db
from admin_dashboard.schemas import MessageRecord


@pytest.fixture(scope="function")
def test_db(monkeypatch):
    """Create a temporary test database for each test."""
    fd, db_path = tempfile.mkstemp(suffix='.db')
    os.close(fd)

    db_url = f"sqlite:///{db_path}"
    monkeypatch.setenv("DATABASE_URL", db_url)
    monkeypatch.setattr(settings, "database_url", db_url)

    init_db()

    yield db_path

    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch, test_db):
    """Point the app at the temporary sqlite store with a fresh controller."""
    monkeypatch.setenv("DATA_SOURCE", "sqlite")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setattr(settings, "data_source", "sqlite")
    monkeypatch.setattr(settings, "supabase_url", None)
    monkeypatch.setattr(settings, "supabase_key", None)
    monkeypatch.setattr(settings, "dashboard_timezone", None)
    app.state.controller = None
    yield
    app.state.controller = None


def make_record(
    created_at: datetime,
    email: Optional[str] = None,
    record_id: str = "m",
    message: str = "hello",
    ai_response: str = "hi there",
) -> MessageRecord:
    return MessageRecord(
        id=record_id,
        message=message,
        ai_response=ai_response,
        created_at=created_at,
        user_id=email.split("@")[0] if email else None,
        email=email,
    )
