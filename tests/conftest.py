"""
Pytest configuration and shared fixtures.
"""
import os

# Configuration is read at import time; set it before the app is imported
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret-key-0123456789")
os.environ.setdefault("CRON_SECRET", "test-cron-secret")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from typing import Any, Callable, Dict, List
from fastapi.testclient import TestClient

from core.store import get_client
from web.config import SESSION_COOKIE
from web.main import app
from web.services.auth_service import create_session

from fakes import FakeSupabase


@pytest.fixture
def profiles() -> List[Dict[str, Any]]:
    """One profile per role."""
    return [
        {"id": "user-1", "email": "ada@example.com", "full_name": "Ada Customer", "role": "user",
         "created_at": "2026-01-05T10:00:00+00:00"},
        {"id": "admin-1", "email": "grace@example.com", "full_name": "Grace Admin", "role": "admin",
         "created_at": "2026-01-04T10:00:00+00:00"},
        {"id": "super-1", "email": "linus@example.com", "full_name": "Linus Root", "role": "super_admin",
         "created_at": "2026-01-03T10:00:00+00:00"},
    ]


@pytest.fixture
def db(profiles) -> FakeSupabase:
    """Fake store holding only the profiles; tests add the tables they need."""
    return FakeSupabase({"profiles": profiles})


@pytest.fixture
def client(db):
    """TestClient whose store dependency is the fake."""
    app.dependency_overrides[get_client] = lambda: db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def login(client) -> Callable[[str], TestClient]:
    """
    Sign the test client in as a profile id.

    Usage:
        login("admin-1")
        client.get("/api/admin/categories")
    """
    def _login(user_id: str) -> TestClient:
        client.cookies.set(SESSION_COOKIE, create_session(user_id))
        return client

    return _login


@pytest.fixture
def as_user(login):
    return login("user-1")


@pytest.fixture
def as_admin(login):
    return login("admin-1")


@pytest.fixture
def as_super_admin(login):
    return login("super-1")
