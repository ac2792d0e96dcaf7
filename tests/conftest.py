import os

# Cookies must travel over the plain-http test transport.
os.environ.setdefault("SESSION_COOKIE_SECURE", "false")
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from portal.app import app
from portal.core.config import Config
from portal.core.session import Session, SessionStore


def make_session(token: str = "abc", email: str = "user@example.com") -> Session:
    return Session(
        user_id="user-1",
        email=email,
        access_token=token,
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )


@pytest.fixture
def session() -> Session:
    return make_session()


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def client(store):
    app.state.session_store = store
    app.state.api_transport = None
    with TestClient(app) as test_client:
        yield test_client
    app.state.api_transport = None


@pytest.fixture
def signed_in_client(client, store, session):
    session_id = store.create(session)
    client.cookies.set(Config.SESSION_COOKIE_NAME, session_id)
    return client
