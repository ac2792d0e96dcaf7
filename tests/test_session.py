"""Tests for the session record and store."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from portal.core.config import Config
from portal.core.errors import SessionLookupError
from portal.core.session import Session, SessionStore, lookup_session
from tests.conftest import make_session


def test_session_is_immutable(session):
    with pytest.raises(AttributeError):
        session.access_token = "other"


def test_expiry():
    now = datetime.now(timezone.utc)
    session = Session("u", "u@example.com", "t", expires_at=now)

    assert session.is_expired(now)
    assert not session.is_expired(now - timedelta(seconds=1))
    assert not Session("u", "u@example.com", "t").is_expired()


@pytest.mark.asyncio
async def test_create_and_get(store, session):
    session_id = store.create(session)

    assert await store.get(session_id) is session
    assert len(store) == 1


@pytest.mark.asyncio
async def test_session_ids_are_unique(store, session):
    assert store.create(session) != store.create(session)


@pytest.mark.asyncio
async def test_missing_ids(store):
    assert await store.get(None) is None
    assert await store.get("") is None
    assert await store.get("unknown") is None


@pytest.mark.asyncio
async def test_expired_session_is_dropped():
    store = SessionStore()
    expired = Session("u", "u@example.com", "t", expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
    session_id = store.create(expired)

    assert await store.get(session_id) is None
    assert len(store) == 0


def test_delete(store):
    session = make_session()
    session_id = store.create(session)

    assert store.delete(session_id) is session
    assert store.delete(session_id) is None
    assert store.delete(None) is None


def test_create_purges_abandoned_expired_sessions():
    store = SessionStore()
    expired = Session("u", "u@example.com", "t", expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
    store.create(expired)
    store.create(expired)
    assert len(store) == 2

    store.create(make_session())

    assert len(store) == 1


@pytest.mark.asyncio
async def test_sessions_without_expiry_use_store_ttl():
    store = SessionStore(ttl=timedelta(minutes=30))
    session_id = store.create(Session("u", "u@example.com", "t"))

    assert await store.get(session_id) is not None
    assert store.purge_expired(datetime.now(timezone.utc) + timedelta(minutes=31)) == 1
    assert await store.get(session_id) is None


@pytest.mark.asyncio
async def test_lookup_wraps_store_failures():
    class Unreachable(SessionStore):
        async def get(self, session_id):
            raise ConnectionError("redis down")

    request = SimpleNamespace(cookies={Config.SESSION_COOKIE_NAME: "sid"})

    with pytest.raises(SessionLookupError) as excinfo:
        await lookup_session(request, Unreachable())

    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert excinfo.value.status_code == 503
