import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from fastapi import Request

from .config import Config
from .errors import SessionLookupError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """Authenticated principal as issued by the identity provider.

    Instances are never mutated; a token refresh produces a new Session.
    """

    user_id: str
    email: str
    access_token: str
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at


class SessionStore:
    """In-process map of opaque session ids to Session records.

    Every entry carries a deadline: the session's own ``expires_at`` or,
    when the provider gave none, ``ttl`` after creation. Expired entries are
    swept on each ``create`` so abandoned sessions do not accumulate.
    """

    def __init__(self, ttl: timedelta = timedelta(hours=24)):
        self.ttl = ttl
        self._sessions: Dict[str, Tuple[Session, datetime]] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        expired = [sid for sid, (_, deadline) in self._sessions.items() if now >= deadline]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info(f"Purged {len(expired)} expired sessions")
        return len(expired)

    def create(self, session: Session) -> str:
        now = datetime.now(timezone.utc)
        self.purge_expired(now)
        session_id = secrets.token_urlsafe(32)
        self._sessions[session_id] = (session, session.expires_at or now + self.ttl)
        return session_id

    async def get(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        session, deadline = entry
        if datetime.now(timezone.utc) >= deadline:
            logger.info("Dropping expired session")
            del self._sessions[session_id]
            return None
        return session

    def delete(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        entry = self._sessions.pop(session_id, None)
        return entry[0] if entry is not None else None


async def lookup_session(request: Request, store: SessionStore) -> Optional[Session]:
    """Resolve the request's session cookie; store failures raise ``SessionLookupError``."""
    try:
        return await store.get(request.cookies.get(Config.SESSION_COOKIE_NAME))
    except SessionLookupError:
        raise
    except Exception as e:
        raise SessionLookupError(f"Session lookup failed: {e}") from e
