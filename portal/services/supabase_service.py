import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from supabase import create_client, Client

from ..core.config import Config
from ..core.errors import AuthenticationError
from ..core.session import Session


logger = logging.getLogger(__name__)


def get_client() -> Client:
    return create_client(Config.SUPABASE_URL, Config.SUPABASE_ANON_KEY)


def _expires_at(raw) -> Optional[datetime]:
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(int(raw), tz=timezone.utc)


def sign_in_with_password(email: str, password: str) -> Session:
    """Authenticate against Supabase Auth and return the issued Session.

    Any provider failure surfaces as ``AuthenticationError`` with the
    provider's exception chained.
    """
    try:
        supabase: Client = get_client()
        response = supabase.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as e:
        logger.warning(f"Sign-in rejected for {email}: {e}")
        raise AuthenticationError(str(e) or "Invalid email or password") from e

    auth_session = getattr(response, "session", None)
    user = getattr(response, "user", None)
    if auth_session is None or user is None or not auth_session.access_token:
        raise AuthenticationError("Invalid email or password")

    return Session(
        user_id=str(user.id),
        email=user.email or email,
        access_token=auth_session.access_token,
        expires_at=_expires_at(getattr(auth_session, "expires_at", None)),
    )


async def sign_in_with_password_async(email: str, password: str) -> Session:
    """Async variant offloading the blocking SDK call with asyncio.to_thread."""
    return await asyncio.to_thread(sign_in_with_password, email, password)


def sign_out(access_token: str) -> None:
    try:
        supabase: Client = get_client()
        supabase.auth.admin.sign_out(access_token)
    except Exception as e:
        logger.warning(f"Failed to revoke session with Supabase: {e}")
