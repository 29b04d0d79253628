"""
Temporary storage for upload sessions between requests.

Sessions live in memory with TTL expiration and are never persisted.
Single-process only.
"""
from datetime import datetime, timedelta
from typing import Any, Optional

from config import settings
from exceptions import UploadSessionNotFoundError

_sessions: dict[str, tuple[datetime, Any]] = {}


def save_session(session_id: str, session: Any, ttl_minutes: Optional[int] = None) -> str:
    """Store (or replace) a session, refreshing its expiry."""
    ttl = ttl_minutes or settings.upload_session_ttl_minutes
    _sessions[session_id] = (datetime.now() + timedelta(minutes=ttl), session)
    _cleanup_expired()
    return session_id


def get_session(session_id: str) -> Any:
    """
    Retrieve a live session.

    Raises:
        UploadSessionNotFoundError: If missing or expired
    """
    entry = _sessions.get(session_id)
    if entry is None:
        raise UploadSessionNotFoundError(session_id)
    expires_at, session = entry
    if datetime.now() > expires_at:
        del _sessions[session_id]
        raise UploadSessionNotFoundError(session_id)
    return session


def discard_session(session_id: str) -> None:
    """Remove a session after commit or cancel."""
    _sessions.pop(session_id, None)


def clear_sessions() -> None:
    _sessions.clear()


def _cleanup_expired() -> None:
    """Remove all expired entries."""
    now = datetime.now()
    expired = [k for k, (exp, _) in _sessions.items() if now > exp]
    for k in expired:
        del _sessions[k]
