"""Server-issued sessions for the school portal.

A successful login creates an opaque token bound to the user's id and
role. Every protected request presents the token; the role used by the
access policy comes from here, never from the request body.

Sessions live in memory: restarting the server logs everyone out.
"""

import os
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from dotenv import load_dotenv

from .database.models import Role
from .logutils import get_logger

load_dotenv()

logger = get_logger(__name__)

SESSION_TIMEOUT_MINUTES = int(os.getenv("SESSION_TIMEOUT_MINUTES", "30"))


@dataclass
class Session:
    token: str
    user_id: int
    role: Role
    created_at: datetime
    last_activity: datetime


class SessionStore:
    """Thread-safe in-memory token store with an inactivity timeout."""

    def __init__(
        self,
        timeout_minutes: int = SESSION_TIMEOUT_MINUTES,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._timeout = timedelta(minutes=timeout_minutes)
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, user_id: int, role: Role) -> str:
        """Create a session and return its token.

        Args:
            user_id: The authenticated user's id
            role: The user's role as stored in the database

        Returns:
            64 character hex token
        """
        token = secrets.token_hex(32)
        role = Role(role)
        now = self._clock()
        with self._lock:
            self._sessions[token] = Session(token, user_id, role, now, now)
        logger.info("Session created", extra={"extra_data": {"user_id": user_id, "role": role.value}})
        return token

    def validate(self, token: Optional[str]) -> Optional[Session]:
        """Return the live session for ``token`` and refresh its activity time.

        Expired sessions are removed and reported as missing.
        """
        if not token:
            return None

        now = self._clock()
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if now - session.last_activity > self._timeout:
                del self._sessions[token]
                logger.info("Session expired", extra={"extra_data": {"user_id": session.user_id}})
                return None
            session.last_activity = now
            return session

    def logout(self, token: Optional[str]) -> bool:
        """Invalidate a token. Returns False when it was not active."""
        if not token:
            return False
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def revoke_user(self, user_id: int) -> int:
        """Drop every session of a user, e.g. after the account is deleted."""
        with self._lock:
            tokens = [t for t, s in self._sessions.items() if s.user_id == user_id]
            for token in tokens:
                del self._sessions[token]
        return len(tokens)

    def __len__(self) -> int:
        return len(self._sessions)
