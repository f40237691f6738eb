"""Token sessions against the users table.

Sessions are rows keyed by an opaque token. A user holds at most one live
session: logging in removes every earlier session for that username. Expiry
is checked lazily on validation; ``sweep_expired`` keeps the table bounded.
"""

import logging
from datetime import timedelta
from typing import Optional

from regdesk.core.config import settings
from regdesk.core.security import generate_session_token, passwords_match
from regdesk.services.errors import ErrorKind, Result, StoreInconsistency
from regdesk.services.record_store import SESSIONS, USERS, RecordStore
from regdesk.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)

ACTIVE = "active"


class SessionManager:
    def __init__(self, store: RecordStore, clock: Clock = utcnow, ttl_hours: Optional[int] = None):
        self.store = store
        self.clock = clock
        self.ttl = timedelta(hours=settings.SESSION_TTL_HOURS if ttl_hours is None else ttl_hours)

    def login(self, username: str, password: str) -> Result:
        username = str(username or "").strip()
        if not username or not password:
            return Result.fail(ErrorKind.VALIDATION_ERROR, "Username and password are required")

        user = self.store.find_by_key(USERS, "username", username)
        if user is None or not passwords_match(password, user.password):
            logger.warning(f"Failed login for {username}")
            return Result.fail(ErrorKind.INVALID_CREDENTIALS, "Invalid username or password")
        if str(user.status or "").strip().lower() != ACTIVE:
            logger.warning(f"Login refused for inactive account {user.username}")
            return Result.fail(ErrorKind.INACTIVE_ACCOUNT, "This account is not active")

        now = self.clock()
        token = generate_session_token()
        with self.store.atomic():
            self._drop_sessions_for(user.username)
            self.store.append(
                SESSIONS,
                {"token": token, "username": user.username, "expires_at": now + self.ttl, "created_at": now},
            )
        logger.info(f"🔑 {user.username} logged in")
        return Result.ok("Login successful", token=token, username=user.username)

    def _drop_sessions_for(self, username: str) -> int:
        stale = [s for s in self.store.find_all(SESSIONS) if s.username.lower() == username.lower()]
        for session in stale:
            self.store.delete_row(self.store.ref(SESSIONS, session))
        return len(stale)

    def validate(self, token: str) -> Result:
        session = self.store.find_by_key(SESSIONS, "token", token, exact=True) if token else None
        if session is None:
            return Result.fail(ErrorKind.INVALID_TOKEN, "Invalid session token")
        if self.clock() > session.expires_at:
            self._delete_quietly(session)
            return Result.fail(ErrorKind.TOKEN_EXPIRED, "Session has expired, please log in again")
        return Result.ok("Token is valid", username=session.username)

    def logout(self, token: str) -> Result:
        session = self.store.find_by_key(SESSIONS, "token", token, exact=True) if token else None
        if session is not None:
            self._delete_quietly(session)
            logger.info(f"{session.username} logged out")
        return Result.ok("Logged out")

    def get_user_info(self, token: str) -> Result:
        result = self.validate(token)
        if not result.success:
            return result
        username = result.data["username"]
        user = self.store.find_by_key(USERS, "username", username)
        if user is None:
            logger.warning(f"Session for {username} has no matching user")
            return Result.fail(ErrorKind.USER_NOT_FOUND, "User not found")
        return Result.ok("User found", username=user.username, status=user.status)

    def sweep_expired(self) -> int:
        now = self.clock()
        removed = 0
        for session in self.store.find_all(SESSIONS):
            if now > session.expires_at and self._delete_quietly(session):
                removed += 1
        logger.info(f"Removed {removed} expired session(s)")
        return removed

    def _delete_quietly(self, session) -> bool:
        """Delete ``session``; False if another writer already removed it."""
        try:
            self.store.delete_row(self.store.ref(SESSIONS, session))
        except StoreInconsistency as e:
            logger.info(f"Session already gone: {e}")
            return False
        return True
