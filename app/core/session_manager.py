"""
Client-side Session Manager.

The single owner of the authenticated identity on a client. It talks to the
API for login, registration, validation and refresh, and is the only code
that reads or writes the persisted session file. Other components receive
the identity or a token provider from it instead of reading storage.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from app.api.clients.attendance_api import AttendanceApiClient, attendance_api
from app.core.config import settings
from app.core.exceptions import AuthError, InvalidToken
from app.core.logging import get_logger
from app.models.user import UserPublic

logger = get_logger(__name__)


class StoredSession(BaseModel):
    """Bearer token and the user snapshot it was issued for."""

    token: str
    user: UserPublic
    issued_at: datetime = Field(default_factory=datetime.now)


class SessionStore:
    """Persists one session as JSON so it survives application restarts."""

    def __init__(self, path: Path = settings.SESSION_FILE):
        self.path = Path(path)

    def load(self) -> Optional[StoredSession]:
        if not self.path.exists():
            return None
        try:
            return StoredSession.model_validate_json(self.path.read_text("utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Discarding unreadable session file {self.path}: {e}")
            self.clear()
            return None

    def save(self, session: StoredSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        # Owner-only from creation; the file holds a bearer token
        tmp_path.unlink(missing_ok=True)
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(session.model_dump_json(by_alias=True))
        tmp_path.replace(self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class SessionManager:
    """Owns the token lifecycle: issue, validate, refresh and revoke."""

    def __init__(
        self,
        api: Optional[AttendanceApiClient] = None,
        store: Optional[SessionStore] = None,
    ):
        self.api = api or attendance_api
        self.store = store or SessionStore()
        self._session: Optional[StoredSession] = None

    # State

    @property
    def current_user(self) -> Optional[UserPublic]:
        return self._session.user if self._session else None

    @property
    def token(self) -> Optional[str]:
        return self._session.token if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def requires_password_reset(self) -> bool:
        """True while the user still has to replace their initial password."""
        return bool(self._session and self._session.user.is_first_login)

    def require_token(self) -> str:
        if not self._session:
            raise AuthError("Not logged in")
        return self._session.token

    def require_user(self) -> UserPublic:
        if not self._session:
            raise AuthError("Not logged in")
        return self._session.user

    def _set_session(self, token: str, user: UserPublic) -> StoredSession:
        self._session = StoredSession(token=token, user=user)
        self.store.save(self._session)
        return self._session

    # Operations

    async def login(self, email: str, password: str) -> StoredSession:
        """
        Authenticate and persist the new session.

        Raises:
            InvalidCredentials: if the email is unknown or the password wrong
        """
        response = await self.api.login(email, password)
        session = self._set_session(response.token, response.user)
        logger.info(f"Logged in as {response.user.email}")
        return session

    async def register(
        self, email: str, password: str, name: Optional[str] = None
    ) -> UserPublic:
        """Create an account. Does not log in."""
        user = await self.api.register(email, password, name)
        logger.info(f"Registered account {user.username}")
        return user

    async def validate_token(self, token: Optional[str] = None) -> UserPublic:
        """
        Check a token (default: the current one) against the API.

        A rejected current token ends the session.
        """
        token = token or self.require_token()
        try:
            user = await self.api.validate_token(token)
        except AuthError:
            if self._session and token == self._session.token:
                logger.warning("Stored session token rejected, logging out")
                self.logout()
            raise InvalidToken()
        if self._session and token == self._session.token:
            self._set_session(token, user)
        return user

    async def refresh_token(self) -> str:
        """Re-issue the current token. Fails closed: any rejection logs out."""
        token = self.require_token()
        try:
            response = await self.api.refresh_token(token)
        except AuthError:
            logger.warning("Token refresh rejected, logging out")
            self.logout()
            raise InvalidToken()
        self._set_session(response.token, response.user)
        logger.info("Session token refreshed")
        return response.token

    async def restore(self) -> Optional[UserPublic]:
        """
        Bootstrap from the persisted session.

        Returns the user when the stored token is still valid, otherwise
        clears the stored state and returns None.
        """
        stored = self.store.load()
        if stored is None:
            return None

        self._session = stored
        try:
            return await self.validate_token(stored.token)
        except InvalidToken:
            return None

    async def update_password(self, current_password: str, new_password: str) -> None:
        """Change the password and clear the first-login flag locally."""
        token = self.require_token()
        try:
            await self.api.update_password(token, current_password, new_password)
        except InvalidToken:
            self.logout()
            raise
        user = self.require_user().model_copy(update={"is_first_login": False})
        self._set_session(token, user)
        logger.info("Password updated")

    def logout(self) -> None:
        """Forget the session. Safe to call when already logged out."""
        if self._session:
            logger.info(f"Logging out {self._session.user.email}")
        self._session = None
        self.store.clear()
