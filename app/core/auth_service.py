"""
Server-side authentication service.

Implements registration, login, token validation and refresh, password
changes and profile updates against the user table. Plaintext passwords are
only ever handed to the hashing primitives and never logged.
"""

import time

from app.core.config import settings
from app.core.exceptions import (
    InvalidCredentials,
    InvalidToken,
    NotFoundError,
    UserExists,
    ValidationError,
)
from app.core.logging import get_logger
from app.core.record_store import RecordStoreGateway
from app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from app.models.user import (
    PasswordUpdate,
    ProfileUpdate,
    User,
    UserPublic,
    UserRegister,
    UserRole,
)

logger = get_logger(__name__)

AVATAR_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"


def _check_password_strength(password: str) -> None:
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters"
        )


def _generate_username() -> str:
    return f"user_{int(time.time() * 1000)}"


class AuthService:
    """Authentication operations backed by the record store."""

    def __init__(self, store: RecordStoreGateway):
        self.store = store

    def register(self, request: UserRegister, role: UserRole = UserRole.EMPLOYEE) -> User:
        """
        Create a new user account.

        Raises:
            ValidationError: if the password is too short
            UserExists: if the email is already registered
        """
        _check_password_strength(request.password)

        if self.store.get_user_by_email(request.email):
            logger.warning("Registration attempted with an email already in use")
            raise UserExists()

        name = (request.name or "").strip() or request.email.split("@")[0]
        user = User(
            name=name,
            username=_generate_username(),
            email=request.email,
            hashed_password=hash_password(request.password),
            role=role.value,
            profile_image=AVATAR_URL.format(seed=request.email),
            is_first_login=True,
        )
        user = self.store.insert_user(user)
        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    def login(self, email: str, password: str) -> tuple[str, User]:
        """
        Verify credentials and issue an access token.

        Unknown emails and wrong passwords fail identically.
        """
        user = self.store.get_user_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            logger.warning("Login failed: invalid credentials")
            raise InvalidCredentials()

        token = create_access_token(user.id, user.email, user.role)
        logger.info(f"User {user.id} logged in")
        return token, user

    def validate_token(self, token: str) -> User:
        """Return the user a token was issued for, or raise ``InvalidToken``."""
        claims = decode_access_token(token)
        user = self.store.get_user(claims.sub)
        if not user:
            raise InvalidToken("Invalid user")
        return user

    def refresh_token(self, token: str) -> tuple[str, User]:
        """Re-issue a token with the same identity claims as a valid one."""
        user = self.validate_token(token)
        new_token = create_access_token(user.id, user.email, user.role)
        logger.info(f"Refreshed token for user {user.id}")
        return new_token, user

    def update_password(self, user_id: str, request: PasswordUpdate) -> User:
        user = self.store.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        if not verify_password(request.current_password, user.hashed_password):
            logger.warning(f"Password change for user {user_id} rejected")
            raise InvalidCredentials("Current password is incorrect")
        _check_password_strength(request.new_password)

        user.hashed_password = hash_password(request.new_password)
        user.is_first_login = False
        user = self.store.save_user(user)
        logger.info(f"Password updated for user {user_id}")
        return user

    def update_profile(self, user_id: str, request: ProfileUpdate) -> User:
        user = self.store.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(user, field, value)
        user = self.store.save_user(user)
        logger.info(f"Profile updated for user {user_id}: {sorted(changes)}")
        return user


def to_public(user: User) -> UserPublic:
    return UserPublic.model_validate(user)
