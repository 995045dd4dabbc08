"""
Password hashing, token issuing and request authentication.

Passwords are hashed with bcrypt. Access tokens are self-describing JWTs
carrying the user id, email and role; nothing about a session is stored
server-side.
"""

from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlmodel import Session

from app.core.config import settings
from app.core.database import get_session
from app.core.exceptions import AuthError, InvalidToken, PermissionDenied
from app.core.logging import get_logger
from app.models.user import User

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class TokenData(BaseModel):
    """Identity claims decoded from an access token."""

    sub: str
    email: str
    role: str
    exp: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# Passwords


def _password_bytes(password: str) -> bytes:
    # bcrypt only uses the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            _password_bytes(password), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Malformed stored hash
        return False


# Tokens


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Issue a signed access token for the given identity."""
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenData:
    """
    Verify a token's signature, expiry, issuer and audience.

    Raises:
        InvalidToken: if the token is expired, tampered or malformed
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidToken("Token expired")
    except jwt.InvalidTokenError:
        raise InvalidToken()

    try:
        return TokenData(
            sub=payload["sub"],
            email=payload.get("email", ""),
            role=payload.get("role", "employee"),
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (KeyError, ValueError, TypeError):
        raise InvalidToken()


# FastAPI dependencies


def get_bearer_token(
    credentials: Annotated[
        Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)
    ],
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthError("Authorization token required")
    return credentials.credentials


def get_current_user(token: Annotated[str, Depends(get_bearer_token)]) -> TokenData:
    return decode_access_token(token)


def get_current_active_user(
    current_user: Annotated[TokenData, Depends(get_current_user)],
    session: Annotated[Session, Depends(get_session)],
) -> TokenData:
    """Reject tokens whose user no longer exists."""
    if session.get(User, current_user.sub) is None:
        logger.warning(f"Token presented for unknown user {current_user.sub}")
        raise InvalidToken("Invalid user")
    return current_user


def require_role(*roles: str):
    """Dependency factory allowing only users holding one of ``roles``."""

    def role_checker(
        current_user: Annotated[TokenData, Depends(get_current_active_user)],
    ) -> TokenData:
        if current_user.role not in roles:
            logger.warning(
                f"User {current_user.email} with role {current_user.role} "
                f"denied access (requires one of {roles})"
            )
            raise PermissionDenied()
        return current_user

    return role_checker


def ensure_self_or_admin(current_user: TokenData, user_id: str, action: str) -> None:
    """Employees may only act on their own records; admins on anyone's."""
    if current_user.is_admin or current_user.sub == user_id:
        return
    logger.warning(
        f"User {current_user.email} attempted to {action} for another user {user_id}"
    )
    raise PermissionDenied(f"You can only {action} for yourself")
