from fastapi import APIRouter

from app.api.dependencies import AuthServiceDep, BearerTokenDep, CurrentUserDep
from app.core.auth_service import to_public
from app.core.logging import get_logger
from app.models.user import (
    LoginResponse,
    MessageResponse,
    PasswordUpdate,
    RegisterResponse,
    TokenValidationResponse,
    UserLogin,
    UserRegister,
)

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(request: UserRegister, auth: AuthServiceDep) -> RegisterResponse:
    """
    Register a new employee account.

    A system username is generated and, when no name is supplied, the
    local part of the email is used as the display name. The account
    starts with ``isFirstLogin`` set.

    Args:
        request: Email, password and optional display name
        auth: Auth service (injected)

    Returns:
        The created user

    Raises:
        ValidationError: 400 if the password is too short or the email malformed
        UserExists: 409 if the email is already registered
    """
    user = auth.register(request)
    return RegisterResponse(message="User registered successfully", user=to_public(user))


@router.post("/login", response_model=LoginResponse)
async def login(request: UserLogin, auth: AuthServiceDep) -> LoginResponse:
    """
    Authenticate with email and password.

    Args:
        request: Email and password
        auth: Auth service (injected)

    Returns:
        A bearer token and the public user projection; ``isFirstLogin``
        tells the client to force a password change

    Raises:
        InvalidCredentials: 401 for an unknown email or a wrong password
    """
    token, user = auth.login(request.email, request.password)
    return LoginResponse(token=token, user=to_public(user))


@router.get("/validate-token", response_model=TokenValidationResponse)
async def validate_token(
    token: BearerTokenDep, auth: AuthServiceDep
) -> TokenValidationResponse:
    """
    Check whether a stored session token is still usable.

    Args:
        token: Bearer token from the Authorization header
        auth: Auth service (injected)

    Returns:
        ``valid`` and the user the token was issued for

    Raises:
        InvalidToken: 401 if the token is expired, tampered or its user is gone
    """
    user = auth.validate_token(token)
    return TokenValidationResponse(valid=True, user=to_public(user))


@router.post("/refresh-token", response_model=LoginResponse)
async def refresh_token(token: BearerTokenDep, auth: AuthServiceDep) -> LoginResponse:
    """
    Re-issue a token for the same identity.

    Args:
        token: Current bearer token
        auth: Auth service (injected)

    Returns:
        A new token with a fresh expiry and the user

    Raises:
        InvalidToken: 401 if the current token is not valid
    """
    new_token, user = auth.refresh_token(token)
    return LoginResponse(
        message="Token refreshed", token=new_token, user=to_public(user)
    )


@router.post("/update-password", response_model=MessageResponse)
async def update_password(
    request: PasswordUpdate,
    auth: AuthServiceDep,
    current_user: CurrentUserDep,
) -> MessageResponse:
    """
    Change the current user's password and clear the first-login flag.

    Args:
        request: Current and new password
        auth: Auth service (injected)
        current_user: Current authenticated user

    Returns:
        Confirmation message

    Raises:
        InvalidCredentials: 401 if the current password is wrong
        ValidationError: 400 if the new password is too short
    """
    auth.update_password(current_user.sub, request)
    return MessageResponse(message="Password updated successfully")
