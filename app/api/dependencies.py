"""
Shared API dependencies.
Contains reusable dependency functions for FastAPI endpoints.
Centralizes common dependencies like database sessions, the record store,
services and authentication.
"""

from datetime import date
from typing import Annotated, Optional

from fastapi import Depends
from sqlmodel import Session

from app.core.attendance_service import AttendanceService
from app.core.auth_service import AuthService
from app.core.database import get_session
from app.core.exceptions import ValidationError
from app.core.record_store import RecordStoreGateway
from app.core.security import (
    TokenData,
    get_bearer_token,
    get_current_active_user,
    require_role,
)

# Database session dependency
# Use this type annotation in route handlers to get automatic session injection
SessionDep = Annotated[Session, Depends(get_session)]


def get_record_store(session: SessionDep) -> RecordStoreGateway:
    return RecordStoreGateway(session)


StoreDep = Annotated[RecordStoreGateway, Depends(get_record_store)]


def get_auth_service(store: StoreDep) -> AuthService:
    return AuthService(store)


def get_attendance_service(store: StoreDep) -> AttendanceService:
    return AttendanceService(store)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
AttendanceServiceDep = Annotated[AttendanceService, Depends(get_attendance_service)]

# Raw bearer token, for endpoints that validate or refresh it themselves
BearerTokenDep = Annotated[str, Depends(get_bearer_token)]

# Current User dependency for security
CurrentUserDep = Annotated[TokenData, Depends(get_current_active_user)]
AdminUserDep = Annotated[TokenData, Depends(require_role("admin"))]


def parse_date_param(value: Optional[str], name: str) -> Optional[str]:
    """Normalize an optional YYYY-MM-DD query parameter."""
    if value is None:
        return None
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError:
        raise ValidationError(f"{name} must be in YYYY-MM-DD format")
