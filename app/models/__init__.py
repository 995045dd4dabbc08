"""
Database models and schemas module.
Contains all SQLModel table definitions and Pydantic schemas.
"""

from app.models.attendance import (
    AttendanceCreate,
    AttendanceMethod,
    AttendancePublic,
    AttendanceRecord,
    AttendanceStatus,
    AttendanceSubmitResponse,
    AttendanceTodayResponse,
    BusinessHours,
    BusinessHoursPublic,
    BusinessHoursUpdate,
    DashboardStats,
    GeoLocation,
)
from app.models.user import (
    LoginResponse,
    PasswordUpdate,
    ProfileUpdate,
    RegisterResponse,
    User,
    UserLogin,
    UserPublic,
    UserRegister,
    UserRole,
)

__all__ = [
    "AttendanceCreate",
    "AttendanceMethod",
    "AttendancePublic",
    "AttendanceRecord",
    "AttendanceStatus",
    "AttendanceSubmitResponse",
    "AttendanceTodayResponse",
    "BusinessHours",
    "BusinessHoursPublic",
    "BusinessHoursUpdate",
    "DashboardStats",
    "GeoLocation",
    "LoginResponse",
    "PasswordUpdate",
    "ProfileUpdate",
    "RegisterResponse",
    "User",
    "UserLogin",
    "UserPublic",
    "UserRegister",
    "UserRole",
]
