"""
User database model and API schemas.

The password hash lives only on the table model; every schema returned
by the API is a public projection without it.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import Field as PydanticField
from pydantic import field_validator
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.models.base import ApiSchema

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class UserRole(str, Enum):
    """Role of a user account."""

    EMPLOYEE = "employee"
    ADMIN = "admin"


# Database Model


class User(SQLModel, table=True):
    """ORM model for the users table."""

    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str = Field(max_length=255)
    username: str = Field(index=True, max_length=100)
    email: str = Field(index=True, unique=True, max_length=255)  # stored lower-cased
    hashed_password: str = Field(max_length=255)
    role: str = Field(default=UserRole.EMPLOYEE.value, max_length=20)
    profile_image: Optional[str] = Field(default=None, max_length=1024)
    position: Optional[str] = Field(default=None, max_length=255)
    is_first_login: bool = Field(default=True)

    created_at: datetime = Field(
        sa_type=DateTime, default_factory=datetime.now, nullable=False
    )
    updated_at: datetime = Field(
        sa_type=DateTime, default_factory=datetime.now, nullable=False
    )


# Request Schemas


class UserRegister(ApiSchema):
    """Schema for registration requests."""

    name: Optional[str] = PydanticField(default=None, max_length=255)
    email: str = PydanticField(max_length=255)
    password: str = PydanticField(max_length=72)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format")
        return value


class UserLogin(ApiSchema):
    """Schema for login requests."""

    email: str = PydanticField(min_length=1, max_length=255)
    password: str = PydanticField(min_length=1, max_length=72)


class PasswordUpdate(ApiSchema):
    """Schema for password change requests."""

    current_password: str = PydanticField(min_length=1, max_length=72)
    new_password: str = PydanticField(max_length=72)


class ProfileUpdate(ApiSchema):
    """Schema for profile updates. Only provided fields are changed."""

    name: Optional[str] = PydanticField(default=None, min_length=1, max_length=255)
    position: Optional[str] = PydanticField(default=None, max_length=255)
    profile_image: Optional[str] = PydanticField(default=None, max_length=1024)


# Response Schemas


class UserPublic(ApiSchema):
    """Public projection of a user."""

    id: str
    name: str
    username: str
    email: str
    role: UserRole
    profile_image: Optional[str] = None
    position: Optional[str] = None
    is_first_login: bool = False
    created_at: Optional[datetime] = None


class RegisterResponse(ApiSchema):
    message: str
    user: UserPublic


class LoginResponse(ApiSchema):
    message: str = "Login successful"
    token: str
    user: UserPublic


class TokenValidationResponse(ApiSchema):
    valid: bool
    user: UserPublic


class MessageResponse(ApiSchema):
    message: str
