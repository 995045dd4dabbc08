"""
Attendance database models and schemas for the Attendance Tracker Service.

One record is written per check-in or check-out event and never mutated
afterwards. The ``date`` column holds the local calendar day of the event
and backs the unique constraint that allows at most one check-in and one
check-out per user per day.

Timestamps are stored as naive local time in plain ``DateTime`` columns,
the same clock the ``date`` column is derived from.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import Field as PydanticField
from pydantic import model_validator
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from app.models.base import ApiSchema


class AttendanceStatus(str, Enum):
    """Self-reported status of an attendance record."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class AttendanceMethod(str, Enum):
    """How the attendance was submitted."""

    BIOMETRIC = "biometric"
    MANUAL = "manual"


def to_local_naive(timestamp: datetime) -> datetime:
    """Convert an aware timestamp to naive local time; naive ones are kept."""
    if timestamp.tzinfo is not None:
        return timestamp.astimezone().replace(tzinfo=None)
    return timestamp


def local_date(timestamp: datetime) -> str:
    """Local calendar date (YYYY-MM-DD) of an event timestamp."""
    return to_local_naive(timestamp).date().isoformat()


# Database Model


class AttendanceRecord(SQLModel, table=True):
    """ORM model for the attendance_records table."""

    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "date", "is_checkout", name="uq_attendance_user_date_checkout"
        ),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)

    # Owner
    user_id: str = Field(index=True, nullable=False, foreign_key="users.id")
    user_name: str = Field(max_length=255)

    # Event
    status: str = Field(default=AttendanceStatus.PRESENT.value, max_length=20)
    method: str = Field(default=AttendanceMethod.MANUAL.value, max_length=20)
    timestamp: datetime = Field(sa_type=DateTime, index=True, nullable=False)
    date: str = Field(index=True, nullable=False, max_length=10)  # YYYY-MM-DD format
    is_checkout: bool = Field(default=False)

    # Location
    latitude: Optional[float] = Field(default=None)
    longitude: Optional[float] = Field(default=None)
    location_name: Optional[str] = Field(default=None, max_length=255)

    face_image: Optional[str] = Field(default=None, max_length=1024)

    created_at: datetime = Field(
        sa_type=DateTime, default_factory=datetime.now, nullable=False
    )


class BusinessHours(SQLModel, table=True):
    """Organization-wide check-in window. A single row with id 1."""

    __tablename__ = "business_hours"

    id: int = Field(default=1, primary_key=True)
    start_time: str = Field(max_length=5)  # HH:MM format
    end_time: str = Field(max_length=5)  # HH:MM format
    updated_by: Optional[str] = Field(default=None, max_length=64)
    updated_at: datetime = Field(
        sa_type=DateTime, default_factory=datetime.now, nullable=False
    )


# Request Schemas


class GeoLocation(ApiSchema):
    """Coordinates with an optional resolved place name."""

    lat: float = PydanticField(ge=-90, le=90)
    lng: float = PydanticField(ge=-180, le=180)
    location_name: Optional[str] = PydanticField(default=None, max_length=255)


class AttendanceCreate(ApiSchema):
    """Schema for submitting a check-in or check-out record."""

    user_id: str = PydanticField(min_length=1, max_length=64)
    status: AttendanceStatus = AttendanceStatus.PRESENT
    method: AttendanceMethod = AttendanceMethod.MANUAL
    location: Optional[GeoLocation] = None
    timestamp: datetime = PydanticField(default_factory=datetime.now)
    is_checkout: bool = False
    face_image: Optional[str] = PydanticField(default=None, max_length=1024)

    @property
    def date(self) -> str:
        return local_date(self.timestamp)


class BusinessHoursUpdate(ApiSchema):
    """Schema for setting the business hours window."""

    start_time: str = PydanticField(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    end_time: str = PydanticField(pattern=r"^([01]\d|2[0-3]):[0-5]\d$")

    @model_validator(mode="after")
    def start_before_end(self) -> "BusinessHoursUpdate":
        if self.start_time >= self.end_time:
            raise ValueError("startTime must be earlier than endTime")
        return self


# Response Schemas


class AttendancePublic(ApiSchema):
    """Schema for attendance responses."""

    id: str
    user_id: str
    user_name: str
    status: AttendanceStatus
    method: AttendanceMethod
    location: Optional[GeoLocation] = None
    timestamp: datetime
    date: str
    is_checkout: bool
    face_image: Optional[str] = None

    @classmethod
    def from_record(cls, record: AttendanceRecord) -> "AttendancePublic":
        location = None
        if record.latitude is not None and record.longitude is not None:
            location = GeoLocation(
                lat=record.latitude,
                lng=record.longitude,
                location_name=record.location_name,
            )
        return cls(
            id=record.id,
            user_id=record.user_id,
            user_name=record.user_name,
            status=record.status,
            method=record.method,
            location=location,
            timestamp=record.timestamp,
            date=record.date,
            is_checkout=record.is_checkout,
            face_image=record.face_image,
        )


class AttendanceSubmitResponse(ApiSchema):
    success: bool = True
    message: str
    record: AttendancePublic


class AttendanceTodayResponse(ApiSchema):
    """Today's check-in / check-out state for one user."""

    user_id: str
    date: str
    has_checked_in: bool
    has_checked_out: bool
    check_in: Optional[AttendancePublic] = None
    check_out: Optional[AttendancePublic] = None


class BusinessHoursPublic(ApiSchema):
    start_time: str
    end_time: str


class BusinessHoursResponse(ApiSchema):
    success: bool = True
    message: Optional[str] = None
    data: Optional[BusinessHoursPublic] = None


# Dashboard Schemas


class AttendanceTrendPoint(ApiSchema):
    date: str
    on_time_percentage: float
    late_percentage: float


class RecentCheckIn(ApiSchema):
    user_id: str
    user_name: str
    timestamp: datetime
    status: AttendanceStatus
    location_name: Optional[str] = None


class DashboardStats(ApiSchema):
    """Aggregated attendance figures for a date range."""

    start_date: str
    end_date: str
    total_employees: int
    new_employees_today: int
    on_time_count: int
    late_arrivals: int
    early_departures: int
    attendance_trend: list[AttendanceTrendPoint] = []
    recent_check_ins: list[RecentCheckIn] = []
