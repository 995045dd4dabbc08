"""
Record Store Gateway.

Translates attendance and user operations into queries and writes against
the database. Connection and write failures surface as ``StoreUnavailable``;
violations of the one-check-in / one-check-out per day constraint surface as
``AlreadyCheckedIn`` / ``AlreadyCheckedOut`` so a lost race between two
clients is reported exactly like a duplicate caught by the pre-check.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from app.core.config import settings
from app.core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    StoreUnavailable,
    UserExists,
)
from app.core.logging import get_logger
from app.models.attendance import (
    AttendanceRecord,
    AttendanceStatus,
    AttendanceTrendPoint,
    BusinessHours,
    DashboardStats,
    RecentCheckIn,
)
from app.models.user import User

logger = get_logger(__name__)

RECENT_CHECK_INS_LIMIT = 5


class RecordStoreGateway:
    """Data access for attendance records, users and business hours."""

    def __init__(self, session: Session):
        self.session = session

    # Attendance records

    def _find_for_day(
        self, user_id: str, day: Optional[str], is_checkout: bool
    ) -> Optional[AttendanceRecord]:
        day = day or date.today().isoformat()
        statement = select(AttendanceRecord).where(
            (AttendanceRecord.user_id == user_id)
            & (AttendanceRecord.date == day)
            & (AttendanceRecord.is_checkout == is_checkout)
        )
        try:
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to query attendance for user {user_id}: {e}")
            raise StoreUnavailable()

    def find_open_check_in_for_today(
        self, user_id: str, day: Optional[str] = None
    ) -> Optional[AttendanceRecord]:
        """Return the user's check-in record for ``day`` (default: today)."""
        return self._find_for_day(user_id, day, is_checkout=False)

    def find_check_out_for_today(
        self, user_id: str, day: Optional[str] = None
    ) -> Optional[AttendanceRecord]:
        """Return the user's check-out record for ``day`` (default: today)."""
        return self._find_for_day(user_id, day, is_checkout=True)

    def get_record(self, record_id: str) -> Optional[AttendanceRecord]:
        try:
            return self.session.get(AttendanceRecord, record_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch attendance record {record_id}: {e}")
            raise StoreUnavailable()

    def insert_record(self, record: AttendanceRecord) -> AttendanceRecord:
        """
        Persist a new attendance record.

        Raises:
            AlreadyCheckedIn / AlreadyCheckedOut: if the day already holds a
                record of the same kind for this user
            StoreUnavailable: on any other database failure
        """
        try:
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        except IntegrityError:
            self.session.rollback()
            logger.warning(
                f"Duplicate {'check-out' if record.is_checkout else 'check-in'} "
                f"rejected by store for user {record.user_id} on {record.date}"
            )
            if record.is_checkout:
                raise AlreadyCheckedOut()
            raise AlreadyCheckedIn()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to insert attendance record: {e}")
            raise StoreUnavailable()

        logger.info(f"Stored attendance record {record.id} for user {record.user_id}")
        return record

    def list_records(
        self,
        user_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        offset: int = 0,
        limit: int = 100,
        ascending: bool = False,
    ) -> list[AttendanceRecord]:
        """List records, newest first unless ``ascending`` is set."""
        statement = select(AttendanceRecord)
        if user_id:
            statement = statement.where(AttendanceRecord.user_id == user_id)
        if start_date:
            statement = statement.where(AttendanceRecord.date >= start_date)
        if end_date:
            statement = statement.where(AttendanceRecord.date <= end_date)

        order = col(AttendanceRecord.timestamp)
        statement = statement.order_by(order.asc() if ascending else order.desc())
        statement = statement.offset(offset).limit(limit)
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to list attendance records: {e}")
            raise StoreUnavailable()

    # Users

    def get_user(self, user_id: str) -> Optional[User]:
        try:
            return self.session.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch user {user_id}: {e}")
            raise StoreUnavailable()

    def get_user_by_email(self, email: str) -> Optional[User]:
        statement = select(User).where(User.email == email.strip().lower())
        try:
            return self.session.exec(statement).first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up user by email: {e}")
            raise StoreUnavailable()

    def insert_user(self, user: User) -> User:
        try:
            self.session.add(user)
            self.session.commit()
            self.session.refresh(user)
        except IntegrityError:
            self.session.rollback()
            raise UserExists()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to insert user: {e}")
            raise StoreUnavailable()
        return user

    def save_user(self, user: User) -> User:
        user.updated_at = datetime.now()
        try:
            self.session.add(user)
            self.session.commit()
            self.session.refresh(user)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to update user {user.id}: {e}")
            raise StoreUnavailable()
        return user

    def count_users(self, created_on: Optional[str] = None) -> int:
        statement = select(func.count()).select_from(User)
        if created_on:
            day = date.fromisoformat(created_on)
            statement = statement.where(
                (User.created_at >= datetime.combine(day, datetime.min.time()))
                & (
                    User.created_at
                    < datetime.combine(day + timedelta(days=1), datetime.min.time())
                )
            )
        try:
            return self.session.exec(statement).one()
        except SQLAlchemyError as e:
            logger.error(f"Failed to count users: {e}")
            raise StoreUnavailable()

    # Business hours

    def get_business_hours(self) -> Optional[BusinessHours]:
        try:
            return self.session.get(BusinessHours, 1)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read business hours: {e}")
            raise StoreUnavailable()

    def save_business_hours(
        self, start_time: str, end_time: str, updated_by: Optional[str] = None
    ) -> BusinessHours:
        hours = self.get_business_hours() or BusinessHours(
            id=1, start_time=start_time, end_time=end_time
        )
        hours.start_time = start_time
        hours.end_time = end_time
        hours.updated_by = updated_by
        hours.updated_at = datetime.now()
        try:
            self.session.add(hours)
            self.session.commit()
            self.session.refresh(hours)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Failed to save business hours: {e}")
            raise StoreUnavailable()
        return hours

    # Dashboard

    def compute_dashboard_aggregates(
        self,
        start_date: str,
        end_date: str,
        business_hours: Optional[BusinessHours] = None,
    ) -> DashboardStats:
        """
        Derive dashboard figures from the records stored in a date range.

        A check-in counts as late when it was reported as late or happened
        after the business start time; absent check-ins are neither on time
        nor late. A check-out before the business end time is an early
        departure.
        """
        hours = business_hours or self.get_business_hours()
        start_time = hours.start_time if hours else settings.DEFAULT_BUSINESS_START
        end_time = hours.end_time if hours else settings.DEFAULT_BUSINESS_END

        statement = (
            select(AttendanceRecord)
            .where(
                (AttendanceRecord.date >= start_date)
                & (AttendanceRecord.date <= end_date)
            )
            .order_by(col(AttendanceRecord.timestamp).desc())
        )
        try:
            records = list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to load records for dashboard: {e}")
            raise StoreUnavailable()

        check_ins = [r for r in records if not r.is_checkout]
        check_outs = [r for r in records if r.is_checkout]

        per_day: dict[str, dict[str, int]] = defaultdict(
            lambda: {"total": 0, "on_time": 0, "late": 0}
        )
        on_time_count = 0
        late_count = 0
        for record in check_ins:
            day = per_day[record.date]
            day["total"] += 1
            if record.status == AttendanceStatus.ABSENT.value:
                continue
            if _is_late(record, start_time):
                late_count += 1
                day["late"] += 1
            else:
                on_time_count += 1
                day["on_time"] += 1

        early_departures = sum(
            1 for r in check_outs if r.timestamp.strftime("%H:%M") < end_time
        )

        trend = [
            AttendanceTrendPoint(
                date=day,
                on_time_percentage=round(100 * counts["on_time"] / counts["total"], 2),
                late_percentage=round(100 * counts["late"] / counts["total"], 2),
            )
            for day, counts in sorted(per_day.items())
        ]

        recent = [
            RecentCheckIn(
                user_id=r.user_id,
                user_name=r.user_name,
                timestamp=r.timestamp,
                status=r.status,
                location_name=r.location_name,
            )
            for r in check_ins[:RECENT_CHECK_INS_LIMIT]
        ]

        stats = DashboardStats(
            start_date=start_date,
            end_date=end_date,
            total_employees=self.count_users(),
            new_employees_today=self.count_users(created_on=date.today().isoformat()),
            on_time_count=on_time_count,
            late_arrivals=late_count,
            early_departures=early_departures,
            attendance_trend=trend,
            recent_check_ins=recent,
        )
        logger.info(
            f"Dashboard {start_date}..{end_date}: {on_time_count} on time, "
            f"{late_count} late, {early_departures} early departures"
        )
        return stats


def _is_late(record: AttendanceRecord, start_time: str) -> bool:
    if record.status == AttendanceStatus.LATE.value:
        return True
    return record.timestamp.strftime("%H:%M") > start_time
