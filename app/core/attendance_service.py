"""
Server-side attendance submission.

Re-validates the check-in / check-out ordering rules before writing, so the
API never relies on the client having done so. The record store's unique
constraint remains the final guard against concurrent submissions.
"""

from datetime import date
from typing import Optional

from app.core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    NotCheckedIn,
    NotFoundError,
)
from app.core.logging import get_logger
from app.core.record_store import RecordStoreGateway
from app.models.attendance import (
    AttendanceCreate,
    AttendancePublic,
    AttendanceRecord,
    AttendanceTodayResponse,
    to_local_naive,
)

logger = get_logger(__name__)


class AttendanceService:
    def __init__(self, store: RecordStoreGateway):
        self.store = store

    def today_status(
        self, user_id: str, day: Optional[str] = None
    ) -> AttendanceTodayResponse:
        day = day or date.today().isoformat()
        check_in = self.store.find_open_check_in_for_today(user_id, day)
        check_out = self.store.find_check_out_for_today(user_id, day)
        return AttendanceTodayResponse(
            user_id=user_id,
            date=day,
            has_checked_in=check_in is not None,
            has_checked_out=check_out is not None,
            check_in=AttendancePublic.from_record(check_in) if check_in else None,
            check_out=AttendancePublic.from_record(check_out) if check_out else None,
        )

    def submit(self, request: AttendanceCreate) -> AttendanceRecord:
        """
        Validate and store a check-in or check-out.

        Raises:
            NotFoundError: if the user does not exist
            AlreadyCheckedIn: if a check-in exists for the record's day
            NotCheckedIn: if a check-out has no same-day check-in
            AlreadyCheckedOut: if a check-out exists for the record's day
            StoreUnavailable: if the store cannot be reached
        """
        user = self.store.get_user(request.user_id)
        if not user:
            raise NotFoundError(f"User {request.user_id} not found")

        timestamp = to_local_naive(request.timestamp)
        day = request.date
        kind = "check-out" if request.is_checkout else "check-in"
        logger.info(f"Submitting {kind} for user {user.id} on {day}")

        if request.is_checkout:
            if not self.store.find_open_check_in_for_today(user.id, day):
                logger.warning(f"Check-out without check-in for user {user.id} on {day}")
                raise NotCheckedIn()
            if self.store.find_check_out_for_today(user.id, day):
                logger.warning(f"Repeated check-out for user {user.id} on {day}")
                raise AlreadyCheckedOut()
        elif self.store.find_open_check_in_for_today(user.id, day):
            logger.warning(f"Repeated check-in for user {user.id} on {day}")
            raise AlreadyCheckedIn()

        location = request.location
        record = AttendanceRecord(
            user_id=user.id,
            user_name=user.name,
            status=request.status.value,
            method=request.method.value,
            timestamp=timestamp,
            date=day,
            is_checkout=request.is_checkout,
            latitude=location.lat if location else None,
            longitude=location.lng if location else None,
            location_name=location.location_name if location else None,
            face_image=request.face_image,
        )
        return self.store.insert_record(record)
