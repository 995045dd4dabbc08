from typing import Annotated, Optional

from fastapi import APIRouter, Query

from app.api.dependencies import (
    AttendanceServiceDep,
    CurrentUserDep,
    StoreDep,
    parse_date_param,
)
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.core.security import ensure_self_or_admin
from app.models.attendance import (
    AttendanceCreate,
    AttendancePublic,
    AttendanceSubmitResponse,
    AttendanceTodayResponse,
)

logger = get_logger(__name__)

# Create router with prefix and tags for better organization
router = APIRouter(
    prefix="/attendance",
    tags=["attendance"],
    responses={404: {"description": "Attendance record not found"}},
)

MAX_PAGE_SIZE = 100


@router.post("", response_model=AttendanceSubmitResponse, status_code=201)
async def submit_attendance(
    request: AttendanceCreate,
    service: AttendanceServiceDep,
    current_user: CurrentUserDep,
) -> AttendanceSubmitResponse:
    """
    Submit a check-in or check-out record.

    **RBAC:** Employees can only submit for themselves, admins for anyone.

    The day of the record is the local calendar date of its timestamp. A
    check-in is rejected when the user already checked in that day; a
    check-out is rejected when there is no check-in that day or the user
    already checked out.

    Args:
        request: Record payload with user id, status, method, location,
            timestamp, check-out flag and optional face image URL
        service: Attendance service (injected)
        current_user: Current authenticated user

    Returns:
        The stored record and a confirmation message

    Raises:
        PermissionDenied: 403 if submitting for another user
        NotFoundError: 404 if the user does not exist
        NotCheckedIn: 404 if a check-out has no same-day check-in
        AlreadyCheckedIn / AlreadyCheckedOut: 409 on duplicates
        StoreUnavailable: 503 if the record could not be written
    """
    ensure_self_or_admin(current_user, request.user_id, "submit attendance")

    record = service.submit(request)
    kind = "Check-out" if record.is_checkout else "Check-in"
    logger.info(f"{kind} recorded for user {record.user_id} at {record.timestamp}")
    return AttendanceSubmitResponse(
        success=True,
        message=f"{kind} recorded as {record.status}",
        record=AttendancePublic.from_record(record),
    )


@router.get("", response_model=list[AttendancePublic])
async def list_attendance(
    store: StoreDep,
    current_user: CurrentUserDep,
    user_id: Annotated[Optional[str], Query(alias="userId")] = None,
    start_date: Annotated[Optional[str], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[str], Query(alias="endDate")] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = MAX_PAGE_SIZE,
) -> list[AttendancePublic]:
    """
    List attendance records, newest first.

    **RBAC:** Employees only ever see their own records; admins may filter
    by any user or list everyone.

    Args:
        store: Record store (injected)
        current_user: Current authenticated user
        user_id: Only records of this user
        start_date: First day to include (YYYY-MM-DD)
        end_date: Last day to include (YYYY-MM-DD)
        offset: Number of records to skip
        limit: Maximum number of records to return

    Returns:
        Matching records ordered by timestamp, newest first

    Raises:
        PermissionDenied: 403 if an employee asks for another user's records
        ValidationError: 400 if a date is not in YYYY-MM-DD format
    """
    if not current_user.is_admin:
        if user_id and user_id != current_user.sub:
            ensure_self_or_admin(current_user, user_id, "view attendance")
        user_id = current_user.sub

    records = store.list_records(
        user_id=user_id,
        start_date=parse_date_param(start_date, "startDate"),
        end_date=parse_date_param(end_date, "endDate"),
        offset=offset,
        limit=limit,
    )
    logger.info(
        f"User {current_user.email} fetched {len(records)} attendance record(s)"
    )
    return [AttendancePublic.from_record(r) for r in records]


@router.get("/me/history", response_model=list[AttendancePublic])
async def get_my_attendance_history(
    store: StoreDep,
    current_user: CurrentUserDep,
    start_date: Annotated[Optional[str], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[str], Query(alias="endDate")] = None,
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = MAX_PAGE_SIZE,
) -> list[AttendancePublic]:
    """
    Attendance history of the authenticated user.

    Args:
        store: Record store (injected)
        current_user: Current authenticated user
        start_date: First day to include (YYYY-MM-DD)
        end_date: Last day to include (YYYY-MM-DD)
        offset: Number of records to skip
        limit: Maximum number of records to return

    Returns:
        The user's records, newest first
    """
    records = store.list_records(
        user_id=current_user.sub,
        start_date=parse_date_param(start_date, "startDate"),
        end_date=parse_date_param(end_date, "endDate"),
        offset=offset,
        limit=limit,
    )
    return [AttendancePublic.from_record(r) for r in records]


@router.get("/today/{user_id}", response_model=AttendanceTodayResponse)
async def get_today_status(
    user_id: str,
    service: AttendanceServiceDep,
    current_user: CurrentUserDep,
    day: Annotated[Optional[str], Query(alias="date")] = None,
) -> AttendanceTodayResponse:
    """
    Whether the user has checked in and out on a day.

    **RBAC:** Employees can only query themselves, admins anyone.

    Args:
        user_id: User to report on
        service: Attendance service (injected)
        current_user: Current authenticated user
        day: Calendar day (YYYY-MM-DD), defaults to today

    Returns:
        Check-in and check-out flags with the records themselves

    Raises:
        PermissionDenied: 403 if an employee asks about another user
        ValidationError: 400 if the date is malformed
    """
    ensure_self_or_admin(current_user, user_id, "view attendance")
    return service.today_status(user_id, parse_date_param(day, "date"))


@router.get("/{attendance_id}", response_model=AttendancePublic)
async def get_attendance(
    attendance_id: str,
    store: StoreDep,
    current_user: CurrentUserDep,
) -> AttendancePublic:
    """
    Get a specific attendance record by ID.

    **RBAC:** Employees can view their own records, admins any record.

    Args:
        attendance_id: Record ID
        store: Record store (injected)
        current_user: Current authenticated user

    Returns:
        The attendance record

    Raises:
        NotFoundError: 404 if the record does not exist
        PermissionDenied: 403 if the record belongs to another user
    """
    record = store.get_record(attendance_id)
    if not record:
        logger.warning(f"Attendance record with ID {attendance_id} not found")
        raise NotFoundError("Attendance record not found")
    ensure_self_or_admin(current_user, record.user_id, "view attendance")
    return AttendancePublic.from_record(record)
