from fastapi import APIRouter

from app.api.dependencies import AdminUserDep, CurrentUserDep, StoreDep
from app.core.logging import get_logger
from app.models.attendance import (
    BusinessHoursPublic,
    BusinessHoursResponse,
    BusinessHoursUpdate,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/business-hours", tags=["business-hours"])


@router.get("", response_model=BusinessHoursResponse)
async def get_business_hours(
    store: StoreDep, current_user: CurrentUserDep
) -> BusinessHoursResponse:
    """
    Organization-wide check-in window.

    Args:
        store: Record store (injected)
        current_user: Current authenticated user

    Returns:
        The configured window; ``data`` is null until an admin sets one
    """
    hours = store.get_business_hours()
    if not hours:
        return BusinessHoursResponse(message="No business hours set yet")
    return BusinessHoursResponse(
        data=BusinessHoursPublic(start_time=hours.start_time, end_time=hours.end_time)
    )


@router.put("", response_model=BusinessHoursResponse)
async def update_business_hours(
    request: BusinessHoursUpdate,
    store: StoreDep,
    current_user: AdminUserDep,
) -> BusinessHoursResponse:
    """
    Set the organization-wide check-in window.

    **RBAC:** Admins only.

    Args:
        request: Start and end time (HH:MM), start before end
        store: Record store (injected)
        current_user: Current authenticated admin

    Returns:
        The saved window

    Raises:
        PermissionDenied: 403 for non-admins
        ValidationError: 400 for malformed or inverted times
    """
    hours = store.save_business_hours(
        request.start_time, request.end_time, updated_by=current_user.sub
    )
    logger.info(
        f"Business hours set to {hours.start_time}-{hours.end_time} by {current_user.email}"
    )
    return BusinessHoursResponse(
        message="Business hours updated successfully",
        data=BusinessHoursPublic(start_time=hours.start_time, end_time=hours.end_time),
    )
