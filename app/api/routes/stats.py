from datetime import date, timedelta
from typing import Annotated, Optional

from fastapi import APIRouter, Query

from app.api.dependencies import AdminUserDep, StoreDep, parse_date_param
from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.models.attendance import DashboardStats

logger = get_logger(__name__)

router = APIRouter(prefix="/stats", tags=["stats"])

DEFAULT_TREND_DAYS = 7


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard_stats(
    store: StoreDep,
    current_user: AdminUserDep,
    start_date: Annotated[Optional[str], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[str], Query(alias="endDate")] = None,
) -> DashboardStats:
    """
    Aggregated attendance figures for a date range.

    **RBAC:** Admins only.

    Args:
        store: Record store (injected)
        current_user: Current authenticated admin
        start_date: First day (YYYY-MM-DD), defaults to six days before end_date
        end_date: Last day (YYYY-MM-DD), defaults to today

    Returns:
        Employee counts, on-time / late / early-departure counts, the
        per-day trend and the most recent check-ins

    Raises:
        PermissionDenied: 403 for non-admins
        ValidationError: 400 if a date is malformed or the range is inverted
    """
    end = parse_date_param(end_date, "endDate") or date.today().isoformat()
    start = parse_date_param(start_date, "startDate") or (
        date.fromisoformat(end) - timedelta(days=DEFAULT_TREND_DAYS - 1)
    ).isoformat()
    if start > end:
        raise ValidationError("startDate must not be after endDate")

    logger.info(f"Admin {current_user.email} accessed dashboard for {start}..{end}")
    return store.compute_dashboard_aggregates(start, end)
