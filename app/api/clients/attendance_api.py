"""
Outline
AttendanceApiClient: register(), login(), validate_token(), refresh_token(),
    update_password(), get_profile(), update_profile(), submit_attendance(),
    get_today_status(), get_history(), get_dashboard_stats(),
    get_business_hours(), set_business_hours()
RemoteRecordStore: the record store contract over the HTTP API
"""

from typing import TYPE_CHECKING, Any, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import (
    AttendanceAppError,
    AuthError,
    StoreUnavailable,
    error_from_code,
)
from app.core.logging import get_logger
from app.models.attendance import (
    AttendanceCreate,
    AttendancePublic,
    AttendanceSubmitResponse,
    AttendanceTodayResponse,
    BusinessHoursResponse,
    DashboardStats,
)
from app.models.user import (
    LoginResponse,
    RegisterResponse,
    TokenValidationResponse,
    UserPublic,
)

if TYPE_CHECKING:
    from app.core.session_manager import SessionManager

logger = get_logger(__name__)

API_PREFIX = "/api/v1"


def _error_from_response(response: httpx.Response) -> AttendanceAppError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    code = body.get("code") if isinstance(body, dict) else None
    message = body.get("error") if isinstance(body, dict) else None
    if code is None and response.status_code == 401:
        return AuthError(message)
    return error_from_code(code, message)


class AttendanceApiClient:
    """
    Client for the Attendance Tracker HTTP API.
    Translates error responses back into the service's exception classes.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Base URL of the attendance service
            timeout: Request timeout in seconds
            client: Shared HTTP client; a short-lived one is opened per call
                when omitted
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        **kwargs: Any,
    ) -> Any:
        url = f"{self.base_url}{API_PREFIX}{path}"
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            if self._client is not None:
                response = await self._client.request(
                    method, url, headers=headers, timeout=self.timeout, **kwargs
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Network error calling {method} {path}: {str(e)}")
            raise StoreUnavailable("Network error occurred, please retry")

        if response.is_error:
            error = _error_from_response(response)
            logger.warning(
                f"{method} {path} failed (status: {response.status_code}, code: {error.code})"
            )
            raise error

        try:
            return response.json()
        except ValueError:
            logger.error(f"{method} {path} returned a non-JSON body")
            raise StoreUnavailable("Invalid response from the attendance service")

    # Authentication

    async def register(
        self, email: str, password: str, name: Optional[str] = None
    ) -> UserPublic:
        payload = {"email": email, "password": password}
        if name:
            payload["name"] = name
        data = await self._request("POST", "/register", json=payload)
        return RegisterResponse.model_validate(data).user

    async def login(self, email: str, password: str) -> LoginResponse:
        data = await self._request(
            "POST", "/login", json={"email": email, "password": password}
        )
        return LoginResponse.model_validate(data)

    async def validate_token(self, token: str) -> UserPublic:
        data = await self._request("GET", "/validate-token", token=token)
        return TokenValidationResponse.model_validate(data).user

    async def refresh_token(self, token: str) -> LoginResponse:
        data = await self._request("POST", "/refresh-token", token=token)
        return LoginResponse.model_validate(data)

    async def update_password(
        self, token: str, current_password: str, new_password: str
    ) -> None:
        await self._request(
            "POST",
            "/update-password",
            token=token,
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    # Profile

    async def get_profile(self, token: str) -> UserPublic:
        data = await self._request("GET", "/users/me", token=token)
        return UserPublic.model_validate(data)

    async def update_profile(self, token: str, **changes: Any) -> UserPublic:
        body = {key: value for key, value in changes.items() if value is not None}
        data = await self._request("PUT", "/users/me", token=token, json=body)
        return UserPublic.model_validate(data)

    # Attendance

    async def submit_attendance(
        self, token: str, record: AttendanceCreate
    ) -> AttendancePublic:
        data = await self._request(
            "POST",
            "/attendance",
            token=token,
            json=record.model_dump(mode="json", by_alias=True),
        )
        return AttendanceSubmitResponse.model_validate(data).record

    async def get_today_status(
        self, token: str, user_id: str, day: Optional[str] = None
    ) -> AttendanceTodayResponse:
        params = {"date": day} if day else None
        data = await self._request(
            "GET", f"/attendance/today/{user_id}", token=token, params=params
        )
        return AttendanceTodayResponse.model_validate(data)

    async def get_history(
        self,
        token: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> list[AttendancePublic]:
        params = {
            key: value
            for key, value in (
                ("startDate", start_date),
                ("endDate", end_date),
                ("userId", user_id),
            )
            if value
        }
        data = await self._request("GET", "/attendance", token=token, params=params)
        return [AttendancePublic.model_validate(item) for item in data]

    async def get_dashboard_stats(
        self,
        token: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> DashboardStats:
        params = {
            key: value
            for key, value in (("startDate", start_date), ("endDate", end_date))
            if value
        }
        data = await self._request("GET", "/stats/dashboard", token=token, params=params)
        return DashboardStats.model_validate(data)

    # Business hours

    async def get_business_hours(self, token: str) -> BusinessHoursResponse:
        data = await self._request("GET", "/business-hours", token=token)
        return BusinessHoursResponse.model_validate(data)

    async def set_business_hours(
        self, token: str, start_time: str, end_time: str
    ) -> BusinessHoursResponse:
        data = await self._request(
            "PUT",
            "/business-hours",
            token=token,
            json={"startTime": start_time, "endTime": end_time},
        )
        return BusinessHoursResponse.model_validate(data)


class RemoteRecordStore:
    """
    Record store reads and writes performed through the HTTP API with the
    session's token. Authentication failures end the session.
    """

    def __init__(self, api: AttendanceApiClient, session: "SessionManager"):
        self.api = api
        self.session = session

    async def _today(self, user_id: str, day: Optional[str]) -> AttendanceTodayResponse:
        try:
            return await self.api.get_today_status(
                self.session.require_token(), user_id, day
            )
        except AuthError:
            self.session.logout()
            raise

    async def find_open_check_in_for_today(
        self, user_id: str, day: Optional[str] = None
    ) -> Optional[AttendancePublic]:
        return (await self._today(user_id, day)).check_in

    async def find_check_out_for_today(
        self, user_id: str, day: Optional[str] = None
    ) -> Optional[AttendancePublic]:
        return (await self._today(user_id, day)).check_out

    async def insert_record(self, record: AttendanceCreate) -> AttendancePublic:
        try:
            return await self.api.submit_attendance(self.session.require_token(), record)
        except AuthError:
            self.session.logout()
            raise


# Create a default instance
# URL should be set via environment variable: API_BASE_URL
attendance_api = AttendanceApiClient(
    base_url=settings.API_BASE_URL, timeout=settings.HTTP_TIMEOUT_SECONDS
)
