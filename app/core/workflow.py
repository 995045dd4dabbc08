"""
Attendance Workflow Engine.

Drives one check-in or check-out for one user-day:

    IDLE -> AWAITING_LOCATION -> AWAITING_CAPTURE (biometric) -> READY
         -> SUBMITTING -> COMPLETED

Any failing step moves the workflow to ERROR and re-raises. A new
``begin_*`` call (or ``reset()``) starts over from IDLE.
"""

from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Callable, Iterator, Optional, Protocol

from app.api.clients.attendance_api import RemoteRecordStore
from app.api.clients.geocoding import ReverseGeocoder, reverse_geocoder
from app.api.clients.image_upload import CloudinaryUploader, image_uploader
from app.core.devices import Coordinates, FaceCaptureProvider, LocationProvider
from app.core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    AttendanceAppError,
    CaptureFailed,
    LocationUnavailable,
    NotCheckedIn,
    StoreUnavailable,
    UploadFailed,
    WorkflowStateError,
)
from app.core.logging import get_logger
from app.core.session_manager import SessionManager
from app.models.attendance import (
    AttendanceCreate,
    AttendanceMethod,
    AttendancePublic,
    AttendanceStatus,
    GeoLocation,
    local_date,
)
from app.models.user import UserPublic

logger = get_logger(__name__)


class WorkflowState(str, Enum):
    IDLE = "idle"
    AWAITING_LOCATION = "awaiting_location"
    AWAITING_CAPTURE = "awaiting_capture"
    READY = "ready"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    ERROR = "error"


RESTARTABLE_STATES = (WorkflowState.IDLE, WorkflowState.COMPLETED, WorkflowState.ERROR)


class AttendanceGateway(Protocol):
    async def find_open_check_in_for_today(
        self, user_id: str, day: Optional[str] = None
    ) -> Optional[AttendancePublic]: ...

    async def find_check_out_for_today(
        self, user_id: str, day: Optional[str] = None
    ) -> Optional[AttendancePublic]: ...

    async def insert_record(self, record: AttendanceCreate) -> AttendancePublic: ...


class AttendanceWorkflow:
    """State machine for a single attendance submission."""

    def __init__(
        self,
        gateway: AttendanceGateway,
        location_provider: LocationProvider,
        capture_provider: Optional[FaceCaptureProvider] = None,
        geocoder: Optional[ReverseGeocoder] = None,
        uploader: Optional[CloudinaryUploader] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.gateway = gateway
        self.location_provider = location_provider
        self.capture_provider = capture_provider
        self.geocoder = geocoder or reverse_geocoder
        self.uploader = uploader or image_uploader
        self.clock = clock

        self.state = WorkflowState.IDLE
        self.error: Optional[AttendanceAppError] = None
        self.record: Optional[AttendancePublic] = None
        self._user: Optional[UserPublic] = None
        self._method = AttendanceMethod.MANUAL
        self._is_checkout = False
        self._day: Optional[str] = None
        self._location: Optional[GeoLocation] = None
        self._face_image: Optional[str] = None

    @classmethod
    def for_session(
        cls,
        session: SessionManager,
        location_provider: LocationProvider,
        capture_provider: Optional[FaceCaptureProvider] = None,
        **kwargs,
    ) -> "AttendanceWorkflow":
        """Workflow that reads and writes records through the session's API."""
        gateway = RemoteRecordStore(session.api, session)
        return cls(gateway, location_provider, capture_provider, **kwargs)

    @property
    def day(self) -> Optional[str]:
        return self._day

    @property
    def location(self) -> Optional[GeoLocation]:
        return self._location

    def reset(self) -> None:
        self.state = WorkflowState.IDLE
        self.error = None
        self.record = None
        self._user = None
        self._method = AttendanceMethod.MANUAL
        self._is_checkout = False
        self._day = None
        self._location = None
        self._face_image = None

    def _expect(self, *states: WorkflowState) -> None:
        if self.state not in states:
            raise WorkflowStateError(
                f"Operation not allowed while workflow is {self.state.value}"
            )

    def _fail(self, error: AttendanceAppError) -> AttendanceAppError:
        self.state = WorkflowState.ERROR
        self.error = error
        logger.warning(f"Attendance workflow failed: {error.code} ({error.message})")
        return error

    @contextmanager
    def _step(self, fallback: type[AttendanceAppError]) -> Iterator[None]:
        """
        Run a step so that every failure ends in ERROR.

        Errors outside the service taxonomy are reported as ``fallback``.
        """
        try:
            yield
        except AttendanceAppError as e:
            raise self._fail(e)
        except Exception as e:
            logger.error(f"Unexpected {type(e).__name__} in attendance workflow: {e}")
            raise self._fail(fallback()) from e

    async def _begin(
        self, user: UserPublic, method: AttendanceMethod, is_checkout: bool
    ) -> None:
        self._expect(*RESTARTABLE_STATES)
        if method == AttendanceMethod.BIOMETRIC and self.capture_provider is None:
            raise WorkflowStateError("Biometric attendance needs a face capture device")

        self.reset()
        self._user = user
        self._method = method
        self._is_checkout = is_checkout
        self._day = local_date(self.clock())

        with self._step(StoreUnavailable):
            check_in = await self.gateway.find_open_check_in_for_today(user.id, self._day)
            if not is_checkout:
                if check_in is not None:
                    raise AlreadyCheckedIn()
            else:
                if check_in is None:
                    raise NotCheckedIn()
                check_out = await self.gateway.find_check_out_for_today(user.id, self._day)
                if check_out is not None:
                    raise AlreadyCheckedOut()

        self.state = WorkflowState.AWAITING_LOCATION
        action = "check-out" if is_checkout else "check-in"
        logger.info(f"Started {method.value} {action} for {user.id} on {self._day}")

    async def begin_check_in(
        self, user: UserPublic, method: AttendanceMethod = AttendanceMethod.MANUAL
    ) -> None:
        """
        Start a check-in.

        Raises:
            AlreadyCheckedIn: if the user already checked in today
            WorkflowStateError: if another submission is in progress
        """
        await self._begin(user, method, is_checkout=False)

    async def begin_check_out(
        self, user: UserPublic, method: AttendanceMethod = AttendanceMethod.MANUAL
    ) -> None:
        """
        Start a check-out.

        Raises:
            NotCheckedIn: if there is no check-in for today
            AlreadyCheckedOut: if the user already checked out today
            WorkflowStateError: if another submission is in progress
        """
        await self._begin(user, method, is_checkout=True)

    async def acquire_location(self) -> GeoLocation:
        """Read the device position and try to attach a place name."""
        self._expect(WorkflowState.AWAITING_LOCATION)
        with self._step(LocationUnavailable):
            position: Coordinates = await self.location_provider.get_position()
            location = GeoLocation(lat=position.lat, lng=position.lng)

        try:
            location_name = await self.geocoder.reverse(location.lat, location.lng)
        except Exception as e:
            logger.warning(f"Place name lookup failed, keeping coordinates only: {e}")
            location_name = None
        self._location = location.model_copy(update={"location_name": location_name})

        if self._method == AttendanceMethod.BIOMETRIC:
            self.state = WorkflowState.AWAITING_CAPTURE
        else:
            self.state = WorkflowState.READY
        return self._location

    async def capture_face(self) -> str:
        """Capture a frame and upload it. Returns the hosted image URL."""
        self._expect(WorkflowState.AWAITING_CAPTURE)
        with self._step(CaptureFailed):
            frame = await self.capture_provider.capture()
            if not frame:
                raise CaptureFailed()
        with self._step(UploadFailed):
            self._face_image = await self.uploader.upload(frame)

        self.state = WorkflowState.READY
        return self._face_image

    async def submit(
        self, status: AttendanceStatus = AttendanceStatus.PRESENT
    ) -> AttendancePublic:
        """
        Write the record through the gateway.

        A completed workflow is never resent; start a new one instead.
        """
        if self.state == WorkflowState.COMPLETED:
            raise WorkflowStateError("Attendance already submitted")
        self._expect(WorkflowState.READY)

        self.state = WorkflowState.SUBMITTING
        with self._step(StoreUnavailable):
            request = AttendanceCreate(
                user_id=self._user.id,
                status=status,
                method=self._method,
                location=self._location,
                timestamp=self.clock(),
                is_checkout=self._is_checkout,
                face_image=self._face_image,
            )
            self.record = await self.gateway.insert_record(request)

        self.state = WorkflowState.COMPLETED
        logger.info(f"Recorded {status.value} for {self._user.id} on {self.record.date}")
        return self.record

    async def check_in(
        self,
        user: UserPublic,
        method: AttendanceMethod = AttendanceMethod.MANUAL,
        status: AttendanceStatus = AttendanceStatus.PRESENT,
    ) -> AttendancePublic:
        """Run the whole check-in sequence."""
        await self.begin_check_in(user, method)
        return await self._finish(status)

    async def check_out(
        self,
        user: UserPublic,
        method: AttendanceMethod = AttendanceMethod.MANUAL,
        status: AttendanceStatus = AttendanceStatus.PRESENT,
    ) -> AttendancePublic:
        """Run the whole check-out sequence."""
        await self.begin_check_out(user, method)
        return await self._finish(status)

    async def _finish(self, status: AttendanceStatus) -> AttendancePublic:
        await self.acquire_location()
        if self.state == WorkflowState.AWAITING_CAPTURE:
            await self.capture_face()
        return await self.submit(status)
