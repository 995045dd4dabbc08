"""
Error taxonomy for the Attendance Tracker Service.

Every error carries the HTTP status it maps to and a stable code. The API
renders them as ``{"error": <message>, "code": <code>}`` and the client SDK
turns such responses back into the same classes by code.
"""


class AttendanceAppError(Exception):
    """Base class for all service errors."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AttendanceAppError):
    """Malformed or missing input."""

    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


# Authentication


class AuthError(AttendanceAppError):
    status_code = 401
    code = "auth_error"
    default_message = "Authentication required"


class InvalidCredentials(AuthError):
    code = "invalid_credentials"
    default_message = "Invalid credentials"


class InvalidToken(AuthError):
    code = "invalid_token"
    default_message = "Invalid or expired token"


class PermissionDenied(AttendanceAppError):
    status_code = 403
    code = "permission_denied"
    default_message = "You are not allowed to perform this action"


# Conflicts


class ConflictError(AttendanceAppError):
    status_code = 409
    code = "conflict"
    default_message = "Conflicting request"


class UserExists(ConflictError):
    code = "user_exists"
    default_message = "Email already in use"


class AlreadyCheckedIn(ConflictError):
    code = "already_checked_in"
    default_message = "You have already checked in today"


class AlreadyCheckedOut(ConflictError):
    code = "already_checked_out"
    default_message = "You have already checked out today"


# Missing resources


class NotFoundError(AttendanceAppError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class NotCheckedIn(NotFoundError):
    code = "not_checked_in"
    default_message = "No check-in record found for today. Please check in first."


# Third-party services and devices


class ExternalServiceError(AttendanceAppError):
    status_code = 502
    code = "external_service_error"
    default_message = "External service failed"


class LocationDenied(ExternalServiceError):
    code = "location_denied"
    default_message = "Location permission denied"


class LocationUnavailable(ExternalServiceError):
    code = "location_unavailable"
    default_message = "Could not get your location"


class CaptureFailed(ExternalServiceError):
    code = "capture_failed"
    default_message = "No usable face image was captured"


class UploadFailed(ExternalServiceError):
    code = "upload_failed"
    default_message = "Image upload failed"


# Storage


class StoreError(AttendanceAppError):
    status_code = 503
    code = "store_error"
    default_message = "Service temporarily unavailable, please retry"


class StoreUnavailable(StoreError):
    code = "store_unavailable"


# Client-side workflow misuse


class WorkflowStateError(AttendanceAppError):
    status_code = 400
    code = "workflow_state_error"
    default_message = "Operation not allowed in the current workflow state"


def _all_subclasses(cls: type) -> list[type]:
    found = []
    for sub in cls.__subclasses__():
        found.append(sub)
        found.extend(_all_subclasses(sub))
    return found


ERRORS_BY_CODE: dict[str, type[AttendanceAppError]] = {
    cls.code: cls for cls in [AttendanceAppError, *_all_subclasses(AttendanceAppError)]
}


def error_from_code(code: str | None, message: str | None = None) -> AttendanceAppError:
    """Build the exception matching an API error code."""
    error_cls = ERRORS_BY_CODE.get(code or "", AttendanceAppError)
    return error_cls(message)
