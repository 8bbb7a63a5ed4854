"""
Outcomes of the duty booking rules.

Every refusal is a DutyError subclass carrying a user-facing message, a stable
code and the HTTP status the API answers with.
"""


class DutyError(Exception):
    """Base class for recoverable, user-facing duty errors."""

    status_code = 400
    code = "DUTY_ERROR"

    def __init__(self, message: str, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": self.code}
        body.update(self.details)
        return body


class ValidationError(DutyError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(DutyError):
    status_code = 404
    code = "NOT_FOUND"


class CapacityExceededError(DutyError):
    status_code = 409
    code = "CAPACITY_EXCEEDED"

    def __init__(self, current: int, maximum: int):
        super().__init__(
            f"This duty is already full ({current}/{maximum} students assigned).",
            details={"current": current, "max": maximum},
        )


class DuplicateBookingError(DutyError):
    status_code = 409
    code = "DUPLICATE_BOOKING"


class ConflictingDateBookingError(DutyError):
    status_code = 409
    code = "CONFLICTING_DATE_BOOKING"


class SameDayRebookBlockedError(DutyError):
    status_code = 409
    code = "SAME_DAY_REBOOK_BLOCKED"


class SameDayCancelForbiddenError(DutyError):
    status_code = 403
    code = "SAME_DAY_CANCEL_FORBIDDEN"


class UnauthorizedError(DutyError):
    status_code = 403
    code = "UNAUTHORIZED"


class InvalidStateTransitionError(DutyError):
    status_code = 409
    code = "INVALID_STATE_TRANSITION"


class ScheduleConflictError(DutyError):
    status_code = 409
    code = "SCHEDULE_CONFLICT"


class AuthenticationRequiredError(DutyError):
    status_code = 401
    code = "AUTHENTICATION_REQUIRED"

    def __init__(self, message: str = "Authentication required", details=None):
        super().__init__(message, details)
