"""Domain error codes for the scheduling module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    INSTANCE_NOT_FOUND = "INSTANCE_NOT_FOUND"
    TIMESLOT_NOT_FOUND = "TIMESLOT_NOT_FOUND"
    INVALID_ID = "INVALID_ID"
    INVALID_TIMEZONE = "INVALID_TIMEZONE"
    RECURRENCE_BOUNDARY_REQUIRED = "RECURRENCE_BOUNDARY_REQUIRED"
    TEMPLATE_INACTIVE = "TEMPLATE_INACTIVE"
    STATUS_NOT_JOINABLE = "STATUS_NOT_JOINABLE"
    TIMESLOT_FULL = "TIMESLOT_FULL"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class TemplateNotFoundError(DomainError):
    """Raised when a session template is not found."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.TEMPLATE_NOT_FOUND,
            message="Session template not found",
        )


class InstanceNotFoundError(DomainError):
    """Raised when a session instance is not found."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INSTANCE_NOT_FOUND,
            message="Session not found",
        )


class TimeslotNotFoundError(DomainError):
    """Raised when a timeslot id does not belong to the session instance."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.TIMESLOT_NOT_FOUND,
            message="Invalid timeslot ID provided",
        )


class InvalidIdError(DomainError):
    """Raised when an identifier is malformed."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message="Invalid ID format",
        )


class InvalidTimezoneError(DomainError):
    """Raised when a location carries an unknown IANA timezone."""

    def __init__(self, timezone: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_TIMEZONE,
            message=f"Invalid time zone specified: {timezone}",
        )


class RecurrenceBoundaryRequiredError(DomainError):
    """Raised when a schedule lacks the dates its recurrence needs."""

    def __init__(self, recurrence: str) -> None:
        if recurrence == "one_time":
            message = "Date is required for one-time sessions"
        else:
            message = "Start date and end date are required for recurring sessions"
        super().__init__(
            code=ErrorCode.RECURRENCE_BOUNDARY_REQUIRED,
            message=message,
        )


class TemplateInactiveError(DomainError):
    """Raised when generating instances for a deactivated template."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.TEMPLATE_INACTIVE,
            message="Unable to generate sessions due to inactive status",
        )


class StatusNotJoinableError(DomainError):
    """Raised when joining or leaving a session that has already started."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.STATUS_NOT_JOINABLE,
            message="Cannot join or leave a session that has already started",
        )


class TimeslotFullError(DomainError):
    """Raised when both the timeslot and its waitlist are full."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.TIMESLOT_FULL,
            message="This timeslot is full and waitlist is also full",
        )


class InvalidStatusTransitionError(DomainError):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_STATUS_TRANSITION,
            message=f"Cannot change session status from {current} to {target}",
        )
