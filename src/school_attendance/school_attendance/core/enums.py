from __future__ import annotations

from enum import Enum

from .exceptions import ValidationError


def _normalized(value, what: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"Unknown {what}: {value!r}")
    return value.strip().lower()


class Role(str, Enum):
    """Role of the acting user, used for permission checks."""

    ADMIN = "admin"
    TEACHER = "teacher"


class AttendanceMode(str, Enum):
    """Granularity at which a batch records attendance."""

    DAILY = "daily"
    PERIOD = "period"
    SESSION = "session"

    @classmethod
    def parse(cls, value: "str | AttendanceMode") -> "AttendanceMode":
        if isinstance(value, AttendanceMode):
            return value
        raw = _normalized(value, "attendance mode")
        raw = _MODE_ALIASES.get(raw, raw)
        try:
            return cls(raw)
        except ValueError:
            raise ValidationError(f"Unsupported attendance mode: {value!r}")


# Older configuration rows were stored with these names.
_MODE_ALIASES = {
    "period_wise": "period",
    "session_based": "session",
}


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    LEAVE = "leave"

    @classmethod
    def parse(cls, value: "str | AttendanceStatus") -> "AttendanceStatus":
        if isinstance(value, AttendanceStatus):
            return value
        try:
            return cls(_normalized(value, "attendance status"))
        except ValueError:
            raise ValidationError(f"Unknown attendance status: {value!r}")


class SessionLabel(str, Enum):
    """Sessions of a school day, in display order."""

    MORNING = "morning"
    AFTERNOON = "afternoon"

    @classmethod
    def parse(cls, value: "str | SessionLabel | None") -> "SessionLabel | None":
        if value is None or isinstance(value, SessionLabel):
            return value
        raw = _normalized(value, "session")
        if not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            raise ValidationError(f"Unknown session: {value!r}")


class EmptyGridReason(str, Enum):
    NO_CONFIG = "no-config"
    NO_SLOTS_FOR_DAY = "no-slots-for-day"


class LeaveType(str, Enum):
    SICK = "sick"
    PERSONAL = "personal"
    MEDICAL = "medical"
    FAMILY_EMERGENCY = "family_emergency"
    OTHER = "other"

    @classmethod
    def parse(cls, value: "str | LeaveType") -> "LeaveType":
        if isinstance(value, LeaveType):
            return value
        try:
            return cls(_normalized(value, "leave type"))
        except ValueError:
            raise ValidationError(f"Unknown leave type: {value!r}")


class RequestStatus(str, Enum):
    """Approval workflow state of a leave request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: "str | RequestStatus") -> "RequestStatus":
        if isinstance(value, RequestStatus):
            return value
        try:
            return cls(_normalized(value, "request status"))
        except ValueError:
            raise ValidationError(f"Unknown request status: {value!r}")
