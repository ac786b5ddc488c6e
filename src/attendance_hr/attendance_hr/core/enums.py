from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def can_manage(self) -> bool:
        return self in (Role.ADMIN, Role.SUPER_ADMIN)

    @property
    def can_view_all(self) -> bool:
        return self in (Role.MANAGER, Role.ADMIN, Role.SUPER_ADMIN)


class AttendanceStatus(str, Enum):
    """Status tag stored on an attendance record."""

    PRESENT = "present"
    ON_TIME = "on_time"
    LATE = "late"
    EARLY_LEAVE = "early_leave"
    ABSENT = "absent"
    REMOTE = "remote"
    OVERTIME = "overtime"
    SICK_LEAVE = "sick_leave"
    VACATION = "vacation"

    @property
    def is_present(self) -> bool:
        return self in PRESENT_STATUSES


PRESENT_STATUSES = frozenset(
    {
        AttendanceStatus.PRESENT,
        AttendanceStatus.ON_TIME,
        AttendanceStatus.LATE,
        AttendanceStatus.EARLY_LEAVE,
        AttendanceStatus.REMOTE,
        AttendanceStatus.OVERTIME,
    }
)


class BreakType(str, Enum):
    LUNCH = "lunch"
    SHORT_BREAK = "short_break"
    PERSONAL = "personal"
    MEDICAL = "medical"


class Punctuality(str, Enum):
    ON_TIME = "on-time"
    LATE = "late"


class DayStatus(str, Enum):
    """Calendar cell status."""

    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    ABSENT = "absent"
    NONE = "none"


class ErrorKind(str, Enum):
    """Error categories propagated from the data layer up to the HTTP layer."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    REMOTE_UNAVAILABLE = "remote_unavailable"
    UNAUTHORIZED = "unauthorized"
