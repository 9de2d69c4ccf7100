from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import NamedTuple, Optional

from ..core.enums import AttendanceMode, AttendanceStatus, SessionLabel


class NaturalKey(NamedTuple):
    """At most one attendance entry exists per key."""

    student_id: str
    attendance_date: date
    period_number: Optional[int] = None
    session: Optional[SessionLabel] = None


@dataclass(frozen=True)
class AttendanceEntry:
    """A mark held in memory until the sheet is saved.

    `is_persisted` is True when `entry_id` was assigned by storage.
    """

    entry_id: str
    student_id: str
    attendance_date: date
    status: AttendanceStatus
    period_number: Optional[int] = None
    session: Optional[SessionLabel] = None
    remarks: Optional[str] = None
    is_persisted: bool = False

    @property
    def key(self) -> NaturalKey:
        return NaturalKey(self.student_id, self.attendance_date, self.period_number, self.session)


@dataclass(frozen=True)
class AttendanceRecord:
    """Persisted attendance mark."""

    record_id: str
    school_id: str
    batch_id: str
    student_id: str
    attendance_date: date
    mode: AttendanceMode
    status: AttendanceStatus
    marked_by: str
    marked_at: datetime
    period_number: Optional[int] = None
    session: Optional[SessionLabel] = None
    remarks: Optional[str] = None
    academic_year_id: Optional[str] = None

    @property
    def key(self) -> NaturalKey:
        return NaturalKey(self.student_id, self.attendance_date, self.period_number, self.session)


@dataclass(frozen=True)
class SavePayload:
    records: tuple[AttendanceRecord, ...]
    skipped: tuple[AttendanceEntry, ...] = ()


@dataclass(frozen=True)
class SaveOutcome:
    """What the storage collaborator reports for a batch write."""

    success: bool
    message: str = ""


@dataclass(frozen=True)
class SaveResult:
    success: bool
    message: str
    saved: int
    skipped: int = 0
