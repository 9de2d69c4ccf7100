from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from ..attendance.model import AttendanceEntry, AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..core.constants import DEFAULT_STATS_DAYS
from ..core.context import AttendanceContext
from ..core.enums import AttendanceMode, AttendanceStatus
from ..core.exceptions import ValidationError
from ..students.model import Student
from ..students.repository import StudentRepository


def percentage(part: int, total: int) -> int:
    """Whole percent, halves rounded up; 0 when total is 0."""
    if total <= 0:
        return 0
    value = Decimal(part) * 100 / Decimal(total)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class AttendanceStats:
    total: int
    present: int
    absent: int
    late: int
    leave: int
    attendance_percentage: int


@dataclass(frozen=True)
class BatchAttendanceStats:
    batch_id: str
    attendance_date: date
    total_students: int
    present_students: int
    absent_students: int
    late_students: int
    leave_students: int
    attendance_percentage: int


@dataclass(frozen=True)
class SheetSummary:
    """Header counts of a marking sheet: one bucket per student."""

    total: int
    present: int = 0
    absent: int = 0
    late: int = 0
    leave: int = 0


class AttendanceReportService:
    def __init__(self, attendance: AttendanceRepository, students: StudentRepository):
        self._attendance = attendance
        self._students = students

    @staticmethod
    def calculate_stats(records: Iterable[AttendanceRecord]) -> AttendanceStats:
        counts: dict[AttendanceStatus, int] = defaultdict(int)
        total = 0
        for r in records:
            counts[r.status] += 1
            total += 1

        return AttendanceStats(
            total=total,
            present=counts[AttendanceStatus.PRESENT],
            absent=counts[AttendanceStatus.ABSENT],
            late=counts[AttendanceStatus.LATE],
            leave=counts[AttendanceStatus.LEAVE],
            attendance_percentage=percentage(counts[AttendanceStatus.PRESENT], total),
        )

    def batch_stats(self, ctx: AttendanceContext, batch_id: str, on_date: date) -> BatchAttendanceStats:
        """Per-record counts for one day against the number of active students."""
        ctx.require_identity()

        students = self._students.list_by_batch(school_id=str(ctx.school_id), batch_id=batch_id)
        records = [
            r for r in self._attendance.fetch_records(batch_id, on_date, on_date) if r.school_id == ctx.school_id
        ]
        stats = self.calculate_stats(records)
        total_students = len(students)

        return BatchAttendanceStats(
            batch_id=batch_id,
            attendance_date=on_date,
            total_students=total_students,
            present_students=stats.present,
            absent_students=stats.absent,
            late_students=stats.late,
            leave_students=stats.leave,
            attendance_percentage=percentage(stats.present, total_students),
        )

    def student_stats(
        self,
        ctx: AttendanceContext,
        student_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> AttendanceStats:
        ctx.require_identity()

        date_to = date_to or date.today()
        date_from = date_from or (date_to - timedelta(days=DEFAULT_STATS_DAYS))
        if date_to < date_from:
            raise ValidationError("End date must be on or after the start date")

        records = self._attendance.fetch_student_records(student_id, date_from, date_to)
        return self.calculate_stats(r for r in records if r.school_id == ctx.school_id)

    @staticmethod
    def summarize_entries(
        mode: AttendanceMode | str,
        students: Sequence[Student],
        entries: Sequence[AttendanceEntry],
    ) -> SheetSummary:
        """Daily: the student's own status. Period/session: present if any sub-unit is present.

        Unmarked students count as absent once anything has been marked.
        """
        mode = AttendanceMode.parse(mode)
        if not entries:
            return SheetSummary(total=len(students))

        by_student: dict[str, list[AttendanceEntry]] = defaultdict(list)
        for e in entries:
            by_student[e.student_id].append(e)

        counts: dict[AttendanceStatus, int] = defaultdict(int)
        for student in students:
            mine = by_student.get(student.student_id)
            if not mine:
                counts[AttendanceStatus.ABSENT] += 1
            elif mode == AttendanceMode.DAILY:
                counts[mine[0].status] += 1
            elif any(e.status == AttendanceStatus.PRESENT for e in mine):
                counts[AttendanceStatus.PRESENT] += 1
            else:
                counts[AttendanceStatus.ABSENT] += 1

        return SheetSummary(
            total=len(students),
            present=counts[AttendanceStatus.PRESENT],
            absent=counts[AttendanceStatus.ABSENT],
            late=counts[AttendanceStatus.LATE],
            leave=counts[AttendanceStatus.LEAVE],
        )
