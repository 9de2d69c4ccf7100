from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import AttendanceRecord, SaveOutcome


class AttendanceRepository(Protocol):
    def fetch_records(self, batch_id: str, date_from: date, date_to: date) -> Sequence[AttendanceRecord]:
        """Records of a batch with attendance_date in [date_from, date_to]."""

        raise NotImplementedError

    def fetch_student_records(
        self, student_id: str, date_from: date, date_to: date
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def save_records(self, records: Sequence[AttendanceRecord]) -> SaveOutcome:
        """Upsert by natural key (student, date, period, session), all or nothing."""

        raise NotImplementedError
