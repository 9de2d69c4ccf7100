from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Sequence

from ..core.enums import AttendanceMode, AttendanceStatus, SessionLabel
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, storage_errors
from .model import AttendanceRecord, SaveOutcome
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_COLUMNS = """
    record_id, school_id, batch_id, academic_year_id, student_id, attendance_date,
    attendance_mode, status, period_number, session_label, remarks, marked_by, marked_at
"""


def _row_to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=r["record_id"],
        school_id=r["school_id"],
        batch_id=r["batch_id"],
        academic_year_id=r.get("academic_year_id"),
        student_id=r["student_id"],
        attendance_date=r["attendance_date"],
        mode=AttendanceMode.parse(r["attendance_mode"]),
        status=AttendanceStatus(r["status"]),
        period_number=int(r["period_number"]) if r.get("period_number") is not None else None,
        session=SessionLabel.parse(r.get("session_label")),
        remarks=r.get("remarks"),
        marked_by=r["marked_by"],
        marked_at=r["marked_at"],
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def fetch_records(self, batch_id: str, date_from: date, date_to: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE batch_id=%s AND attendance_date BETWEEN %s AND %s
                ORDER BY attendance_date, student_id, period_number, session_label
                """,
                (batch_id, date_from, date_to),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def fetch_student_records(
        self, student_id: str, date_from: date, date_to: date
    ) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE student_id=%s AND attendance_date BETWEEN %s AND %s
                ORDER BY attendance_date, period_number, session_label
                """,
                (student_id, date_from, date_to),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def save_records(self, records: Sequence[AttendanceRecord]) -> SaveOutcome:
        if not records:
            return SaveOutcome(success=True, message="Nothing to save")

        rows = [
            (
                r.record_id,
                r.school_id,
                r.batch_id,
                r.academic_year_id,
                r.student_id,
                r.attendance_date,
                r.mode.value,
                r.status.value,
                r.period_number,
                r.session.value if r.session else None,
                r.remarks,
                r.marked_by,
                r.marked_at,
            )
            for r in records
        ]
        # One transaction: either every row is written or none is.
        with storage_errors("Saving attendance"):
            with db_cursor(self._conn_factory, dictionary=False) as (_, cur):
                cur.executemany(
                    """
                    INSERT INTO attendance_records(
                        record_id, school_id, batch_id, academic_year_id, student_id, attendance_date,
                        attendance_mode, status, period_number, session_label, remarks, marked_by, marked_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    ON DUPLICATE KEY UPDATE
                        status=VALUES(status),
                        attendance_mode=VALUES(attendance_mode),
                        remarks=VALUES(remarks),
                        marked_by=VALUES(marked_by),
                        marked_at=VALUES(marked_at)
                    """,
                    rows,
                )
        logger.debug("Upserted %d attendance records", len(rows))
        return SaveOutcome(success=True, message=f"Saved {len(rows)} records")
