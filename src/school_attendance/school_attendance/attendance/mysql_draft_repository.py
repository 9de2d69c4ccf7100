from __future__ import annotations

from datetime import date
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, storage_errors
from .drafts import AttendanceDraftRepository, entries_from_json, entries_to_json
from .model import AttendanceEntry


class MySQLAttendanceDraftRepository(AttendanceDraftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def load_draft(self, batch_id: str, attendance_date: date) -> Sequence[AttendanceEntry]:
        with storage_errors("Loading attendance draft"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "SELECT payload FROM attendance_drafts WHERE batch_id=%s AND attendance_date=%s",
                    (batch_id, attendance_date),
                )
                r = fetchone(cur)
        return entries_from_json(r["payload"]) if r else []

    def save_draft(self, batch_id: str, attendance_date: date, entries: Sequence[AttendanceEntry]) -> None:
        with storage_errors("Storing attendance draft"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_drafts(batch_id, attendance_date, payload)
                    VALUES(%s,%s,%s)
                    ON DUPLICATE KEY UPDATE payload=VALUES(payload), updated_at=CURRENT_TIMESTAMP
                    """,
                    (batch_id, attendance_date, entries_to_json(entries)),
                )

    def discard_draft(self, batch_id: str, attendance_date: date) -> None:
        with storage_errors("Discarding attendance draft"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "DELETE FROM attendance_drafts WHERE batch_id=%s AND attendance_date=%s",
                    (batch_id, attendance_date),
                )
