from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Student
from .repository import StudentRepository


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_by_batch(self, *, school_id: str, batch_id: str) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT student_id, school_id, batch_id, admission_number, first_name, last_name, roll_number
                FROM students
                WHERE school_id=%s AND batch_id=%s AND status='active'
                ORDER BY CAST(roll_number AS UNSIGNED), roll_number, first_name
                """,
                (school_id, batch_id),
            )
            return [
                Student(
                    student_id=r["student_id"],
                    school_id=r["school_id"],
                    batch_id=r["batch_id"],
                    admission_number=r["admission_number"],
                    first_name=r["first_name"],
                    last_name=r.get("last_name") or "",
                    roll_number=r.get("roll_number"),
                )
                for r in fetchall(cur)
            ]
