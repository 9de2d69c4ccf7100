from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import BatchTimetableMapping, PeriodSetting, TimetableConfiguration
from .repository import TimetableRepository


def _to_configuration(r: dict) -> TimetableConfiguration:
    return TimetableConfiguration(
        configuration_id=r["configuration_id"],
        school_id=r["school_id"],
        academic_year_id=r.get("academic_year_id"),
        name=r["name"],
        is_active=as_bool(r.get("is_active")),
        is_default=as_bool(r.get("is_default")),
    )


class MySQLTimetableRepository(TimetableRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_batch_mappings(self, batch_id: str) -> Sequence[BatchTimetableMapping]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT batch_id, configuration_id, effective_from, effective_to
                FROM batch_configuration_mapping
                WHERE batch_id=%s
                ORDER BY effective_from DESC
                """,
                (batch_id,),
            )
            return [
                BatchTimetableMapping(
                    batch_id=r["batch_id"],
                    configuration_id=r["configuration_id"],
                    effective_from=r["effective_from"],
                    effective_to=r.get("effective_to"),
                )
                for r in fetchall(cur)
            ]

    def get_configuration(self, configuration_id: str) -> Optional[TimetableConfiguration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT configuration_id, school_id, academic_year_id, name, is_active, is_default
                FROM timetable_configurations
                WHERE configuration_id=%s
                """,
                (configuration_id,),
            )
            r = fetchone(cur)
            return _to_configuration(r) if r else None

    def get_school_default(
        self, school_id: str, academic_year_id: Optional[str]
    ) -> Optional[TimetableConfiguration]:
        clauses = ["school_id=%s", "is_active=1", "is_default=1"]
        params: list[object] = [school_id]
        if academic_year_id:
            clauses.append("academic_year_id=%s")
            params.append(academic_year_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT configuration_id, school_id, academic_year_id, name, is_active, is_default
                FROM timetable_configurations
                WHERE {" AND ".join(clauses)}
                LIMIT 1
                """,
                tuple(params),
            )
            r = fetchone(cur)
            return _to_configuration(r) if r else None

    def list_period_settings(self, configuration_id: str) -> Sequence[PeriodSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT period_number, day_of_week, start_time, end_time, is_break,
                       label, subject_name, teacher_name
                FROM period_settings
                WHERE configuration_id=%s
                ORDER BY day_of_week, period_number
                """,
                (configuration_id,),
            )
            return [
                PeriodSetting(
                    period_number=int(r["period_number"]),
                    day_of_week=str(r["day_of_week"]).lower(),
                    start_time=normalize_mysql_time(r["start_time"]),
                    end_time=normalize_mysql_time(r["end_time"]),
                    is_break=as_bool(r.get("is_break")),
                    label=r.get("label"),
                    subject_name=r.get("subject_name"),
                    teacher_name=r.get("teacher_name"),
                )
                for r in fetchall(cur)
            ]
