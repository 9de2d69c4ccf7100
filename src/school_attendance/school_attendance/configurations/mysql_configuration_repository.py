from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import AttendanceMode
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, normalize_mysql_time, storage_errors
from .model import AttendanceConfiguration
from .repository import ConfigurationRepository

_COLUMNS = """
    configuration_id, school_id, batch_id, academic_year_id, attendance_mode,
    auto_absent_enabled, auto_absent_time, notification_enabled, is_active, created_at
"""


def _to_model(r: dict) -> AttendanceConfiguration:
    return AttendanceConfiguration(
        configuration_id=r["configuration_id"],
        school_id=r["school_id"],
        batch_id=r.get("batch_id"),
        academic_year_id=r.get("academic_year_id"),
        mode=AttendanceMode.parse(r["attendance_mode"]),
        auto_absent_enabled=as_bool(r.get("auto_absent_enabled")),
        auto_absent_time=normalize_mysql_time(r.get("auto_absent_time")),
        notification_enabled=as_bool(r.get("notification_enabled")),
        is_active=as_bool(r.get("is_active")),
        created_at=r.get("created_at"),
    )


class MySQLConfigurationRepository(ConfigurationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_active_for_batch(self, batch_id: str) -> Optional[AttendanceConfiguration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_configurations
                WHERE batch_id=%s AND is_active=1
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (batch_id,),
            )
            r = fetchone(cur)
            return _to_model(r) if r else None

    def get_active_school_default(self, school_id: str) -> Optional[AttendanceConfiguration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_configurations
                WHERE school_id=%s AND batch_id IS NULL AND is_active=1
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (school_id,),
            )
            r = fetchone(cur)
            return _to_model(r) if r else None

    def list_active(self, school_id: str) -> Sequence[AttendanceConfiguration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_configurations
                WHERE school_id=%s AND is_active=1
                ORDER BY batch_id IS NULL, batch_id
                """,
                (school_id,),
            )
            return [_to_model(r) for r in fetchall(cur)]

    def replace_active(self, configuration: AttendanceConfiguration) -> None:
        with storage_errors("Saving attendance configuration"), db_cursor(self._conn_factory) as (_, cur):
            if configuration.batch_id is None:
                cur.execute(
                    "UPDATE attendance_configurations SET is_active=0 "
                    "WHERE school_id=%s AND batch_id IS NULL AND is_active=1",
                    (configuration.school_id,),
                )
            else:
                cur.execute(
                    "UPDATE attendance_configurations SET is_active=0 WHERE batch_id=%s AND is_active=1",
                    (configuration.batch_id,),
                )
            cur.execute(
                """
                INSERT INTO attendance_configurations(
                    configuration_id, school_id, batch_id, academic_year_id, attendance_mode,
                    auto_absent_enabled, auto_absent_time, notification_enabled, is_active, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,1,%s)
                """,
                (
                    configuration.configuration_id,
                    configuration.school_id,
                    configuration.batch_id,
                    configuration.academic_year_id,
                    configuration.mode.value,
                    int(configuration.auto_absent_enabled),
                    configuration.auto_absent_time,
                    int(configuration.notification_enabled),
                    configuration.created_at,
                ),
            )
