from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import LeaveType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, storage_errors
from .model import LeaveRequest
from .repository import LeaveRequestRepository

_COLUMNS = """
    request_id, school_id, student_id, requested_by, start_date, end_date, leave_type,
    reason, status, decided_by, decided_at, rejection_reason, created_at
"""


def _row_to_request(r: Dict[str, Any]) -> LeaveRequest:
    return LeaveRequest(
        request_id=r["request_id"],
        school_id=r["school_id"],
        student_id=r["student_id"],
        requested_by=r["requested_by"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        leave_type=LeaveType(r["leave_type"]),
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        rejection_reason=r.get("rejection_reason"),
    )


class MySQLLeaveRequestRepository(LeaveRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, request: LeaveRequest) -> None:
        with storage_errors("Creating leave request"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_leave_requests(
                        request_id, school_id, student_id, requested_by, start_date, end_date,
                        leave_type, reason, status, created_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        request.request_id,
                        request.school_id,
                        request.student_id,
                        request.requested_by,
                        request.start_date,
                        request.end_date,
                        request.leave_type.value,
                        request.reason,
                        request.status.value,
                        request.created_at,
                    ),
                )

    def get(self, request_id: str) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_leave_requests WHERE request_id=%s", (request_id,))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def list_requests(
        self,
        *,
        school_id: str,
        status: Optional[RequestStatus] = None,
        student_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        clauses = ["school_id=%s"]
        params: list[object] = [school_id]

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if student_id is not None:
            clauses.append("student_id=%s")
            params.append(student_id)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_leave_requests
                WHERE {where}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        request_id: str,
        status: RequestStatus,
        decided_by: str,
        decided_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        with storage_errors("Updating leave request"):
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE attendance_leave_requests
                    SET status=%s, decided_by=%s, decided_at=%s, rejection_reason=%s
                    WHERE request_id=%s AND status=%s
                    """,
                    (
                        status.value,
                        decided_by,
                        decided_at,
                        rejection_reason,
                        request_id,
                        RequestStatus.PENDING.value,
                    ),
                )
                return cur.rowcount > 0
