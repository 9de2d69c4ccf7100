from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveType, RequestStatus


@dataclass(frozen=True)
class LeaveRequest:
    request_id: str
    school_id: str
    student_id: str
    requested_by: str
    start_date: date
    end_date: date
    leave_type: LeaveType
    reason: str
    status: RequestStatus
    created_at: datetime
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1
