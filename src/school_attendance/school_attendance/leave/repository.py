from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import LeaveRequest


class LeaveRequestRepository(Protocol):
    def create(self, request: LeaveRequest) -> None:
        raise NotImplementedError

    def get(self, request_id: str) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        school_id: str,
        status: Optional[RequestStatus] = None,
        student_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        """Newest first."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: str,
        status: RequestStatus,
        decided_by: str,
        decided_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Move a pending request to `status`; False when it was not pending."""

        raise NotImplementedError
