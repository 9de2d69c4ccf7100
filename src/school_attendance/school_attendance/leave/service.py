from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_LEAVE_LIST_LIMIT
from ..core.context import AttendanceContext
from ..core.enums import LeaveType, RequestStatus
from ..core.exceptions import ValidationError
from .model import LeaveRequest
from .repository import LeaveRequestRepository

logger = logging.getLogger(__name__)


class LeaveRequestService:
    def __init__(
        self,
        requests: LeaveRequestRepository,
        *,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._requests = requests
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._clock = clock or datetime.now

    def create(
        self,
        ctx: AttendanceContext,
        *,
        student_id: str,
        start_date: date,
        end_date: date,
        leave_type: LeaveType | str,
        reason: str,
    ) -> LeaveRequest:
        ctx.require_identity()

        student_id = require_non_empty(student_id, "student_id")
        if end_date < start_date:
            raise ValidationError("End date must be on or after the start date")
        reason = require_non_empty(reason, "Reason")
        leave_type = LeaveType.parse(leave_type)

        request = LeaveRequest(
            request_id=self._new_id(),
            school_id=str(ctx.school_id),
            student_id=student_id,
            requested_by=str(ctx.actor_id),
            start_date=start_date,
            end_date=end_date,
            leave_type=leave_type,
            reason=reason,
            status=RequestStatus.PENDING,
            created_at=self._clock(),
        )
        self._requests.create(request)
        logger.info("Leave request %s created for student %s (%d days)", request.request_id, student_id, request.days)
        return request

    def list_requests(
        self,
        ctx: AttendanceContext,
        *,
        status: RequestStatus | str | None = None,
        student_id: Optional[str] = None,
        limit: int = DEFAULT_LEAVE_LIST_LIMIT,
    ) -> Sequence[LeaveRequest]:
        ctx.require_identity()
        return self._requests.list_requests(
            school_id=str(ctx.school_id),
            status=RequestStatus.parse(status) if status else None,
            student_id=student_id or None,
            limit=int(limit),
        )

    def approve(self, ctx: AttendanceContext, request_id: str) -> None:
        self._decide(ctx, request_id, RequestStatus.APPROVED)

    def reject(self, ctx: AttendanceContext, request_id: str, rejection_reason: str = "") -> None:
        self._decide(ctx, request_id, RequestStatus.REJECTED, optional_text(rejection_reason))

    def _decide(
        self,
        ctx: AttendanceContext,
        request_id: str,
        status: RequestStatus,
        rejection_reason: Optional[str] = None,
    ) -> None:
        ctx.require_admin()
        ctx.require_identity()

        req = self._requests.get(request_id)
        if not req or req.school_id != ctx.school_id:
            raise ValidationError("Leave request not found")
        if req.status != RequestStatus.PENDING:
            raise ValidationError("Leave request has already been decided")

        ok = self._requests.decide(
            request_id=request_id,
            status=status,
            decided_by=str(ctx.actor_id),
            decided_at=self._clock(),
            rejection_reason=rejection_reason,
        )
        if not ok:
            raise ValidationError("Leave request has already been decided")
        logger.info("Leave request %s %s by %s", request_id, status.value, ctx.actor_id)
