from __future__ import annotations

import json
import logging
from datetime import date
from typing import Iterable, Protocol, Sequence

from ..common.datetime_utils import parse_iso_date
from ..core.enums import AttendanceStatus, SessionLabel
from ..core.exceptions import ValidationError
from .model import AttendanceEntry

logger = logging.getLogger(__name__)


class AttendanceDraftRepository(Protocol):
    """Unsaved marks of one batch and date, kept until they are saved or cleared."""

    def load_draft(self, batch_id: str, attendance_date: date) -> Sequence[AttendanceEntry]:
        raise NotImplementedError

    def save_draft(self, batch_id: str, attendance_date: date, entries: Sequence[AttendanceEntry]) -> None:
        """Replace the stored draft."""

        raise NotImplementedError

    def discard_draft(self, batch_id: str, attendance_date: date) -> None:
        raise NotImplementedError


def entries_to_json(entries: Iterable[AttendanceEntry]) -> str:
    return json.dumps(
        [
            {
                "entry_id": e.entry_id,
                "student_id": e.student_id,
                "attendance_date": e.attendance_date.isoformat(),
                "status": e.status.value,
                "period_number": e.period_number,
                "session": e.session.value if e.session else None,
                "remarks": e.remarks,
                "is_persisted": e.is_persisted,
            }
            for e in entries
        ]
    )


def entries_from_json(payload: str) -> list[AttendanceEntry]:
    """Decode a stored draft; items that no longer decode are left out."""
    try:
        items = json.loads(payload or "[]")
    except ValueError:
        logger.warning("Ignoring attendance draft that is not valid JSON")
        return []
    if not isinstance(items, list):
        logger.warning("Ignoring attendance draft that is not a list")
        return []

    entries: list[AttendanceEntry] = []
    for item in items:
        try:
            period = item.get("period_number")
            entries.append(
                AttendanceEntry(
                    entry_id=str(item["entry_id"]),
                    student_id=str(item["student_id"]),
                    attendance_date=parse_iso_date(item["attendance_date"]),
                    status=AttendanceStatus.parse(item["status"]),
                    period_number=int(period) if period is not None else None,
                    session=SessionLabel.parse(item.get("session")),
                    remarks=item.get("remarks"),
                    is_persisted=bool(item.get("is_persisted")),
                )
            )
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError):
            logger.warning("Ignoring unreadable attendance draft item: %r", item)
    return entries
