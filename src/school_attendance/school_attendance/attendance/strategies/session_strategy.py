from __future__ import annotations

from typing import Optional, Sequence

from ...core.enums import AttendanceMode, SessionLabel
from ...timetable.model import PeriodSlot
from .base import GridStrategy, SubUnit


class SessionGridStrategy(GridStrategy):
    """One mark per student per session (morning, afternoon)."""

    mode = AttendanceMode.SESSION

    def sub_units(self, period_slots: Sequence[PeriodSlot]) -> list[SubUnit]:
        return [(None, label) for label in SessionLabel]

    def is_valid_shape(self, period_number: Optional[int], session: Optional[SessionLabel]) -> bool:
        return period_number is None and session is not None
