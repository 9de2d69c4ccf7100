from __future__ import annotations

from typing import Optional, Sequence

from ...core.enums import AttendanceMode, SessionLabel
from ...timetable.model import PeriodSlot
from .base import GridStrategy, SubUnit


class DailyGridStrategy(GridStrategy):
    """One mark per student per day."""

    mode = AttendanceMode.DAILY

    def sub_units(self, period_slots: Sequence[PeriodSlot]) -> list[SubUnit]:
        return [(None, None)]

    def is_valid_shape(self, period_number: Optional[int], session: Optional[SessionLabel]) -> bool:
        return period_number is None and session is None
