from __future__ import annotations

from typing import Optional, Sequence

from ...core.enums import AttendanceMode, SessionLabel
from ...timetable.model import PeriodSlot
from .base import GridStrategy, SubUnit


class PeriodGridStrategy(GridStrategy):
    """One mark per student per scheduled period of the day."""

    mode = AttendanceMode.PERIOD

    def sub_units(self, period_slots: Sequence[PeriodSlot]) -> list[SubUnit]:
        return [(slot.period_number, None) for slot in period_slots]

    def is_valid_shape(self, period_number: Optional[int], session: Optional[SessionLabel]) -> bool:
        return period_number is not None and session is None
