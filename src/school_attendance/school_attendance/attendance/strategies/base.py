from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ...core.enums import AttendanceMode, SessionLabel
from ...timetable.model import PeriodSlot

SubUnit = tuple[Optional[int], Optional[SessionLabel]]


class GridStrategy(ABC):
    """Strategy Pattern: what one cell of the attendance grid is for a mode."""

    mode: AttendanceMode

    @abstractmethod
    def sub_units(self, period_slots: Sequence[PeriodSlot]) -> list[SubUnit]:
        """(period_number, session) pairs each student gets one entry for."""

        raise NotImplementedError

    @abstractmethod
    def is_valid_shape(self, period_number: Optional[int], session: Optional[SessionLabel]) -> bool:
        raise NotImplementedError
