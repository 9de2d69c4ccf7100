from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import AttendanceMode
from .strategies.base import GridStrategy
from .strategies.daily_strategy import DailyGridStrategy
from .strategies.period_strategy import PeriodGridStrategy
from .strategies.session_strategy import SessionGridStrategy


@dataclass
class GridStrategyFactory:
    """Factory Pattern: pick the grid strategy of an attendance mode."""

    def for_mode(self, mode: AttendanceMode | str) -> GridStrategy:
        mode = AttendanceMode.parse(mode)
        if mode == AttendanceMode.PERIOD:
            return PeriodGridStrategy()
        if mode == AttendanceMode.SESSION:
            return SessionGridStrategy()
        return DailyGridStrategy()
