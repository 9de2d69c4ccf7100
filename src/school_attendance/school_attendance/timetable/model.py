from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import Optional

from ..core.enums import EmptyGridReason


@dataclass(frozen=True)
class TimetableConfiguration:
    configuration_id: str
    school_id: str
    academic_year_id: Optional[str]
    name: str
    is_active: bool = True
    is_default: bool = False


@dataclass(frozen=True)
class BatchTimetableMapping:
    batch_id: str
    configuration_id: str
    effective_from: date
    effective_to: Optional[date] = None

    def is_effective_on(self, on_date: date) -> bool:
        if on_date < self.effective_from:
            return False
        return self.effective_to is None or self.effective_to >= on_date


@dataclass(frozen=True)
class PeriodSetting:
    """One row of a timetable configuration (a teaching period or a break)."""

    period_number: int
    day_of_week: str
    start_time: time
    end_time: time
    is_break: bool = False
    label: Optional[str] = None
    subject_name: Optional[str] = None
    teacher_name: Optional[str] = None


@dataclass(frozen=True)
class PeriodSlot:
    period_number: int
    start_time: time
    end_time: time
    subject_name: Optional[str] = None
    teacher_name: Optional[str] = None


@dataclass(frozen=True)
class PeriodGrid:
    """Ordered slots for one date; `reason` says why the grid is empty."""

    slots: tuple[PeriodSlot, ...] = field(default_factory=tuple)
    reason: Optional[EmptyGridReason] = None

    @property
    def is_empty(self) -> bool:
        return not self.slots


@dataclass(frozen=True)
class GridExplanation:
    weekday: str
    title: str
    message: str
    configured_days: tuple[str, ...] = ()
