from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import weekday_name
from ..core.constants import WEEKDAYS
from ..core.context import AttendanceContext
from ..core.enums import EmptyGridReason
from .model import GridExplanation, PeriodGrid, PeriodSlot, TimetableConfiguration
from .repository import TimetableRepository


class PeriodGridService:
    """Period slots of a batch, looked up batch mapping -> school default -> none."""

    def __init__(self, timetable: TimetableRepository):
        self._timetable = timetable

    def resolve_configuration(
        self, ctx: AttendanceContext, batch_id: str, on_date: date
    ) -> Optional[TimetableConfiguration]:
        for mapping in self._timetable.list_batch_mappings(batch_id):
            if not mapping.is_effective_on(on_date):
                continue
            config = self._timetable.get_configuration(mapping.configuration_id)
            if config and config.is_active:
                return config

        if not ctx.school_id:
            return None
        default = self._timetable.get_school_default(ctx.school_id, ctx.academic_year_id)
        if default and default.is_active:
            return default
        return None

    def get_period_grid(self, ctx: AttendanceContext, batch_id: str, on_date: date) -> PeriodGrid:
        config = self.resolve_configuration(ctx, batch_id, on_date)
        if not config:
            return PeriodGrid(reason=EmptyGridReason.NO_CONFIG)

        day = weekday_name(on_date)
        settings = [
            s
            for s in self._timetable.list_period_settings(config.configuration_id)
            if s.day_of_week == day and not s.is_break
        ]
        if not settings:
            return PeriodGrid(reason=EmptyGridReason.NO_SLOTS_FOR_DAY)

        settings.sort(key=lambda s: s.period_number)
        return PeriodGrid(
            slots=tuple(
                PeriodSlot(
                    period_number=s.period_number,
                    start_time=s.start_time,
                    end_time=s.end_time,
                    subject_name=s.subject_name,
                    teacher_name=s.teacher_name,
                )
                for s in settings
            )
        )

    def get_available_days(
        self, ctx: AttendanceContext, batch_id: str, on_date: Optional[date] = None
    ) -> list[str]:
        config = self.resolve_configuration(ctx, batch_id, on_date or date.today())
        if not config:
            return []

        days = {s.day_of_week for s in self._timetable.list_period_settings(config.configuration_id) if not s.is_break}
        return [d for d in WEEKDAYS if d in days]

    @staticmethod
    def explain_empty_grid(on_date: date, available_days: Sequence[str]) -> GridExplanation:
        day = weekday_name(on_date)
        day_title = day.capitalize()
        configured = tuple(d for d in WEEKDAYS if d in {a.lower() for a in available_days})

        if not configured:
            return GridExplanation(
                weekday=day,
                title="Timetable Not Configured",
                message="No period timetable is set up for this batch. Configure the timetable before marking period-wise attendance.",
            )

        if day not in configured:
            return GridExplanation(
                weekday=day,
                title=f"No Classes on {day_title}",
                message=(
                    f"The selected date ({on_date.isoformat()}) falls on a {day_title}, "
                    "but there are no period configurations for this day. "
                    f"Classes are configured for: {', '.join(d.capitalize() for d in configured)}."
                ),
                configured_days=configured,
            )

        return GridExplanation(
            weekday=day,
            title="No Periods Found",
            message=f"{day_title} is configured but has no teaching periods for this batch.",
            configured_days=configured,
        )
