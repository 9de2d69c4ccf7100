from __future__ import annotations

from datetime import date, time
from typing import Optional

from src.school_attendance.school_attendance.core.context import AttendanceContext
from src.school_attendance.school_attendance.core.enums import EmptyGridReason
from src.school_attendance.school_attendance.timetable.model import (
    BatchTimetableMapping,
    PeriodSetting,
    TimetableConfiguration,
)
from src.school_attendance.school_attendance.timetable.service import PeriodGridService

CTX = AttendanceContext(actor_id="t1", school_id="sch1", academic_year_id="ay1")
MONDAY = date(2024, 1, 15)
TUESDAY = date(2024, 1, 16)


class InMemoryTimetable:
    def __init__(self, *, configs=(), mappings=(), settings=None, default_id: Optional[str] = None):
        self.configs = {c.configuration_id: c for c in configs}
        self.mappings = list(mappings)
        self.settings = settings or {}
        self.default_id = default_id

    def list_batch_mappings(self, batch_id):
        return [m for m in self.mappings if m.batch_id == batch_id]

    def get_configuration(self, configuration_id):
        return self.configs.get(configuration_id)

    def get_school_default(self, school_id, academic_year_id):
        return self.configs.get(self.default_id) if self.default_id else None

    def list_period_settings(self, configuration_id):
        return self.settings.get(configuration_id, [])


def _tt(cid, *, active=True, default=False):
    return TimetableConfiguration(
        configuration_id=cid, school_id="sch1", academic_year_id="ay1", name=cid, is_active=active, is_default=default
    )


def _setting(n, day, *, is_break=False):
    return PeriodSetting(
        period_number=n, day_of_week=day, start_time=time(7 + n, 0), end_time=time(7 + n, 45), is_break=is_break
    )


def test_batch_mapping_wins_over_school_default():
    repo = InMemoryTimetable(
        configs=[_tt("batch-tt"), _tt("school-tt", default=True)],
        mappings=[BatchTimetableMapping(batch_id="b1", configuration_id="batch-tt", effective_from=date(2024, 1, 1))],
        default_id="school-tt",
    )

    config = PeriodGridService(repo).resolve_configuration(CTX, "b1", TUESDAY)

    assert config.configuration_id == "batch-tt"


def test_expired_or_inactive_mapping_falls_back_to_school_default():
    repo = InMemoryTimetable(
        configs=[_tt("old-tt"), _tt("off-tt", active=False), _tt("school-tt", default=True)],
        mappings=[
            BatchTimetableMapping(
                batch_id="b1", configuration_id="old-tt", effective_from=date(2023, 6, 1), effective_to=date(2023, 12, 31)
            ),
            BatchTimetableMapping(batch_id="b1", configuration_id="off-tt", effective_from=date(2024, 1, 1)),
        ],
        default_id="school-tt",
    )

    config = PeriodGridService(repo).resolve_configuration(CTX, "b1", TUESDAY)

    assert config.configuration_id == "school-tt"


def test_no_configuration_gives_no_config_reason():
    grid = PeriodGridService(InMemoryTimetable()).get_period_grid(CTX, "b1", TUESDAY)

    assert grid.is_empty
    assert grid.reason == EmptyGridReason.NO_CONFIG


def test_grid_is_sorted_and_skips_breaks():
    repo = InMemoryTimetable(
        configs=[_tt("tt")],
        default_id="tt",
        settings={"tt": [_setting(3, "tuesday"), _setting(1, "tuesday"), _setting(2, "tuesday", is_break=True),
                         _setting(4, "thursday")]},
    )

    grid = PeriodGridService(repo).get_period_grid(CTX, "b1", TUESDAY)

    assert grid.reason is None
    assert [s.period_number for s in grid.slots] == [1, 3]


def test_day_without_slots_gives_no_slots_reason_and_available_days():
    repo = InMemoryTimetable(
        configs=[_tt("tt")],
        default_id="tt",
        settings={"tt": [_setting(1, "thursday"), _setting(1, "tuesday"), _setting(2, "friday", is_break=True)]},
    )
    svc = PeriodGridService(repo)

    assert svc.get_period_grid(CTX, "b1", MONDAY).reason == EmptyGridReason.NO_SLOTS_FOR_DAY
    assert svc.get_available_days(CTX, "b1", MONDAY) == ["tuesday", "thursday"]


def test_explain_no_classes_on_weekday():
    explanation = PeriodGridService.explain_empty_grid(MONDAY, ["thursday", "tuesday"])

    assert explanation.title == "No Classes on Monday"
    assert "2024-01-15" in explanation.message
    assert explanation.message.endswith("Classes are configured for: Tuesday, Thursday.")
    assert explanation.configured_days == ("tuesday", "thursday")


def test_explain_timetable_not_configured():
    explanation = PeriodGridService.explain_empty_grid(MONDAY, [])

    assert explanation.weekday == "monday"
    assert explanation.title == "Timetable Not Configured"


def test_explain_configured_day_without_periods():
    explanation = PeriodGridService.explain_empty_grid(TUESDAY, ["tuesday"])

    assert explanation.title == "No Periods Found"
