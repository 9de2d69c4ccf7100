from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from typing import Optional

import pytest

from src.school_attendance.school_attendance.attendance.model import AttendanceEntry, AttendanceRecord, SaveOutcome
from src.school_attendance.school_attendance.attendance.service import AttendanceEntryService
from src.school_attendance.school_attendance.configurations.model import AttendanceConfiguration
from src.school_attendance.school_attendance.configurations.service import AttendanceConfigurationService
from src.school_attendance.school_attendance.core.context import AttendanceContext
from src.school_attendance.school_attendance.core.enums import (
    AttendanceMode,
    AttendanceStatus,
    EmptyGridReason,
    SessionLabel,
)
from src.school_attendance.school_attendance.core.exceptions import (
    NotConfiguredError,
    PreconditionError,
    StorageError,
)
from src.school_attendance.school_attendance.students.model import Student
from src.school_attendance.school_attendance.timetable.model import (
    BatchTimetableMapping,
    PeriodSetting,
    TimetableConfiguration,
)
from src.school_attendance.school_attendance.timetable.service import PeriodGridService

MONDAY = date(2024, 1, 15)
TUESDAY = date(2024, 1, 16)
CTX = AttendanceContext(actor_id="t1", school_id="sch1", academic_year_id="ay1")
NOW = datetime(2024, 1, 16, 9, 30, 0)


class InMemoryConfigurations:
    def __init__(self, *configs: AttendanceConfiguration):
        self.configs = list(configs)

    def get_active_for_batch(self, batch_id: str) -> Optional[AttendanceConfiguration]:
        return next((c for c in self.configs if c.batch_id == batch_id and c.is_active), None)

    def get_active_school_default(self, school_id: str) -> Optional[AttendanceConfiguration]:
        return next((c for c in self.configs if c.batch_id is None and c.school_id == school_id and c.is_active), None)

    def list_active(self, school_id: str):
        return [c for c in self.configs if c.school_id == school_id and c.is_active]

    def replace_active(self, configuration: AttendanceConfiguration) -> None:
        self.configs.append(configuration)


class InMemoryTimetable:
    def __init__(self, settings: list[PeriodSetting]):
        self._config = TimetableConfiguration(configuration_id="tt1", school_id="sch1", academic_year_id="ay1", name="Main")
        self._settings = settings

    def list_batch_mappings(self, batch_id: str):
        return [BatchTimetableMapping(batch_id=batch_id, configuration_id="tt1", effective_from=date(2024, 1, 1))]

    def get_configuration(self, configuration_id: str):
        return self._config if configuration_id == "tt1" else None

    def get_school_default(self, school_id, academic_year_id):
        return None

    def list_period_settings(self, configuration_id: str):
        return list(self._settings)


class InMemoryStudents:
    def __init__(self, n: int = 3):
        self._students = [
            Student(student_id=f"s{i}", school_id="sch1", batch_id="b1", admission_number=f"A{i}", first_name=f"Kid{i}")
            for i in range(1, n + 1)
        ]

    def list_by_batch(self, *, school_id: str, batch_id: str):
        return [s for s in self._students if s.school_id == school_id and s.batch_id == batch_id]


class InMemoryAttendance:
    def __init__(self, records=(), *, fail: bool = False, reject: bool = False):
        self.records = {r.key: r for r in records}
        self.fail = fail
        self.reject = reject
        self.save_calls = 0

    def fetch_records(self, batch_id, date_from, date_to):
        return [r for r in self.records.values() if r.batch_id == batch_id and date_from <= r.attendance_date <= date_to]

    def fetch_student_records(self, student_id, date_from, date_to):
        return [r for r in self.records.values() if r.student_id == student_id]

    def save_records(self, records):
        self.save_calls += 1
        if self.fail:
            raise StorageError("Saving attendance failed: connection lost")
        if self.reject:
            return SaveOutcome(success=False, message="Storage refused the batch")
        for r in records:
            existing = self.records.get(r.key)
            self.records[r.key] = replace(r, record_id=existing.record_id) if existing else r
        return SaveOutcome(success=True)


class InMemoryDrafts:
    def __init__(self, drafts=None):
        self.drafts = dict(drafts or {})

    def load_draft(self, batch_id, attendance_date):
        return list(self.drafts.get((batch_id, attendance_date), []))

    def save_draft(self, batch_id, attendance_date, entries):
        self.drafts[(batch_id, attendance_date)] = list(entries)

    def discard_draft(self, batch_id, attendance_date):
        self.drafts.pop((batch_id, attendance_date), None)


def _config(mode: AttendanceMode) -> AttendanceConfiguration:
    return AttendanceConfiguration(
        configuration_id="c1", school_id="sch1", batch_id="b1", academic_year_id="ay1", mode=mode
    )


def _period_settings() -> list[PeriodSetting]:
    out = []
    for day in ("tuesday", "thursday"):
        for n in range(1, 6):
            out.append(PeriodSetting(period_number=n, day_of_week=day, start_time=time(7 + n, 0), end_time=time(7 + n, 45)))
        out.append(PeriodSetting(period_number=6, day_of_week=day, start_time=time(13, 0), end_time=time(13, 30), is_break=True))
    return out


def _record(student_id, status, record_id) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=record_id,
        school_id="sch1",
        batch_id="b1",
        student_id=student_id,
        attendance_date=TUESDAY,
        mode=AttendanceMode.DAILY,
        status=status,
        marked_by="t0",
        marked_at=datetime(2024, 1, 16, 8, 0, 0),
    )


def _service(mode=AttendanceMode.DAILY, *, attendance=None, configured=True, drafts=None) -> AttendanceEntryService:
    configs = InMemoryConfigurations(_config(mode)) if configured else InMemoryConfigurations()
    return AttendanceEntryService(
        AttendanceConfigurationService(configs),
        PeriodGridService(InMemoryTimetable(_period_settings())),
        InMemoryStudents(3),
        attendance if attendance is not None else InMemoryAttendance(),
        clock=lambda: NOW,
        drafts=drafts,
    )


def test_sheet_loads_persisted_records_into_engine():
    attendance = InMemoryAttendance([_record("s1", AttendanceStatus.LATE, "r-1")])
    svc = _service(attendance=attendance)

    token = svc.select("b1", TUESDAY)
    sheet = svc.fetch_sheet(CTX, token)
    engine = svc.open_engine(sheet)

    assert svc.apply_sheet(engine, sheet) is True
    assert sheet.mode == AttendanceMode.DAILY
    assert len(sheet.students) == 3
    assert engine.status_of("s1") == AttendanceStatus.LATE
    assert not engine.is_dirty()


def test_stale_sheet_is_discarded():
    attendance = InMemoryAttendance([_record("s1", AttendanceStatus.LATE, "r-1")])
    svc = _service(attendance=attendance)

    old_token = svc.select("b1", TUESDAY)
    new_token = svc.select("b1", MONDAY)

    old_sheet = svc.fetch_sheet(CTX, old_token)
    old_engine = svc.open_engine(old_sheet)
    assert svc.apply_sheet(old_engine, old_sheet) is False
    assert old_engine.entries == []
    assert not old_engine.is_loaded

    new_sheet = svc.fetch_sheet(CTX, new_token)
    assert svc.apply_sheet(svc.open_engine(new_sheet), new_sheet) is True


def test_open_engine_without_configuration_fails():
    svc = _service(configured=False)
    sheet = svc.fetch_sheet(CTX, svc.select("b1", TUESDAY))

    assert sheet.configuration is None
    with pytest.raises(NotConfiguredError):
        svc.open_engine(sheet)


def test_daily_mark_all_and_save():
    attendance = InMemoryAttendance()
    svc = _service(attendance=attendance)
    sheet, engine = svc.load_sheet(CTX, "b1", TUESDAY)

    assert engine.bulk_mark_all("present") == 3
    result = svc.save(engine, CTX)

    assert result.success
    assert result.saved == 3
    assert result.skipped == 0
    assert len(attendance.records) == 3
    assert all(r.marked_at == NOW and r.marked_by == "t1" for r in attendance.records.values())
    assert not engine.is_dirty()


def test_period_sheet_on_tuesday_has_five_slots_per_student():
    svc = _service(AttendanceMode.PERIOD)
    sheet, engine = svc.load_sheet(CTX, "b1", TUESDAY)

    assert [s.period_number for s in sheet.grid.slots] == [1, 2, 3, 4, 5]
    assert engine.bulk_mark_all("present") == 15
    assert svc.explain_grid(sheet) is None


def test_period_sheet_on_monday_explains_missing_classes():
    svc = _service(AttendanceMode.PERIOD)
    sheet, engine = svc.load_sheet(CTX, "b1", MONDAY)

    assert sheet.grid.is_empty
    assert sheet.grid.reason == EmptyGridReason.NO_SLOTS_FOR_DAY
    assert sheet.available_days == ("tuesday", "thursday")

    explanation = svc.explain_grid(sheet)
    assert explanation.weekday == "monday"
    assert explanation.title == "No Classes on Monday"
    assert "Tuesday, Thursday" in explanation.message
    assert engine.bulk_mark_all("present") == 0


def test_save_without_identity_never_calls_storage():
    attendance = InMemoryAttendance()
    svc = _service(attendance=attendance)
    _, engine = svc.load_sheet(CTX, "b1", TUESDAY)
    engine.apply_mark("s1", "present")

    with pytest.raises(PreconditionError):
        svc.save(engine, AttendanceContext(actor_id=None, school_id="sch1"))
    assert attendance.save_calls == 0


def test_storage_failure_keeps_entries_dirty_for_retry():
    attendance = InMemoryAttendance(fail=True)
    svc = _service(attendance=attendance)
    _, engine = svc.load_sheet(CTX, "b1", TUESDAY)
    engine.bulk_mark_all("absent")

    with pytest.raises(StorageError):
        svc.save(engine, CTX)

    assert len(engine.entries) == 3
    assert engine.is_dirty()

    attendance.fail = False
    assert svc.save(engine, CTX).saved == 3
    assert not engine.is_dirty()


def test_rejected_save_raises_storage_error():
    svc = _service(attendance=InMemoryAttendance(reject=True))
    _, engine = svc.load_sheet(CTX, "b1", TUESDAY)
    engine.apply_mark("s2", "leave")

    with pytest.raises(StorageError, match="refused"):
        svc.save(engine, CTX)
    assert engine.is_dirty()


def test_save_reports_skipped_entries():
    svc = _service(AttendanceMode.PERIOD)
    _, engine = svc.load_sheet(CTX, "b1", TUESDAY)
    engine.apply_mark("s1", "present", period_number=1)
    engine.apply_mark("s2", "present")

    result = svc.save(engine, CTX)

    assert (result.saved, result.skipped) == (1, 1)
    assert "skipped" in result.message


def _draft_entry(student_id, status, *, session=None):
    return AttendanceEntry(
        entry_id=f"d-{student_id}",
        student_id=student_id,
        attendance_date=TUESDAY,
        status=status,
        session=session,
    )


def test_failed_save_keeps_a_draft_that_the_next_sheet_restores():
    drafts = InMemoryDrafts()
    svc = _service(attendance=InMemoryAttendance(fail=True), drafts=drafts)
    _, engine = svc.load_sheet(CTX, "b1", TUESDAY)
    engine.apply_mark("s1", "late", remarks="bus")

    with pytest.raises(StorageError, match="kept as a draft"):
        svc.save(engine, CTX)

    assert [e.student_id for e in drafts.load_draft("b1", TUESDAY)] == ["s1"]
    _, reopened = svc.load_sheet(CTX, "b1", TUESDAY)
    assert reopened.status_of("s1") == AttendanceStatus.LATE
    assert reopened.entries[0].remarks == "bus"
    assert reopened.is_dirty()


def test_rejected_save_keeps_a_draft():
    drafts = InMemoryDrafts()
    svc = _service(attendance=InMemoryAttendance(reject=True), drafts=drafts)
    _, engine = svc.load_sheet(CTX, "b1", TUESDAY)
    engine.apply_mark("s2", "leave")

    with pytest.raises(StorageError, match="refused the batch. Changes are kept as a draft"):
        svc.save(engine, CTX)
    assert ("b1", TUESDAY) in drafts.drafts


def test_successful_save_discards_the_draft():
    drafts = InMemoryDrafts()
    svc = _service(drafts=drafts)
    _, engine = svc.load_sheet(CTX, "b1", TUESDAY)
    engine.apply_mark("s2", "absent")
    assert svc.keep_draft(engine) is True

    svc.save(engine, CTX)

    assert drafts.drafts == {}


def test_clear_discards_the_draft():
    drafts = InMemoryDrafts({("b1", TUESDAY): [_draft_entry("s1", AttendanceStatus.PRESENT)]})
    svc = _service(drafts=drafts)
    _, engine = svc.load_sheet(CTX, "b1", TUESDAY)
    assert engine.status_of("s1") == AttendanceStatus.PRESENT

    svc.clear(engine)

    assert engine.entries == []
    assert engine.is_cleared
    assert drafts.drafts == {}


def test_keep_draft_of_unchanged_sheet_discards_it():
    drafts = InMemoryDrafts({("b1", TUESDAY): []})
    svc = _service(attendance=InMemoryAttendance([_record("s1", AttendanceStatus.PRESENT, "r-1")]), drafts=drafts)
    _, engine = svc.load_sheet(CTX, "b1", TUESDAY)

    assert svc.keep_draft(engine) is False
    assert drafts.drafts == {}


def test_restored_draft_drops_entries_of_another_mode():
    drafts = InMemoryDrafts(
        {
            ("b1", TUESDAY): [
                _draft_entry("s1", AttendanceStatus.PRESENT, session=SessionLabel.MORNING),
                _draft_entry("s2", AttendanceStatus.ABSENT),
            ]
        }
    )
    svc = _service(AttendanceMode.SESSION, drafts=drafts)

    _, engine = svc.load_sheet(CTX, "b1", TUESDAY)

    assert engine.draft_entries_dropped == 1
    assert [e.student_id for e in engine.entries] == ["s1"]
    assert svc.restore_draft(engine) == 1
