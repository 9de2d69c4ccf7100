from datetime import date

import pytest

from src.school_attendance.school_attendance.common.datetime_utils import parse_hhmm, parse_iso_date, weekday_name
from src.school_attendance.school_attendance.core.context import AttendanceContext
from src.school_attendance.school_attendance.core.enums import (
    AttendanceMode,
    AttendanceStatus,
    LeaveType,
    RequestStatus,
    Role,
    SessionLabel,
)
from src.school_attendance.school_attendance.core.exceptions import (
    AuthorizationError,
    PreconditionError,
    ValidationError,
)


@pytest.mark.parametrize(
    "raw, mode",
    [
        ("daily", AttendanceMode.DAILY),
        (" Period ", AttendanceMode.PERIOD),
        ("period_wise", AttendanceMode.PERIOD),
        ("session_based", AttendanceMode.SESSION),
    ],
)
def test_mode_parsing_accepts_legacy_names(raw, mode):
    assert AttendanceMode.parse(raw) == mode


@pytest.mark.parametrize("raw", ["event_based", "", None])
def test_mode_parsing_rejects_unknown(raw):
    with pytest.raises(ValidationError):
        AttendanceMode.parse(raw)


def test_status_and_session_parsing():
    assert AttendanceStatus.parse("LEAVE") == AttendanceStatus.LEAVE
    assert SessionLabel.parse("") is None
    with pytest.raises(ValidationError):
        SessionLabel.parse("evening")


@pytest.mark.parametrize(
    "parse",
    [AttendanceMode.parse, AttendanceStatus.parse, SessionLabel.parse, LeaveType.parse, RequestStatus.parse],
)
@pytest.mark.parametrize("raw", [1, 2.5, ["present"], {"status": "present"}])
def test_parsers_reject_non_string_values(parse, raw):
    with pytest.raises(ValidationError):
        parse(raw)


def test_context_requires_actor_and_school():
    AttendanceContext(actor_id="t1", school_id="sch1").require_identity()

    with pytest.raises(PreconditionError):
        AttendanceContext(actor_id="  ", school_id="sch1").require_identity()
    with pytest.raises(PreconditionError):
        AttendanceContext(actor_id="t1", school_id=None).require_identity()


def test_context_admin_check():
    AttendanceContext(actor_id="a1", school_id="sch1", role=Role.ADMIN).require_admin()

    with pytest.raises(AuthorizationError):
        AttendanceContext(actor_id="t1", school_id="sch1").require_admin()


def test_weekday_is_calendar_weekday():
    assert weekday_name(date(2024, 1, 15)) == "monday"
    assert weekday_name(date(2024, 1, 21)) == "sunday"


def test_date_and_time_parsing():
    assert parse_iso_date("2024-01-16") == date(2024, 1, 16)
    assert parse_hhmm("") is None
    with pytest.raises(ValidationError):
        parse_iso_date("16-01-2024")
    with pytest.raises(ValidationError):
        parse_hhmm("25:99")
