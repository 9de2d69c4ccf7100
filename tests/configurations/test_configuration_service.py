from __future__ import annotations

from dataclasses import replace
from datetime import datetime, time

import pytest

from src.school_attendance.school_attendance.configurations.model import AttendanceConfiguration
from src.school_attendance.school_attendance.configurations.service import AttendanceConfigurationService
from src.school_attendance.school_attendance.core.context import AttendanceContext
from src.school_attendance.school_attendance.core.enums import AttendanceMode, Role
from src.school_attendance.school_attendance.core.exceptions import (
    AuthorizationError,
    NotConfiguredError,
    PreconditionError,
    ValidationError,
)

TEACHER = AttendanceContext(actor_id="t1", school_id="sch1", academic_year_id="ay1")
ADMIN = AttendanceContext(actor_id="a1", school_id="sch1", academic_year_id="ay1", role=Role.ADMIN)


class InMemoryConfigurations:
    """Returns whatever is stored for the batch, active or not, like a careless query would."""

    def __init__(self, *configs: AttendanceConfiguration):
        self.configs = list(configs)
        self.replaced = 0

    def get_active_for_batch(self, batch_id):
        return next((c for c in self.configs if c.batch_id == batch_id), None)

    def get_active_school_default(self, school_id):
        return next((c for c in self.configs if c.batch_id is None and c.school_id == school_id and c.is_active), None)

    def list_active(self, school_id):
        return [c for c in self.configs if c.school_id == school_id and c.is_active]

    def replace_active(self, configuration):
        self.replaced += 1
        self.configs = [
            replace(c, is_active=False) if c.batch_id == configuration.batch_id and c.school_id == configuration.school_id else c
            for c in self.configs
        ]
        self.configs.insert(0, configuration)


def _cfg(cid, batch_id, mode, *, active=True):
    return AttendanceConfiguration(
        configuration_id=cid, school_id="sch1", batch_id=batch_id, academic_year_id="ay1", mode=mode, is_active=active
    )


def _service(repo):
    return AttendanceConfigurationService(repo, id_factory=lambda: "new-cfg", clock=lambda: datetime(2024, 1, 16, 7, 0))


def test_batch_configuration_wins_over_school_default():
    repo = InMemoryConfigurations(_cfg("c-b1", "b1", AttendanceMode.PERIOD), _cfg("c-school", None, AttendanceMode.DAILY))

    assert _service(repo).get_active(TEACHER, "b1").configuration_id == "c-b1"


def test_falls_back_to_school_default():
    repo = InMemoryConfigurations(_cfg("c-school", None, AttendanceMode.SESSION))

    config = _service(repo).get_active(TEACHER, "b1")

    assert config.mode == AttendanceMode.SESSION
    assert config.is_school_default


def test_inactive_batch_configuration_is_never_returned():
    repo = InMemoryConfigurations(
        _cfg("c-b1", "b1", AttendanceMode.PERIOD, active=False), _cfg("c-school", None, AttendanceMode.DAILY)
    )

    assert _service(repo).get_active(TEACHER, "b1").configuration_id == "c-school"


def test_not_configured():
    svc = _service(InMemoryConfigurations())

    assert svc.get_active(TEACHER, "b1") is None
    with pytest.raises(NotConfiguredError) as exc:
        svc.require_active(TEACHER, "b1")
    assert isinstance(exc.value, PreconditionError)


def test_only_admin_switches_mode():
    with pytest.raises(AuthorizationError):
        _service(InMemoryConfigurations()).switch_mode(TEACHER, "b1", "period")


def test_switch_mode_deactivates_previous_configuration():
    repo = InMemoryConfigurations(_cfg("c-b1", "b1", AttendanceMode.DAILY))

    config = _service(repo).switch_mode(ADMIN, "b1", "period_wise")

    assert config.configuration_id == "new-cfg"
    assert config.mode == AttendanceMode.PERIOD
    assert config.created_at == datetime(2024, 1, 16, 7, 0)
    assert [(c.configuration_id, c.is_active) for c in repo.configs] == [("new-cfg", True), ("c-b1", False)]


def test_switching_to_current_settings_is_a_no_op():
    repo = InMemoryConfigurations(_cfg("c-b1", "b1", AttendanceMode.DAILY))

    config = _service(repo).switch_mode(ADMIN, "b1", "daily", notification_enabled=True)

    assert config.configuration_id == "c-b1"
    assert repo.replaced == 0


def test_auto_absent_needs_a_time():
    svc = _service(InMemoryConfigurations())

    with pytest.raises(ValidationError):
        svc.switch_mode(ADMIN, "b1", "daily", auto_absent_enabled=True)

    config = svc.switch_mode(ADMIN, "b1", "daily", auto_absent_enabled=True, auto_absent_time=time(10, 0))
    assert config.auto_absent_time == time(10, 0)


def test_unsupported_mode_is_rejected():
    with pytest.raises(ValidationError):
        _service(InMemoryConfigurations()).switch_mode(ADMIN, "b1", "event_based")


def test_list_active_requires_identity():
    with pytest.raises(PreconditionError):
        _service(InMemoryConfigurations()).list_active(AttendanceContext(actor_id=None, school_id=None))
