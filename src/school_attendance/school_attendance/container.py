from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import GridStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.mysql_draft_repository import MySQLAttendanceDraftRepository
from .attendance.service import AttendanceEntryService
from .attendance.status_cycle import StatusCycle
from .configurations.mysql_configuration_repository import MySQLConfigurationRepository
from .configurations.service import AttendanceConfigurationService
from .database.connection import DBConfig, DatabaseConnection
from .leave.mysql_leave_repository import MySQLLeaveRequestRepository
from .leave.service import LeaveRequestService
from .reports.service import AttendanceReportService
from .students.mysql_student_repository import MySQLStudentRepository
from .timetable.mysql_timetable_repository import MySQLTimetableRepository
from .timetable.service import PeriodGridService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    configurations_repo: MySQLConfigurationRepository
    timetable_repo: MySQLTimetableRepository
    students_repo: MySQLStudentRepository
    attendance_repo: MySQLAttendanceRepository
    draft_repo: MySQLAttendanceDraftRepository
    leave_repo: MySQLLeaveRequestRepository

    configuration_service: AttendanceConfigurationService
    period_grid_service: PeriodGridService
    attendance_entry_service: AttendanceEntryService
    leave_request_service: LeaveRequestService
    report_service: AttendanceReportService


def build_container(*, db_config: dict, status_cycle_wraps_to_unmarked: bool = False) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    configurations_repo = MySQLConfigurationRepository(conn)
    timetable_repo = MySQLTimetableRepository(conn)
    students_repo = MySQLStudentRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    draft_repo = MySQLAttendanceDraftRepository(conn)
    leave_repo = MySQLLeaveRequestRepository(conn)

    configuration_service = AttendanceConfigurationService(configurations_repo)
    period_grid_service = PeriodGridService(timetable_repo)
    attendance_entry_service = AttendanceEntryService(
        configuration_service,
        period_grid_service,
        students_repo,
        attendance_repo,
        status_cycle=StatusCycle(wrap_to_unmarked=status_cycle_wraps_to_unmarked),
        strategy_factory=GridStrategyFactory(),
        drafts=draft_repo,
    )
    leave_request_service = LeaveRequestService(leave_repo)
    report_service = AttendanceReportService(attendance_repo, students_repo)

    return Container(
        conn=conn,
        configurations_repo=configurations_repo,
        timetable_repo=timetable_repo,
        students_repo=students_repo,
        attendance_repo=attendance_repo,
        draft_repo=draft_repo,
        leave_repo=leave_repo,
        configuration_service=configuration_service,
        period_grid_service=period_grid_service,
        attendance_entry_service=attendance_entry_service,
        leave_request_service=leave_request_service,
        report_service=report_service,
    )
