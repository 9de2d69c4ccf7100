from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional

from ..configurations.model import AttendanceConfiguration
from ..configurations.service import AttendanceConfigurationService
from ..core.context import AttendanceContext
from ..core.enums import AttendanceMode
from ..core.exceptions import NotConfiguredError, StorageError
from ..students.model import Student
from ..students.repository import StudentRepository
from ..timetable.model import GridExplanation, PeriodGrid
from ..timetable.service import PeriodGridService
from .factory import GridStrategyFactory
from .drafts import AttendanceDraftRepository
from .model import AttendanceRecord, SaveResult
from .reconciliation import EntryReconciliationEngine
from .repository import AttendanceRepository
from .selection import SelectionToken, SelectionTracker
from .status_cycle import StatusCycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceSheet:
    """Everything needed to show the marking grid of one batch on one date."""

    token: SelectionToken
    configuration: Optional[AttendanceConfiguration]
    students: tuple[Student, ...] = ()
    grid: Optional[PeriodGrid] = None
    available_days: tuple[str, ...] = ()
    records: tuple[AttendanceRecord, ...] = field(default_factory=tuple)

    @property
    def batch_id(self) -> str:
        return self.token.batch_id

    @property
    def attendance_date(self) -> date:
        return self.token.attendance_date

    @property
    def mode(self) -> Optional[AttendanceMode]:
        return self.configuration.mode if self.configuration else None


class AttendanceEntryService:
    def __init__(
        self,
        configurations: AttendanceConfigurationService,
        grids: PeriodGridService,
        students: StudentRepository,
        attendance: AttendanceRepository,
        *,
        status_cycle: StatusCycle | None = None,
        strategy_factory: GridStrategyFactory | None = None,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
        drafts: AttendanceDraftRepository | None = None,
    ):
        self._configurations = configurations
        self._grids = grids
        self._students = students
        self._attendance = attendance
        self._cycle = status_cycle or StatusCycle()
        self._factory = strategy_factory or GridStrategyFactory()
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._clock = clock or datetime.now
        self._drafts = drafts
        self._selection = SelectionTracker()

    @property
    def status_cycle(self) -> StatusCycle:
        return self._cycle

    def select(self, batch_id: str, on_date: date) -> SelectionToken:
        return self._selection.select(batch_id, on_date)

    def fetch_sheet(self, ctx: AttendanceContext, token: SelectionToken) -> AttendanceSheet:
        ctx.require_identity()

        config = self._configurations.get_active(ctx, token.batch_id)
        students = tuple(self._students.list_by_batch(school_id=str(ctx.school_id), batch_id=token.batch_id))

        grid = None
        available_days: tuple[str, ...] = ()
        if config and config.mode == AttendanceMode.PERIOD:
            grid = self._grids.get_period_grid(ctx, token.batch_id, token.attendance_date)
            available_days = tuple(
                self._grids.get_available_days(ctx, token.batch_id, token.attendance_date)
            )

        records = tuple(self._attendance.fetch_records(token.batch_id, token.attendance_date, token.attendance_date))
        return AttendanceSheet(
            token=token,
            configuration=config,
            students=students,
            grid=grid,
            available_days=available_days,
            records=records,
        )

    def open_engine(self, sheet: AttendanceSheet) -> EntryReconciliationEngine:
        if not sheet.configuration:
            raise NotConfiguredError(
                "No attendance configuration found for this batch. Ask an admin to set up the attendance mode."
            )
        return EntryReconciliationEngine(
            sheet.batch_id,
            sheet.attendance_date,
            sheet.configuration.mode,
            students=sheet.students,
            period_slots=sheet.grid.slots if sheet.grid else (),
            id_factory=self._new_id,
            status_cycle=self._cycle,
            strategy_factory=self._factory,
        )

    def apply_sheet(self, engine: EntryReconciliationEngine, sheet: AttendanceSheet) -> bool:
        """Load the sheet's records into the engine unless a newer selection was made meanwhile."""
        if not self._selection.is_current(sheet.token):
            logger.info(
                "Discarding stale attendance response for batch=%s date=%s (generation %d)",
                sheet.batch_id,
                sheet.attendance_date.isoformat(),
                sheet.token.generation,
            )
            return False
        if engine.batch_id != sheet.batch_id or engine.attendance_date != sheet.attendance_date:
            logger.info("Attendance response for batch=%s does not match the open sheet", sheet.batch_id)
            return False

        engine.load(sheet.records)
        return True

    def load_sheet(
        self, ctx: AttendanceContext, batch_id: str, on_date: date
    ) -> tuple[AttendanceSheet, EntryReconciliationEngine]:
        """Fetch and load a sheet in one call, with any kept draft on top.

        For request/response callers: the sheet is not tracked as the current
        selection, so concurrent requests never discard each other.
        """
        sheet = self.fetch_sheet(ctx, SelectionToken(0, batch_id, on_date))
        engine = self.open_engine(sheet)
        engine.load(sheet.records)
        self.restore_draft(engine)
        return sheet, engine

    # ----- drafts -----

    def restore_draft(self, engine: EntryReconciliationEngine) -> int:
        """Apply the kept draft of the engine's sheet; returns how many draft entries were dropped."""
        if self._drafts is None:
            return 0
        entries = self._drafts.load_draft(engine.batch_id, engine.attendance_date)
        return engine.restore_draft(entries) if entries else 0

    def keep_draft(self, engine: EntryReconciliationEngine) -> bool:
        """Keep unsaved marks until they are saved; a sheet without changes drops its draft."""
        if self._drafts is None:
            return False
        if not engine.is_dirty():
            self._drafts.discard_draft(engine.batch_id, engine.attendance_date)
            return False
        self._drafts.save_draft(engine.batch_id, engine.attendance_date, engine.entries)
        return True

    def clear(self, engine: EntryReconciliationEngine) -> None:
        engine.clear()
        if self._drafts is not None:
            self._drafts.discard_draft(engine.batch_id, engine.attendance_date)

    def _keep_draft_after_failure(self, engine: EntryReconciliationEngine) -> bool:
        try:
            return self.keep_draft(engine)
        except StorageError:
            logger.exception("Keeping the attendance draft failed (batch=%s)", engine.batch_id)
            return False

    def save(
        self, engine: EntryReconciliationEngine, ctx: AttendanceContext, *, now: datetime | None = None
    ) -> SaveResult:
        payload = engine.build_save_payload(ctx, now or self._clock())

        try:
            outcome = self._attendance.save_records(payload.records)
        except StorageError as e:
            logger.exception(
                "Saving %d attendance records failed (batch=%s date=%s)",
                len(payload.records),
                engine.batch_id,
                engine.attendance_date.isoformat(),
            )
            if self._keep_draft_after_failure(engine):
                raise StorageError(f"{e}. Changes are kept as a draft.") from e
            raise
        if not outcome.success:
            logger.error("Attendance storage rejected the save: %s", outcome.message)
            message = outcome.message or "Failed to save attendance"
            if self._keep_draft_after_failure(engine):
                message += ". Changes are kept as a draft."
            raise StorageError(message)

        engine.mark_saved(payload)
        if self._drafts is not None:
            try:
                self._drafts.discard_draft(engine.batch_id, engine.attendance_date)
            except StorageError:
                logger.exception("Discarding the saved attendance draft failed (batch=%s)", engine.batch_id)

        saved, skipped = len(payload.records), len(payload.skipped)
        message = f"Attendance saved for {saved} entries"
        if skipped:
            message += f" ({skipped} invalid entries skipped)"
        logger.info(
            "%s marked attendance: batch=%s date=%s saved=%d skipped=%d",
            ctx.actor_id,
            engine.batch_id,
            engine.attendance_date.isoformat(),
            saved,
            skipped,
        )
        return SaveResult(success=True, message=message, saved=saved, skipped=skipped)

    def explain_grid(self, sheet: AttendanceSheet) -> Optional[GridExplanation]:
        """Why the period grid is empty, or None when there is nothing to explain."""
        if sheet.mode != AttendanceMode.PERIOD or sheet.grid is None or not sheet.grid.is_empty:
            return None
        return PeriodGridService.explain_empty_grid(sheet.attendance_date, sheet.available_days)
