from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, Iterable, Optional, Sequence

from ..common.validators import optional_text, require_non_empty
from ..core.context import AttendanceContext
from ..core.enums import AttendanceMode, AttendanceStatus, SessionLabel
from ..core.exceptions import PreconditionError, ValidationError
from ..students.model import Student
from ..timetable.model import PeriodSlot
from .factory import GridStrategyFactory
from .model import AttendanceEntry, AttendanceRecord, NaturalKey, SavePayload
from .status_cycle import StatusCycle

logger = logging.getLogger(__name__)


def _entry_from_record(record: AttendanceRecord) -> AttendanceEntry:
    return AttendanceEntry(
        entry_id=record.record_id,
        student_id=record.student_id,
        attendance_date=record.attendance_date,
        status=record.status,
        period_number=record.period_number,
        session=record.session,
        remarks=record.remarks,
        is_persisted=True,
    )


def _period_number(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid period number: {value!r}")


class EntryReconciliationEngine:
    """In-memory attendance marks of one batch on one date.

    Entries are keyed by natural key (student, date, period, session), so
    marking the same cell twice updates one entry. `load` replaces the entry
    set with persisted records and keeps them as the snapshot `is_dirty`
    compares against.
    """

    def __init__(
        self,
        batch_id: str,
        attendance_date: date,
        mode: AttendanceMode | str,
        *,
        students: Sequence[Student] = (),
        period_slots: Sequence[PeriodSlot] = (),
        id_factory: Callable[[], str] | None = None,
        status_cycle: StatusCycle | None = None,
        strategy_factory: GridStrategyFactory | None = None,
    ):
        self.batch_id = require_non_empty(batch_id, "batch_id")
        self.attendance_date = attendance_date
        self.mode = AttendanceMode.parse(mode)
        self.students = tuple(students)
        self.period_slots = tuple(period_slots)
        self._strategy = (strategy_factory or GridStrategyFactory()).for_mode(self.mode)
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._cycle = status_cycle or StatusCycle()

        self._entries: Dict[NaturalKey, AttendanceEntry] = {}
        self._snapshot: Optional[Dict[NaturalKey, AttendanceEntry]] = None
        self._cleared = False
        self._loaded = False
        self.draft_entries_dropped = 0

    # ----- state -----

    @property
    def entries(self) -> list[AttendanceEntry]:
        """Entries in the order they were first marked."""
        return list(self._entries.values())

    @property
    def is_cleared(self) -> bool:
        return self._cleared

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def _key(self, student_id: str, period_number, session) -> NaturalKey:
        return NaturalKey(
            require_non_empty(student_id, "student_id"),
            self.attendance_date,
            _period_number(period_number),
            SessionLabel.parse(session),
        )

    def load(self, records: Iterable[AttendanceRecord]) -> int:
        """Replace the entries with the persisted records of this batch and date.

        With no records, unsaved local edits are kept, entries that came from
        storage are dropped and there is no snapshot.
        Returns the number of records loaded.
        """
        mine = [r for r in records if r.batch_id == self.batch_id and r.attendance_date == self.attendance_date]
        self._loaded = True

        if not mine:
            self._entries = {k: e for k, e in self._entries.items() if not e.is_persisted}
            self._snapshot = None
            return 0

        loaded = {r.key: _entry_from_record(r) for r in mine}
        self._entries = dict(loaded)
        self._snapshot = dict(loaded)
        self._cleared = False
        return len(loaded)

    def is_dirty(self) -> bool:
        if self._cleared and not self._entries:
            return False
        if self._snapshot is None:
            return bool(self._entries)
        if len(self._entries) != len(self._snapshot):
            return True

        for key, entry in self._entries.items():
            saved = self._snapshot.get(key)
            if saved is None:
                return True
            if entry.status != saved.status or (entry.remarks or None) != (saved.remarks or None):
                return True
            if entry.is_persisted and entry.entry_id != saved.entry_id:
                return True
        return False

    # ----- marking -----

    def apply_mark(
        self,
        student_id: str,
        status: AttendanceStatus | str,
        period_number: Optional[int] = None,
        session: SessionLabel | str | None = None,
        remarks: Optional[str] = None,
    ) -> AttendanceEntry:
        status = AttendanceStatus.parse(status)
        key = self._key(student_id, period_number, session)
        existing = self._entries.get(key)

        entry = AttendanceEntry(
            entry_id=existing.entry_id if existing else self._new_id(),
            student_id=key.student_id,
            attendance_date=key.attendance_date,
            status=status,
            period_number=key.period_number,
            session=key.session,
            remarks=optional_text(remarks),
            is_persisted=existing.is_persisted if existing else False,
        )
        self._entries[key] = entry
        self._cleared = False
        return entry

    def unmark(
        self,
        student_id: str,
        period_number: Optional[int] = None,
        session: SessionLabel | str | None = None,
    ) -> bool:
        return self._entries.pop(self._key(student_id, period_number, session), None) is not None

    def status_of(
        self,
        student_id: str,
        period_number: Optional[int] = None,
        session: SessionLabel | str | None = None,
    ) -> Optional[AttendanceStatus]:
        entry = self._entries.get(self._key(student_id, period_number, session))
        return entry.status if entry else None

    def cycle(
        self,
        student_id: str,
        period_number: Optional[int] = None,
        session: SessionLabel | str | None = None,
        cycle: StatusCycle | None = None,
    ) -> Optional[AttendanceStatus]:
        """Advance one cell to its next status; returns the new status (None = unmarked)."""
        key = self._key(student_id, period_number, session)
        existing = self._entries.get(key)
        nxt = (cycle or self._cycle).next(existing.status if existing else None)

        if nxt is None:
            self._entries.pop(key, None)
            return None
        self.apply_mark(
            key.student_id,
            nxt,
            key.period_number,
            key.session,
            remarks=existing.remarks if existing else None,
        )
        return nxt

    def bulk_mark_all(self, status: AttendanceStatus | str) -> int:
        """Mark every student for every sub-unit of the mode; replaces all entries."""
        status = AttendanceStatus.parse(status)
        units = self._strategy.sub_units(self.period_slots)

        marked: Dict[NaturalKey, AttendanceEntry] = {}
        for student in self.students:
            for period_number, session in units:
                key = NaturalKey(student.student_id, self.attendance_date, period_number, session)
                existing = self._entries.get(key)
                marked[key] = AttendanceEntry(
                    entry_id=existing.entry_id if existing else self._new_id(),
                    student_id=student.student_id,
                    attendance_date=self.attendance_date,
                    status=status,
                    period_number=period_number,
                    session=session,
                    is_persisted=existing.is_persisted if existing else False,
                )

        self._entries = marked
        self._cleared = False
        return len(marked)

    def clear(self) -> None:
        self._entries = {}
        self._snapshot = None
        self._cleared = True

    def restore_draft(self, entries: Iterable[AttendanceEntry]) -> int:
        """Put back entries kept from an earlier unsaved sheet.

        Entries for another date or with the wrong shape for the mode are
        dropped. Returns how many were dropped; `draft_entries_dropped` keeps
        the running total.
        """
        dropped = 0
        for entry in entries:
            if (
                entry.attendance_date != self.attendance_date
                or not entry.student_id
                or not self._strategy.is_valid_shape(entry.period_number, entry.session)
            ):
                dropped += 1
                continue
            self._entries[entry.key] = entry
            self._cleared = False
        self.draft_entries_dropped += dropped

        if dropped:
            logger.warning(
                "Removed %d invalid draft attendance entries (batch=%s date=%s mode=%s)",
                dropped,
                self.batch_id,
                self.attendance_date.isoformat(),
                self.mode.value,
            )
        return dropped

    # ----- saving -----

    def build_save_payload(self, ctx: AttendanceContext, marked_at: datetime) -> SavePayload:
        """Records ready for storage; entries with the wrong shape for the mode are skipped."""
        ctx.require_identity()
        if not self._entries:
            raise PreconditionError("No attendance has been marked")

        records: list[AttendanceRecord] = []
        skipped: list[AttendanceEntry] = []
        for entry in self._entries.values():
            if not entry.student_id or not self._strategy.is_valid_shape(entry.period_number, entry.session):
                skipped.append(entry)
                continue
            records.append(
                AttendanceRecord(
                    record_id=entry.entry_id,
                    school_id=str(ctx.school_id),
                    batch_id=self.batch_id,
                    academic_year_id=ctx.academic_year_id,
                    student_id=entry.student_id,
                    attendance_date=entry.attendance_date,
                    mode=self.mode,
                    status=entry.status,
                    period_number=entry.period_number,
                    session=entry.session,
                    remarks=entry.remarks,
                    marked_by=str(ctx.actor_id),
                    marked_at=marked_at,
                )
            )

        if skipped:
            logger.warning(
                "Skipping %d attendance entries that do not fit %s mode (batch=%s date=%s)",
                len(skipped),
                self.mode.value,
                self.batch_id,
                self.attendance_date.isoformat(),
            )
        if not records:
            raise ValidationError(
                f"No valid attendance records to save: {len(skipped)} entries do not fit {self.mode.value} attendance"
            )
        return SavePayload(records=tuple(records), skipped=tuple(skipped))

    def mark_saved(self, payload: SavePayload) -> None:
        """Storage confirmed `payload`: it becomes the snapshot, skipped entries are dropped."""
        for entry in payload.skipped:
            current = self._entries.get(entry.key)
            if current is not None and current.entry_id == entry.entry_id:
                del self._entries[entry.key]

        for record in payload.records:
            current = self._entries.get(record.key)
            if current is not None and current.entry_id == record.record_id:
                self._entries[record.key] = replace(current, is_persisted=True)

        self._snapshot = {r.key: _entry_from_record(r) for r in payload.records}
        self._cleared = False
