from __future__ import annotations

from typing import Optional

from ..core.enums import AttendanceStatus

# unmarked -> present -> absent -> late -> leave
CYCLE_ORDER: tuple[AttendanceStatus, ...] = (
    AttendanceStatus.PRESENT,
    AttendanceStatus.ABSENT,
    AttendanceStatus.LATE,
    AttendanceStatus.LEAVE,
)


class StatusCycle:
    """Next status for a one-tap marking control.

    From `leave` the cycle goes back to `present`, unless `wrap_to_unmarked`
    is set, in which case it returns to unmarked (None).
    """

    def __init__(self, wrap_to_unmarked: bool = False):
        self.wrap_to_unmarked = bool(wrap_to_unmarked)

    def next(self, current: Optional[AttendanceStatus]) -> Optional[AttendanceStatus]:
        if current is None:
            return CYCLE_ORDER[0]

        idx = CYCLE_ORDER.index(AttendanceStatus.parse(current))
        if idx + 1 < len(CYCLE_ORDER):
            return CYCLE_ORDER[idx + 1]
        return None if self.wrap_to_unmarked else CYCLE_ORDER[0]
