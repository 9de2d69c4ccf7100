from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from ..core.enums import AttendanceMode


@dataclass(frozen=True)
class AttendanceConfiguration:
    """Attendance mode of a batch; batch_id None marks the school default."""

    configuration_id: str
    school_id: str
    batch_id: Optional[str]
    academic_year_id: Optional[str]
    mode: AttendanceMode
    auto_absent_enabled: bool = False
    auto_absent_time: Optional[time] = None
    notification_enabled: bool = True
    is_active: bool = True
    created_at: Optional[datetime] = None

    @property
    def is_school_default(self) -> bool:
        return self.batch_id is None
