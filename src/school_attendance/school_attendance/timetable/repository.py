from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import BatchTimetableMapping, PeriodSetting, TimetableConfiguration


class TimetableRepository(Protocol):
    def list_batch_mappings(self, batch_id: str) -> Sequence[BatchTimetableMapping]:
        """All mappings of a batch, newest effective_from first."""

        raise NotImplementedError

    def get_configuration(self, configuration_id: str) -> Optional[TimetableConfiguration]:
        raise NotImplementedError

    def get_school_default(
        self, school_id: str, academic_year_id: Optional[str]
    ) -> Optional[TimetableConfiguration]:
        """Active default configuration of the school (for the academic year when given)."""

        raise NotImplementedError

    def list_period_settings(self, configuration_id: str) -> Sequence[PeriodSetting]:
        raise NotImplementedError
