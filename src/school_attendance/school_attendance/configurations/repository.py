from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceConfiguration


class ConfigurationRepository(Protocol):
    def get_active_for_batch(self, batch_id: str) -> Optional[AttendanceConfiguration]:
        raise NotImplementedError

    def get_active_school_default(self, school_id: str) -> Optional[AttendanceConfiguration]:
        raise NotImplementedError

    def list_active(self, school_id: str) -> Sequence[AttendanceConfiguration]:
        raise NotImplementedError

    def replace_active(self, configuration: AttendanceConfiguration) -> None:
        """Deactivate the batch's active configuration and insert `configuration` as active.

        Both steps run in one transaction.
        """

        raise NotImplementedError
