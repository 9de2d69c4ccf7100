from __future__ import annotations

import logging
import uuid
from datetime import datetime, time
from typing import Callable, Optional, Sequence

from ..core.context import AttendanceContext
from ..core.enums import AttendanceMode
from ..core.exceptions import NotConfiguredError, ValidationError
from .model import AttendanceConfiguration
from .repository import ConfigurationRepository

logger = logging.getLogger(__name__)


class AttendanceConfigurationService:
    """Resolve and switch the attendance mode of a batch."""

    def __init__(
        self,
        configurations: ConfigurationRepository,
        *,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._configurations = configurations
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._clock = clock or datetime.now

    def get_active(self, ctx: AttendanceContext, batch_id: str) -> Optional[AttendanceConfiguration]:
        """Batch-specific active configuration, else the school default, else None."""
        config = self._configurations.get_active_for_batch(batch_id)
        if config and config.is_active:
            return config

        if ctx.school_id:
            default = self._configurations.get_active_school_default(ctx.school_id)
            if default and default.is_active:
                return default
        return None

    def require_active(self, ctx: AttendanceContext, batch_id: str) -> AttendanceConfiguration:
        config = self.get_active(ctx, batch_id)
        if not config:
            raise NotConfiguredError(
                "No attendance configuration found for this batch. Ask an admin to set up the attendance mode."
            )
        return config

    def list_active(self, ctx: AttendanceContext) -> Sequence[AttendanceConfiguration]:
        ctx.require_identity()
        return self._configurations.list_active(str(ctx.school_id))

    def switch_mode(
        self,
        ctx: AttendanceContext,
        batch_id: Optional[str],
        mode: AttendanceMode | str,
        *,
        auto_absent_enabled: bool = False,
        auto_absent_time: Optional[time] = None,
        notification_enabled: bool = True,
    ) -> AttendanceConfiguration:
        """Make `mode` the active configuration of a batch (or the school default when batch_id is None).

        The previous configuration is deactivated, never edited.
        """
        ctx.require_admin()
        ctx.require_identity()

        mode = AttendanceMode.parse(mode)
        if auto_absent_enabled and auto_absent_time is None:
            raise ValidationError("Auto-absent time is required when auto-absent is enabled")

        auto_absent_time = auto_absent_time if auto_absent_enabled else None
        current = (
            self._configurations.get_active_for_batch(batch_id)
            if batch_id
            else self._configurations.get_active_school_default(str(ctx.school_id))
        )
        if (
            current
            and current.mode == mode
            and current.auto_absent_enabled == bool(auto_absent_enabled)
            and current.auto_absent_time == auto_absent_time
            and current.notification_enabled == bool(notification_enabled)
        ):
            return current

        config = AttendanceConfiguration(
            configuration_id=self._new_id(),
            school_id=str(ctx.school_id),
            batch_id=batch_id or None,
            academic_year_id=ctx.academic_year_id,
            mode=mode,
            auto_absent_enabled=bool(auto_absent_enabled),
            auto_absent_time=auto_absent_time,
            notification_enabled=bool(notification_enabled),
            is_active=True,
            created_at=self._clock(),
        )
        self._configurations.replace_active(config)
        logger.info(
            "Attendance mode of %s switched %s -> %s by %s",
            batch_id or f"school {ctx.school_id}",
            current.mode.value if current else "none",
            mode.value,
            ctx.actor_id,
        )
        return config
