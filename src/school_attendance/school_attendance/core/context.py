from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import Role
from .exceptions import AuthorizationError, PreconditionError


@dataclass(frozen=True)
class AttendanceContext:
    """Who is acting, for which school and academic year.

    Supplied by the caller (the auth layer) on every service call instead of
    being read from global state.
    """

    actor_id: Optional[str]
    school_id: Optional[str]
    academic_year_id: Optional[str] = None
    role: Role = Role.TEACHER

    def require_identity(self) -> None:
        if not (self.actor_id or "").strip():
            raise PreconditionError("Acting user is not known; sign in again")
        if not (self.school_id or "").strip():
            raise PreconditionError("School is not selected")

    def require_admin(self) -> None:
        if self.role != Role.ADMIN:
            raise AuthorizationError("Only school admins can do this")
