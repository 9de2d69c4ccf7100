from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time
from enum import Enum
from functools import wraps
from typing import Any

from flask import jsonify, request, session

from ..core.context import AttendanceContext
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DomainError, PreconditionError, StorageError, ValidationError

logger = logging.getLogger(__name__)

# Most specific first.
_STATUS_CODES = (
    (AuthorizationError, 403),
    (StorageError, 503),
    (PreconditionError, 400),
    (ValidationError, 400),
)


def error_response(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def current_context() -> AttendanceContext:
    """Acting context as stored in the session by the sign-in layer."""
    role = session.get("role") or Role.TEACHER.value
    return AttendanceContext(
        actor_id=session.get("user_id"),
        school_id=session.get("school_id"),
        academic_year_id=session.get("academic_year_id"),
        role=Role.ADMIN if role == Role.ADMIN.value else Role.TEACHER,
    )


def api_view(view):
    """Require a signed-in user and turn domain errors into JSON responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response("Please sign in to continue", 401)
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            for exc_type, status in _STATUS_CODES:
                if isinstance(e, exc_type):
                    return error_response(str(e), status)
            return error_response(str(e), 400)
        except Exception:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            return error_response("Internal server error", 500)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object body")
    return data


def to_json(value: Any) -> Any:
    """Dataclasses, enums and dates to JSON-friendly values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat(timespec="seconds")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value
