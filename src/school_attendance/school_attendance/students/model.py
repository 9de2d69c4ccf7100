from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Student:
    """Roster entry of a batch (student records themselves are owned elsewhere)."""

    student_id: str
    school_id: str
    batch_id: str
    admission_number: str
    first_name: str
    last_name: str = ""
    roll_number: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
