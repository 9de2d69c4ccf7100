from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class SelectionToken:
    generation: int
    batch_id: str
    attendance_date: date


class SelectionTracker:
    """Generation counter for (batch, date) selections.

    A fetch started for an older selection must not overwrite the entries of
    the current one.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._generation = 0

    def select(self, batch_id: str, attendance_date: date) -> SelectionToken:
        with self._lock:
            self._generation += 1
            return SelectionToken(self._generation, batch_id, attendance_date)

    def is_current(self, token: SelectionToken) -> bool:
        with self._lock:
            return token.generation == self._generation
