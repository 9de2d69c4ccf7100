from __future__ import annotations

from typing import Protocol, Sequence

from .model import Student


class StudentRepository(Protocol):
    def list_by_batch(self, *, school_id: str, batch_id: str) -> Sequence[Student]:
        """Active students of a batch ordered by roll number."""

        raise NotImplementedError
