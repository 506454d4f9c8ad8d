from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttemptStatus
from .model import AttemptFilter, AttendanceAttempt, NewAttendanceAttempt


class AttendanceRepository(Protocol):
    """Record Store Adapter for the attendance table."""

    def select(self, filter: AttemptFilter) -> Sequence[AttendanceAttempt]:
        raise NotImplementedError

    def get_by_id(self, attempt_id: str) -> Optional[AttendanceAttempt]:
        raise NotImplementedError

    def count_for_student_and_date(self, student_id: str, on_date: date) -> int:
        raise NotImplementedError

    def insert(self, attempt: NewAttendanceAttempt, *, daily_limit: Optional[int] = None) -> AttendanceAttempt:
        """Append a pending attempt.

        When ``daily_limit`` is given the per-day count is re-checked in the
        same write, raising ``DailyLimitExceeded`` instead of inserting.
        """

        raise NotImplementedError

    def update_status(
        self,
        attempt_id: str,
        status: AttemptStatus,
        *,
        expected: AttemptStatus = AttemptStatus.PENDING,
    ) -> Optional[AttendanceAttempt]:
        """Set ``status`` only if the row currently holds ``expected``; None otherwise."""

        raise NotImplementedError

    def delete(self, attempt_id: str, *, student_id: Optional[str] = None) -> bool:
        raise NotImplementedError
