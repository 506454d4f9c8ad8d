from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import date
from typing import Optional, Sequence

from ..core.constants import UNKNOWN_FULL_NAME
from ..core.enums import AttemptStatus
from ..core.exceptions import DailyLimitExceeded
from .model import AttemptFilter, AttendanceAttempt, NewAttendanceAttempt
from .repository import AttendanceRepository


class InMemoryAttendanceRepository(AttendanceRepository):
    """Process-local store used for demos and tests.

    Writes are serialized with a lock so the per-day cap holds under concurrent
    submitters exactly like the transactional MySQL insert.
    """

    def __init__(self, attempts: Sequence[AttendanceAttempt] = ()):
        self._rows: dict[str, AttendanceAttempt] = {a.id: a for a in attempts}
        self._lock = threading.Lock()

    def select(self, filter: AttemptFilter) -> Sequence[AttendanceAttempt]:
        with self._lock:
            items = [a for a in self._rows.values() if filter.matches(a)]
        items.sort(key=lambda a: (a.date, a.time_marked), reverse=True)
        if filter.limit is not None:
            items = items[: int(filter.limit)]
        return items

    def get_by_id(self, attempt_id: str) -> Optional[AttendanceAttempt]:
        return self._rows.get(attempt_id)

    def count_for_student_and_date(self, student_id: str, on_date: date) -> int:
        with self._lock:
            return self._count(student_id, on_date)

    def _count(self, student_id: str, on_date: date) -> int:
        return sum(1 for a in self._rows.values() if a.student_id == student_id and a.date == on_date)

    def insert(self, attempt: NewAttendanceAttempt, *, daily_limit: Optional[int] = None) -> AttendanceAttempt:
        with self._lock:
            if daily_limit is not None and self._count(attempt.student_id, attempt.date) >= int(daily_limit):
                raise DailyLimitExceeded(attempt.student_id, attempt.date, int(daily_limit))

            created = AttendanceAttempt(
                id=str(uuid.uuid4()),
                student_id=attempt.student_id,
                class_name=attempt.class_name,
                date=attempt.date,
                time_marked=attempt.time_marked,
                status=AttemptStatus.PENDING,
                phone_number=attempt.phone_number,
                email=attempt.email,
                full_name=attempt.full_name or UNKNOWN_FULL_NAME,
            )
            self._rows[created.id] = created
            return created

    def update_status(
        self,
        attempt_id: str,
        status: AttemptStatus,
        *,
        expected: AttemptStatus = AttemptStatus.PENDING,
    ) -> Optional[AttendanceAttempt]:
        with self._lock:
            current = self._rows.get(attempt_id)
            if not current or current.status != expected:
                return None
            updated = replace(current, status=status)
            self._rows[attempt_id] = updated
            return updated

    def delete(self, attempt_id: str, *, student_id: Optional[str] = None) -> bool:
        with self._lock:
            current = self._rows.get(attempt_id)
            if not current:
                return False
            if student_id is not None and current.student_id != student_id:
                return False
            del self._rows[attempt_id]
            return True
