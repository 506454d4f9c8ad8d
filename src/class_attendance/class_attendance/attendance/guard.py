from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local, today_local
from ..core.constants import DEFAULT_DAILY_ATTEMPT_LIMIT
from ..core.exceptions import DailyLimitExceeded
from .model import AttendanceAttempt, NewAttendanceAttempt
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class SubmissionGuard:
    """Admits new attendance attempts, capped per student per calendar day.

    The cap counts every attempt of the day regardless of class. The check
    here is a soft pre-check; the repository repeats it inside the insert so
    two concurrent submitters cannot both take the last slot.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        daily_limit: int = DEFAULT_DAILY_ATTEMPT_LIMIT,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._daily_limit = int(daily_limit)
        self._clock = clock

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    def _today(self) -> date:
        return today_local(self._clock())

    def attempts_left(self, student_id: str, on_date: Optional[date] = None) -> int:
        on_date = on_date or self._today()
        used = self._attendance.count_for_student_and_date(student_id, on_date)
        return max(self._daily_limit - used, 0)

    def can_submit(self, student_id: str, on_date: Optional[date] = None) -> bool:
        return self.attempts_left(student_id, on_date) > 0

    def admit(self, attempt: NewAttendanceAttempt) -> AttendanceAttempt:
        if not self.can_submit(attempt.student_id, attempt.date):
            logger.warning(
                "Daily limit reached for student %s on %s (limit=%d)",
                attempt.student_id,
                attempt.date,
                self._daily_limit,
            )
            raise DailyLimitExceeded(attempt.student_id, attempt.date, self._daily_limit)

        created = self._attendance.insert(attempt, daily_limit=self._daily_limit)
        logger.info("Attempt %s admitted for student %s (%s, %s)", created.id, created.student_id, created.class_name, created.date)
        return created
