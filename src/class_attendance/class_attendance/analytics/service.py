from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from ..attendance.model import AttemptFilter
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.constants import (
    DEFAULT_ANALYTICS_MONTHS,
    DEFAULT_ANALYTICS_WEEKS,
    DEFAULT_RECENT_ACTIVITY_LIMIT,
)
from .cache import AnalyticsCache
from .engine import AnalyticsSnapshot, aggregate
from .sessions import enrolled_classes


class AnalyticsService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        weeks: int = DEFAULT_ANALYTICS_WEEKS,
        months: int = DEFAULT_ANALYTICS_MONTHS,
        recent_limit: int = DEFAULT_RECENT_ACTIVITY_LIMIT,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._weeks = int(weeks)
        self._months = int(months)
        self._recent_limit = int(recent_limit)
        self._clock = clock
        self.cache: AnalyticsCache[AnalyticsSnapshot] = AnalyticsCache(self._compute)

    def _compute(self, student_id: str) -> AnalyticsSnapshot:
        return self.compute(student_id, now=self._clock())

    def compute(self, student_id: str, *, now: Optional[datetime] = None) -> AnalyticsSnapshot:
        """Uncached snapshot for ``student_id`` as of ``now``."""
        attempts = self._attendance.select(AttemptFilter(student_id=student_id))
        return aggregate(
            attempts,
            now or self._clock(),
            weeks=self._weeks,
            months=self._months,
            recent_limit=self._recent_limit,
        )

    def get_analytics(self, student_id: str) -> AnalyticsSnapshot:
        return self.cache.get(student_id)

    def get_enrollments(self, student_id: str) -> list[str]:
        return enrolled_classes(self._attendance.select(AttemptFilter(student_id=student_id)))

    def invalidate(self, student_id: Optional[str] = None) -> None:
        if student_id is None:
            self.cache.invalidate_all()
        else:
            self.cache.invalidate(student_id)
