from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Sequence

from ..attendance.model import AttendanceAttempt
from ..common.datetime_utils import format_display_date, month_end, shift_month, week_start
from ..common.validators import percentage
from ..core.constants import (
    DEFAULT_ANALYTICS_MONTHS,
    DEFAULT_ANALYTICS_WEEKS,
    DEFAULT_RECENT_ACTIVITY_LIMIT,
)
from ..core.enums import AttemptStatus
from .sessions import Session, order_for_reduction, reduce_sessions


@dataclass(frozen=True)
class PeriodStat:
    label: str
    start: date
    end: date
    attended: int
    total: int
    percentage: int


@dataclass(frozen=True)
class ClassStat:
    class_name: str
    attended: int
    total: int
    percentage: int


@dataclass(frozen=True)
class StatusBreakdown:
    """Counts of raw submissions per status (not sessions).

    ``missed`` is always 0: no class schedule is consulted to detect absences.
    """

    approved: int = 0
    pending: int = 0
    rejected: int = 0
    missed: int = 0


@dataclass(frozen=True)
class ActivityItem:
    date: str
    class_name: str
    status: AttemptStatus
    time_marked: datetime


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Read-model for attendance dashboards.

    Two denominators live side by side:

    * ``attendance_percentage``, ``attended_classes``, the weekly/monthly series
      and the classwise breakdown count *sessions* (one per class per day).
    * ``status_breakdown`` counts *submissions* (every raw attempt).
    """

    total_classes: int
    total_sessions: int
    attended_classes: int
    attendance_percentage: int
    weekly_attendance: list[PeriodStat] = field(default_factory=list)
    monthly_stats: list[PeriodStat] = field(default_factory=list)
    classwise_attendance: list[ClassStat] = field(default_factory=list)
    status_breakdown: StatusBreakdown = field(default_factory=StatusBreakdown)
    recent_activity: list[ActivityItem] = field(default_factory=list)
    generated_at: datetime | None = None

    def as_dict(self) -> dict:
        def _json(value):
            if isinstance(value, (date, datetime)):
                return value.isoformat()
            if isinstance(value, AttemptStatus):
                return value.value
            if isinstance(value, dict):
                return {k: _json(v) for k, v in value.items()}
            if isinstance(value, list):
                return [_json(v) for v in value]
            return value

        return _json(asdict(self))


def _period(label: str, start: date, end: date, sessions: Sequence[Session]) -> PeriodStat:
    inside = [s for s in sessions if start <= s.date <= end]
    attended = sum(1 for s in inside if s.is_attended)
    return PeriodStat(
        label=label,
        start=start,
        end=end,
        attended=attended,
        total=len(inside),
        percentage=percentage(attended, len(inside)),
    )


def weekly_series(sessions: Sequence[Session], today: date, *, weeks: int = DEFAULT_ANALYTICS_WEEKS) -> list[PeriodStat]:
    """Sunday–Saturday buckets, oldest first; the last one contains ``today``."""
    current = week_start(today)
    out = []
    for i in range(weeks - 1, -1, -1):
        start = current - timedelta(weeks=i)
        out.append(_period(f"{start.month}/{start.day}", start, start + timedelta(days=6), sessions))
    return out


def monthly_series(sessions: Sequence[Session], today: date, *, months: int = DEFAULT_ANALYTICS_MONTHS) -> list[PeriodStat]:
    """Calendar-month buckets, oldest first; the last one contains ``today``."""
    out = []
    for i in range(months - 1, -1, -1):
        start = shift_month(today, -i)
        out.append(_period(start.strftime("%b %y"), start, month_end(start), sessions))
    return out


def classwise(sessions: Sequence[Session]) -> list[ClassStat]:
    buckets: dict[str, list[int]] = {}
    for s in sessions:
        b = buckets.setdefault(s.class_name, [0, 0])
        b[1] += 1
        if s.is_attended:
            b[0] += 1

    return [
        ClassStat(class_name=name, attended=attended, total=total, percentage=percentage(attended, total))
        for name, (attended, total) in buckets.items()
    ]


def status_breakdown(attempts: Sequence[AttendanceAttempt]) -> StatusBreakdown:
    counts = Counter(a.status for a in attempts)
    return StatusBreakdown(
        approved=counts[AttemptStatus.APPROVED],
        pending=counts[AttemptStatus.PENDING],
        rejected=counts[AttemptStatus.REJECTED],
    )


def recent_activity(attempts: Sequence[AttendanceAttempt], *, limit: int = DEFAULT_RECENT_ACTIVITY_LIMIT) -> list[ActivityItem]:
    latest = sorted(attempts, key=lambda a: a.time_marked, reverse=True)[:limit]
    return [
        ActivityItem(
            date=format_display_date(a.date),
            class_name=a.class_name,
            status=a.status,
            time_marked=a.time_marked,
        )
        for a in latest
    ]


def aggregate(
    attempts: Sequence[AttendanceAttempt],
    now: datetime,
    *,
    weeks: int = DEFAULT_ANALYTICS_WEEKS,
    months: int = DEFAULT_ANALYTICS_MONTHS,
    recent_limit: int = DEFAULT_RECENT_ACTIVITY_LIMIT,
) -> AnalyticsSnapshot:
    """Build a full snapshot from one student's attempts.

    Pure for a fixed ``now``. Always recompute from the full attempt set:
    a new attempt can change the resolved status of an existing session, so
    patching a previous snapshot is not safe.
    """

    attempts = list(attempts)
    sessions = reduce_sessions(order_for_reduction(attempts))
    approved = sum(1 for s in sessions if s.is_attended)
    per_class = classwise(sessions)
    today = now.date()

    return AnalyticsSnapshot(
        total_classes=len(per_class),
        total_sessions=len(sessions),
        attended_classes=approved,
        attendance_percentage=percentage(approved, len(sessions)),
        weekly_attendance=weekly_series(sessions, today, weeks=weeks),
        monthly_stats=monthly_series(sessions, today, months=months),
        classwise_attendance=per_class,
        status_breakdown=status_breakdown(attempts),
        recent_activity=recent_activity(attempts, limit=recent_limit),
        generated_at=now,
    )
