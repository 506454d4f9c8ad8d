"""Session Reducer: collapse attempts into per-(class, date) sessions.

A session's resolved status follows one rule: if any attempt was approved the
session is approved, otherwise it takes the status of the attempt folded last.
``reduce_sessions`` is a plain left-to-right fold, so the caller decides what
"last" means by the order it passes in; ``order_for_reduction`` sorts by
``time_marked`` so that the last folded attempt is the most recent one.

Attempts are sorted ascending, not descending: folding a newest-first list
with a last-wins rule would let the oldest attempt decide, so the ascending
order is what makes the most recent unapproved attempt the session status.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

from ..attendance.model import AttendanceAttempt
from ..core.enums import AttemptStatus


@dataclass(frozen=True)
class Session:
    class_name: str
    date: date
    statuses: frozenset[AttemptStatus]
    resolved_status: AttemptStatus
    attempt_count: int = 1

    @property
    def is_attended(self) -> bool:
        return self.resolved_status == AttemptStatus.APPROVED


def resolve_status(current: AttemptStatus, incoming: AttemptStatus) -> AttemptStatus:
    """Approved wins; otherwise the later-folded status replaces the current one."""
    if current == AttemptStatus.APPROVED or incoming == AttemptStatus.APPROVED:
        return AttemptStatus.APPROVED
    return incoming


def order_for_reduction(attempts: Iterable[AttendanceAttempt]) -> list[AttendanceAttempt]:
    return sorted(attempts, key=lambda a: a.time_marked)


def reduce_sessions(attempts: Iterable[AttendanceAttempt]) -> list[Session]:
    groups: dict[tuple[str, date], Session] = {}

    for a in attempts:
        key = (a.class_name, a.date)
        current = groups.get(key)
        if current is None:
            groups[key] = Session(
                class_name=a.class_name,
                date=a.date,
                statuses=frozenset({a.status}),
                resolved_status=a.status,
            )
            continue

        groups[key] = Session(
            class_name=current.class_name,
            date=current.date,
            statuses=current.statuses | {a.status},
            resolved_status=resolve_status(current.resolved_status, a.status),
            attempt_count=current.attempt_count + 1,
        )

    return list(groups.values())


def enrolled_classes(attempts: Sequence[AttendanceAttempt]) -> list[str]:
    """Distinct class names in first-encounter order (a student's enrollment proxy)."""
    return list(dict.fromkeys(a.class_name for a in attempts))
