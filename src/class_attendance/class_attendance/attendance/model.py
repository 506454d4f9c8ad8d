from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttemptStatus, Role


@dataclass(frozen=True)
class AttendanceAttempt:
    """Domain entity: one raw attendance submission.

    The unit of truth is one row per submission attempt, not one row per
    class session; sessions are derived at read time.
    """

    id: str
    student_id: str
    class_name: str
    date: date
    time_marked: datetime
    status: AttemptStatus = AttemptStatus.PENDING
    phone_number: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None


@dataclass(frozen=True)
class NewAttendanceAttempt:
    """Input for the Submission Guard; ``id`` and ``status`` are assigned at insert."""

    student_id: str
    class_name: str
    date: date
    time_marked: datetime
    phone_number: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None


@dataclass(frozen=True)
class AttemptFilter:
    """Equality filters for ``select``; results are ordered by date, time_marked (newest first)."""

    student_id: Optional[str] = None
    date: Optional[date] = None
    status: Optional[AttemptStatus] = None
    limit: Optional[int] = None

    def matches(self, attempt: AttendanceAttempt) -> bool:
        if self.student_id is not None and attempt.student_id != self.student_id:
            return False
        if self.date is not None and attempt.date != self.date:
            return False
        if self.status is not None and attempt.status != self.status:
            return False
        return True


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, consumed as an opaque id plus a role tag."""

    user_id: str
    role: Role
    full_name: Optional[str] = None
    email: Optional[str] = None
