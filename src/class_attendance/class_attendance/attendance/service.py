from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_local, today_local
from ..common.validators import optional_text, require_non_empty
from ..core.constants import UNKNOWN_FULL_NAME
from ..core.enums import AttemptStatus, Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from .approval import ApprovalStateMachine
from .guard import SubmissionGuard
from .model import AttemptFilter, AttendanceAttempt, NewAttendanceAttempt, Principal
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        guard: SubmissionGuard,
        approvals: ApprovalStateMachine,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._guard = guard
        self._approvals = approvals
        self._clock = clock

    @staticmethod
    def _require_student(principal: Optional[Principal]) -> Principal:
        if principal is None:
            raise AuthenticationError("Please sign in to continue")
        if principal.role != Role.STUDENT:
            raise AuthorizationError("Only students can mark attendance")
        return principal

    def mark_attendance(
        self,
        principal: Optional[Principal],
        *,
        class_name: str,
        phone_number: Optional[str] = None,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceAttempt:
        student = self._require_student(principal)
        now = now or self._clock()

        attempt = NewAttendanceAttempt(
            student_id=student.user_id,
            class_name=require_non_empty(class_name, "Class"),
            date=today_local(now),
            time_marked=now,
            phone_number=optional_text(phone_number),
            email=optional_text(email) or student.email,
            full_name=optional_text(full_name) or student.full_name or UNKNOWN_FULL_NAME,
        )
        return self._guard.admit(attempt)

    def can_submit_today(self, student_id: str) -> bool:
        return self._guard.can_submit(student_id, today_local(self._clock()))

    def withdraw(self, principal: Optional[Principal], attempt_id: str) -> None:
        """Delete one of the student's own attempts."""
        student = self._require_student(principal)
        if not self._attendance.delete(attempt_id, student_id=student.user_id):
            raise NotFoundError("Attendance record not found")
        logger.info("Attempt %s withdrawn by student %s", attempt_id, student.user_id)

    def list_for_student(self, student_id: str, *, limit: Optional[int] = None) -> Sequence[AttendanceAttempt]:
        return self._attendance.select(AttemptFilter(student_id=student_id, limit=limit))

    def list_all(self, actor: Optional[Principal], *, status: Optional[AttemptStatus] = None) -> Sequence[AttendanceAttempt]:
        if actor is None:
            raise AuthenticationError("Please sign in to continue")
        if not self._approvals.is_authority(actor):
            raise AuthorizationError("Only an instructor can view every record")
        return self._attendance.select(AttemptFilter(status=status))

    def review(self, actor: Optional[Principal], attempt_id: str, status: AttemptStatus | str) -> AttendanceAttempt:
        if actor is None:
            raise AuthenticationError("Please sign in to continue")
        return self._approvals.transition(attempt_id, status, actor)
