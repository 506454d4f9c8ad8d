from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..core.enums import AttemptStatus, Role
from ..core.exceptions import AuthorizationError, InvalidStateTransition, NotFoundError, ValidationError
from .model import AttemptFilter, AttendanceAttempt, Principal
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

AuthorityCheck = Callable[[Principal], bool]


def is_owner(principal: Principal) -> bool:
    return principal is not None and principal.role == Role.OWNER


class ApprovalStateMachine:
    """pending -> approved | rejected, driven by the authority role only.

    Operates on single attempts. Approving one attempt of a multi-attempt
    session changes that session's resolved status on the next reduction.
    """

    def __init__(self, attendance: AttendanceRepository, *, is_authority: AuthorityCheck = is_owner):
        self._attendance = attendance
        self._is_authority = is_authority

    def is_authority(self, principal: Principal) -> bool:
        return self._is_authority(principal)

    def _require_authority(self, actor: Principal) -> None:
        if not self._is_authority(actor):
            raise AuthorizationError("Only an instructor can review attendance")

    def transition(self, attempt_id: str, new_status: AttemptStatus, actor: Principal) -> AttendanceAttempt:
        # Authorization is checked before any row state.
        self._require_authority(actor)

        try:
            new_status = AttemptStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown status: {new_status!r}") from None
        if not new_status.is_terminal:
            raise InvalidStateTransition(f"Cannot move an attempt to '{new_status.value}'")

        current = self._attendance.get_by_id(attempt_id)
        if not current:
            raise NotFoundError("Attendance record not found")
        if current.status.is_terminal:
            raise InvalidStateTransition(f"Attendance record is already {current.status.value}")

        updated = self._attendance.update_status(attempt_id, new_status, expected=AttemptStatus.PENDING)
        if not updated:
            # Another reviewer decided the row between our read and the write.
            raise InvalidStateTransition("Attendance record was already reviewed")

        logger.info("Attempt %s %s by %s", attempt_id, new_status.value, actor.user_id)
        return updated

    def approve(self, attempt_id: str, actor: Principal) -> AttendanceAttempt:
        return self.transition(attempt_id, AttemptStatus.APPROVED, actor)

    def reject(self, attempt_id: str, actor: Principal) -> AttendanceAttempt:
        return self.transition(attempt_id, AttemptStatus.REJECTED, actor)

    def list_pending(self, actor: Principal, *, limit: int = 500) -> Sequence[AttendanceAttempt]:
        self._require_authority(actor)
        return self._attendance.select(AttemptFilter(status=AttemptStatus.PENDING, limit=limit))
