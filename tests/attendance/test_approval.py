from __future__ import annotations

import pytest

from class_attendance.attendance.approval import ApprovalStateMachine
from class_attendance.attendance.memory_repository import InMemoryAttendanceRepository
from class_attendance.core.enums import AttemptStatus
from class_attendance.core.exceptions import (
    AuthorizationError,
    InvalidStateTransition,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
def pending(make_attempt):
    return make_attempt(status=AttemptStatus.PENDING)


def test_owner_approves_pending_attempt(pending, owner):
    repo = InMemoryAttendanceRepository([pending])
    machine = ApprovalStateMachine(repo)

    updated = machine.transition(pending.id, AttemptStatus.APPROVED, owner)

    assert updated.status == AttemptStatus.APPROVED
    assert repo.get_by_id(pending.id).status == AttemptStatus.APPROVED


def test_owner_rejects_with_string_status(pending, owner):
    machine = ApprovalStateMachine(InMemoryAttendanceRepository([pending]))

    assert machine.transition(pending.id, "rejected", owner).status == AttemptStatus.REJECTED


def test_student_cannot_transition(pending, student):
    repo = InMemoryAttendanceRepository([pending])
    machine = ApprovalStateMachine(repo)

    with pytest.raises(AuthorizationError):
        machine.approve(pending.id, student)
    assert repo.get_by_id(pending.id).status == AttemptStatus.PENDING


@pytest.mark.parametrize("terminal", [AttemptStatus.APPROVED, AttemptStatus.REJECTED])
@pytest.mark.parametrize("target", [AttemptStatus.APPROVED, AttemptStatus.REJECTED])
def test_terminal_attempts_are_locked(make_attempt, owner, terminal, target):
    row = make_attempt(status=terminal)
    repo = InMemoryAttendanceRepository([row])
    machine = ApprovalStateMachine(repo)

    with pytest.raises(InvalidStateTransition):
        machine.transition(row.id, target, owner)
    assert repo.get_by_id(row.id).status == terminal


def test_authorization_is_checked_before_state(pending, owner, student):
    machine = ApprovalStateMachine(InMemoryAttendanceRepository([pending]))
    machine.reject(pending.id, owner)

    with pytest.raises(AuthorizationError):
        machine.approve(pending.id, student)


def test_pending_is_not_a_valid_target(pending, owner):
    machine = ApprovalStateMachine(InMemoryAttendanceRepository([pending]))

    with pytest.raises(InvalidStateTransition):
        machine.transition(pending.id, AttemptStatus.PENDING, owner)


def test_unknown_status_is_validation_error(pending, owner):
    machine = ApprovalStateMachine(InMemoryAttendanceRepository([pending]))

    with pytest.raises(ValidationError):
        machine.transition(pending.id, "excused", owner)


def test_missing_attempt(owner):
    machine = ApprovalStateMachine(InMemoryAttendanceRepository())

    with pytest.raises(NotFoundError):
        machine.approve("nope", owner)


class LosingRaceRepository(InMemoryAttendanceRepository):
    """Another reviewer wins between the read and the conditional write."""

    def update_status(self, attempt_id, status, *, expected=AttemptStatus.PENDING):
        super().update_status(attempt_id, AttemptStatus.REJECTED, expected=expected)
        return super().update_status(attempt_id, status, expected=expected)


def test_concurrent_review_surfaces_as_invalid_transition(pending, owner):
    repo = LosingRaceRepository([pending])
    machine = ApprovalStateMachine(repo)

    with pytest.raises(InvalidStateTransition):
        machine.approve(pending.id, owner)
    assert repo.get_by_id(pending.id).status == AttemptStatus.REJECTED


def test_custom_authority_predicate(pending, student):
    machine = ApprovalStateMachine(
        InMemoryAttendanceRepository([pending]),
        is_authority=lambda p: p.user_id == "stu-1",
    )

    assert machine.approve(pending.id, student).status == AttemptStatus.APPROVED


def test_list_pending_requires_authority(make_attempt, owner, student):
    rows = [make_attempt(), make_attempt(status=AttemptStatus.APPROVED), make_attempt()]
    machine = ApprovalStateMachine(InMemoryAttendanceRepository(rows))

    assert {a.id for a in machine.list_pending(owner)} == {rows[0].id, rows[2].id}
    with pytest.raises(AuthorizationError):
        machine.list_pending(student)
