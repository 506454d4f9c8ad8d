from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from class_attendance.attendance.guard import SubmissionGuard
from class_attendance.attendance.memory_repository import InMemoryAttendanceRepository
from class_attendance.attendance.model import AttemptFilter, NewAttendanceAttempt
from class_attendance.core.enums import AttemptStatus
from class_attendance.core.exceptions import DailyLimitExceeded


def _new(student_id: str, now: datetime, class_name: str = "Algebra 101") -> NewAttendanceAttempt:
    return NewAttendanceAttempt(student_id=student_id, class_name=class_name, date=now.date(), time_marked=now)


def test_admit_creates_pending_attempt(repo, fixed_now):
    guard = SubmissionGuard(repo, clock=lambda: fixed_now)

    created = guard.admit(_new("stu-1", fixed_now))

    assert created.status == AttemptStatus.PENDING
    assert created.id
    assert repo.get_by_id(created.id) == created


@pytest.mark.parametrize("extra", [0, 1, 2])
def test_can_submit_false_once_three_admitted(repo, fixed_now, extra):
    guard = SubmissionGuard(repo, clock=lambda: fixed_now)
    for i in range(3):
        assert guard.can_submit("stu-1")
        guard.admit(_new("stu-1", fixed_now + timedelta(minutes=i)))

    for _ in range(extra):
        with pytest.raises(DailyLimitExceeded):
            guard.admit(_new("stu-1", fixed_now))

    assert guard.can_submit("stu-1") is False
    assert guard.attempts_left("stu-1") == 0


def test_fourth_attempt_rejected_and_store_keeps_three(repo, fixed_now):
    guard = SubmissionGuard(repo, clock=lambda: fixed_now)
    for i in range(3):
        guard.admit(_new("stu-1", fixed_now + timedelta(minutes=i)))

    with pytest.raises(DailyLimitExceeded) as exc_info:
        guard.admit(_new("stu-1", fixed_now + timedelta(minutes=5)))

    assert exc_info.value.limit == 3
    assert exc_info.value.date == fixed_now.date()
    assert repo.count_for_student_and_date("stu-1", fixed_now.date()) == 3


def test_cap_is_per_day_across_classes(repo, fixed_now):
    guard = SubmissionGuard(repo, clock=lambda: fixed_now)
    guard.admit(_new("stu-1", fixed_now, "Algebra 101"))
    guard.admit(_new("stu-1", fixed_now, "Biology"))
    guard.admit(_new("stu-1", fixed_now, "Chemistry"))

    with pytest.raises(DailyLimitExceeded):
        guard.admit(_new("stu-1", fixed_now, "Drama"))


def test_cap_is_per_student_and_per_date(repo, fixed_now):
    guard = SubmissionGuard(repo, clock=lambda: fixed_now)
    for _ in range(3):
        guard.admit(_new("stu-1", fixed_now))

    assert guard.can_submit("stu-2")
    assert guard.can_submit("stu-1", fixed_now.date() + timedelta(days=1))


def test_default_date_is_local_calendar_day(repo):
    late_evening = datetime(2026, 10, 14, 23, 59, 0)
    guard = SubmissionGuard(repo, daily_limit=1, clock=lambda: late_evening)
    guard.admit(_new("stu-1", late_evening))

    assert guard.can_submit("stu-1") is False
    assert guard.can_submit("stu-1", date(2026, 10, 15)) is True


class RacingRepository(InMemoryAttendanceRepository):
    """Reports an empty day to the pre-check, as a concurrent submitter would see it."""

    def count_for_student_and_date(self, student_id, on_date):
        return 0


def test_store_boundary_enforces_cap_when_precheck_races(fixed_now):
    repo = RacingRepository()
    guard = SubmissionGuard(repo, clock=lambda: fixed_now)
    for _ in range(3):
        guard.admit(_new("stu-1", fixed_now))

    with pytest.raises(DailyLimitExceeded):
        guard.admit(_new("stu-1", fixed_now))

    assert len(repo.select(AttemptFilter(student_id="stu-1"))) == 3


def test_admit_without_name_stores_unknown(repo, fixed_now):
    created = SubmissionGuard(repo, clock=lambda: fixed_now).admit(_new("stu-1", fixed_now))

    assert created.full_name == "Unknown"
    assert repo.get_by_id(created.id).full_name == "Unknown"
