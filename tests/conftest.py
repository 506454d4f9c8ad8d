from __future__ import annotations

import itertools
from datetime import date, datetime

import pytest

from class_attendance.attendance.memory_repository import InMemoryAttendanceRepository
from class_attendance.attendance.model import AttendanceAttempt, Principal
from class_attendance.core.enums import AttemptStatus, Role


@pytest.fixture
def fixed_now() -> datetime:
    # Wednesday
    return datetime(2026, 10, 14, 9, 30, 0)


@pytest.fixture
def repo() -> InMemoryAttendanceRepository:
    return InMemoryAttendanceRepository()


@pytest.fixture
def student() -> Principal:
    return Principal(user_id="stu-1", role=Role.STUDENT, full_name="Ada Lovelace", email="ada@example.com")


@pytest.fixture
def other_student() -> Principal:
    return Principal(user_id="stu-2", role=Role.STUDENT, full_name="Alan Turing")


@pytest.fixture
def owner() -> Principal:
    return Principal(user_id="own-1", role=Role.OWNER, full_name="Prof. Hopper")


@pytest.fixture
def make_attempt():
    ids = itertools.count(1)

    def _make(
        *,
        class_name: str = "Algebra 101",
        on: date = date(2026, 10, 14),
        at: datetime | None = None,
        status: AttemptStatus = AttemptStatus.PENDING,
        student_id: str = "stu-1",
    ) -> AttendanceAttempt:
        n = next(ids)
        return AttendanceAttempt(
            id=f"att-{n}",
            student_id=student_id,
            class_name=class_name,
            date=on,
            time_marked=at or datetime(on.year, on.month, on.day, 8, 0, 0).replace(minute=n % 60),
            status=status,
        )

    return _make
