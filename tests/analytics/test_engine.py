from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from class_attendance.analytics.engine import StatusBreakdown, aggregate
from class_attendance.common.validators import percentage
from class_attendance.core.enums import AttemptStatus

P, A, R = AttemptStatus.PENDING, AttemptStatus.APPROVED, AttemptStatus.REJECTED


def test_empty_input_yields_zero_filled_shape(fixed_now):
    snap = aggregate([], fixed_now)

    assert snap.total_classes == 0
    assert snap.total_sessions == 0
    assert snap.attended_classes == 0
    assert snap.attendance_percentage == 0
    assert len(snap.weekly_attendance) == 8
    assert len(snap.monthly_stats) == 6
    assert all(b.attended == 0 and b.total == 0 and b.percentage == 0 for b in snap.weekly_attendance)
    assert all(b.attended == 0 and b.total == 0 and b.percentage == 0 for b in snap.monthly_stats)
    assert snap.classwise_attendance == []
    assert snap.status_breakdown == StatusBreakdown(approved=0, pending=0, rejected=0, missed=0)
    assert snap.recent_activity == []


def test_weekly_buckets_anchor_on_current_week(fixed_now):
    weeks = aggregate([], fixed_now).weekly_attendance

    assert fixed_now.weekday() == 2  # Wednesday
    assert weeks[-1].start == date(2026, 10, 11)
    assert weeks[-1].end == date(2026, 10, 17)
    assert weeks[0].start == weeks[-1].start - timedelta(weeks=7)
    assert weeks[0].start == date(2026, 8, 23)
    assert weeks[0].label == "8/23"
    assert weeks[-1].label == "10/11"
    assert [w.start for w in weeks] == sorted(w.start for w in weeks)


def test_weekly_bucket_bounds_are_inclusive(make_attempt, fixed_now):
    attempts = [
        make_attempt(class_name="Algebra 101", on=date(2026, 10, 11), status=A),  # Sunday
        make_attempt(class_name="Algebra 101", on=date(2026, 10, 17), status=R),  # Saturday
        make_attempt(class_name="Algebra 101", on=date(2026, 10, 10), status=A),  # previous Saturday
    ]

    weeks = aggregate(attempts, fixed_now).weekly_attendance

    assert (weeks[-1].attended, weeks[-1].total, weeks[-1].percentage) == (1, 2, 50)
    assert (weeks[-2].attended, weeks[-2].total, weeks[-2].percentage) == (1, 1, 100)


def test_monthly_buckets_are_calendar_months(make_attempt, fixed_now):
    attempts = [
        make_attempt(on=date(2026, 10, 1), status=A),
        make_attempt(on=date(2026, 9, 30), status=P),
        make_attempt(on=date(2026, 5, 1), status=A),
        make_attempt(on=date(2026, 4, 30), status=A),
    ]

    months = aggregate(attempts, fixed_now).monthly_stats

    assert [m.label for m in months] == ["May 26", "Jun 26", "Jul 26", "Aug 26", "Sep 26", "Oct 26"]
    assert months[0].start == date(2026, 5, 1)
    assert months[4].end == date(2026, 9, 30)
    assert (months[-1].attended, months[-1].total) == (1, 1)
    assert (months[4].attended, months[4].total, months[4].percentage) == (0, 1, 0)
    assert (months[0].attended, months[0].total) == (1, 1)


def test_month_arithmetic_on_day_31():
    snap = aggregate([], datetime(2026, 3, 31, 12, 0))

    assert [m.label for m in snap.monthly_stats] == ["Oct 25", "Nov 25", "Dec 25", "Jan 26", "Feb 26", "Mar 26"]
    assert snap.monthly_stats[4].end == date(2026, 2, 28)


def test_overall_rate_counts_sessions_and_breakdown_counts_attempts(make_attempt, fixed_now):
    attempts = [
        make_attempt(class_name="Algebra 101", status=P),
        make_attempt(class_name="Algebra 101", status=R),
        make_attempt(class_name="Algebra 101", status=A),
        make_attempt(class_name="Biology", status=R),
        make_attempt(class_name="Chemistry", status=P),
    ]

    snap = aggregate(attempts, fixed_now)

    assert snap.total_sessions == 3
    assert snap.total_classes == 3
    assert snap.attended_classes == 1
    assert snap.attendance_percentage == 33
    assert snap.status_breakdown == StatusBreakdown(approved=1, pending=2, rejected=2, missed=0)


def test_classwise_in_first_encounter_order(make_attempt, fixed_now):
    attempts = [
        make_attempt(class_name="Biology", on=date(2026, 10, 14), status=A),
        make_attempt(class_name="Algebra 101", on=date(2026, 10, 12), status=A),
        make_attempt(class_name="Algebra 101", on=date(2026, 10, 13), status=R),
        make_attempt(class_name="Algebra 101", on=date(2026, 10, 14), status=A),
    ]

    per_class = aggregate(attempts, fixed_now).classwise_attendance

    assert [c.class_name for c in per_class] == ["Algebra 101", "Biology"]
    assert (per_class[0].attended, per_class[0].total, per_class[0].percentage) == (2, 3, 67)
    assert (per_class[1].attended, per_class[1].total, per_class[1].percentage) == (1, 1, 100)


def test_latest_attempt_decides_unapproved_session(make_attempt, fixed_now):
    newest_first = [
        make_attempt(status=P, at=datetime(2026, 10, 14, 11, 0)),
        make_attempt(status=R, at=datetime(2026, 10, 14, 9, 0)),
    ]

    snap = aggregate(newest_first, fixed_now)

    assert snap.weekly_attendance[-1].total == 1
    assert snap.attended_classes == 0
    assert snap.status_breakdown.pending == 1


def test_extra_approved_attempt_never_lowers_attended(make_attempt, fixed_now):
    base = [make_attempt(status=R), make_attempt(class_name="Biology", status=A)]
    before = aggregate(base, fixed_now)
    after = aggregate(base + [make_attempt(status=A)], fixed_now)

    assert after.attended_classes >= before.attended_classes
    assert after.attended_classes == 2
    assert after.weekly_attendance[-1].attended >= before.weekly_attendance[-1].attended


def test_sessions_outside_windows_still_count_overall(make_attempt, fixed_now):
    snap = aggregate([make_attempt(on=date(2025, 1, 1), status=A)], fixed_now)

    assert snap.total_sessions == 1
    assert snap.attendance_percentage == 100
    assert sum(w.total for w in snap.weekly_attendance) == 0
    assert sum(m.total for m in snap.monthly_stats) == 0


def test_recent_activity_is_ten_newest(make_attempt, fixed_now):
    base = datetime(2026, 10, 1, 8, 0)
    attempts = [
        make_attempt(on=(base + timedelta(days=i)).date(), at=base + timedelta(days=i), status=A if i % 2 else P)
        for i in range(12)
    ]

    recent = aggregate(attempts, fixed_now).recent_activity

    assert len(recent) == 10
    assert [r.time_marked for r in recent] == sorted((r.time_marked for r in recent), reverse=True)
    assert recent[0].date == "10/12/2026"
    assert recent[0].status == A
    assert recent[-1].date == "10/3/2026"


def test_percentages_are_bounded_integers(make_attempt, fixed_now):
    attempts = [make_attempt(class_name=f"C{i}", status=A if i < 5 else R) for i in range(8)]

    snap = aggregate(attempts, fixed_now)
    values = [snap.attendance_percentage]
    values += [b.percentage for b in snap.weekly_attendance + snap.monthly_stats]
    values += [c.percentage for c in snap.classwise_attendance]

    assert all(isinstance(v, int) and 0 <= v <= 100 for v in values)
    assert snap.attendance_percentage == 63


@pytest.mark.parametrize(
    "part,total,expected",
    [(0, 0, 0), (1, 8, 13), (1, 2, 50), (5, 200, 3), (1, 3, 33), (2, 3, 67), (3, 3, 100)],
)
def test_percentage_rounds_half_up(part, total, expected):
    assert percentage(part, total) == expected


def test_as_dict_is_json_ready(make_attempt, fixed_now):
    data = aggregate([make_attempt(status=A)], fixed_now).as_dict()

    assert data["recent_activity"][0]["status"] == "approved"
    assert data["weekly_attendance"][-1]["start"] == "2026-10-11"
    assert data["status_breakdown"] == {"approved": 1, "pending": 0, "rejected": 0, "missed": 0}
    assert data["generated_at"] == fixed_now.isoformat()
