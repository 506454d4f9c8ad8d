from __future__ import annotations

from datetime import date, datetime, timedelta


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def today_local(now: datetime | None = None) -> date:
    """Local calendar date (year/month/day of local time, never UTC)."""
    now = now or now_local()
    return date(now.year, now.month, now.day)


def week_start(day: date) -> date:
    """Sunday that opens the Sunday–Saturday week containing ``day``."""
    days_since_sunday = (day.weekday() + 1) % 7
    return day - timedelta(days=days_since_sunday)


def shift_month(day: date, months: int) -> date:
    """First day of the month ``months`` away from the month of ``day``."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_end(first_day: date) -> date:
    return shift_month(first_day, 1) - timedelta(days=1)


def format_display_date(day: date) -> str:
    """M/D/YYYY, the short US-style date shown in activity feeds."""
    return f"{day.month}/{day.day}/{day.year}"
