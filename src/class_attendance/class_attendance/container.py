from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .analytics.service import AnalyticsService
from .attendance.approval import ApprovalStateMachine
from .attendance.guard import SubmissionGuard
from .attendance.memory_repository import InMemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import (
    DEFAULT_ANALYTICS_MONTHS,
    DEFAULT_ANALYTICS_WEEKS,
    DEFAULT_DAILY_ATTEMPT_LIMIT,
    DEFAULT_RECENT_ACTIVITY_LIMIT,
    DEFAULT_RECONNECT_ATTEMPTS,
)
from .database.connection import DatabaseConnection, DBConfig
from .sync.controller import LiveSyncController, SyncScope
from .sync.feed import LocalChangeFeed, PublishingAttendanceRepository


@dataclass(frozen=True)
class Container:
    attendance_repo: AttendanceRepository
    feed: LocalChangeFeed

    guard: SubmissionGuard
    approvals: ApprovalStateMachine
    attendance_service: AttendanceService
    analytics_service: AnalyticsService

    reconnect_attempts: int = DEFAULT_RECONNECT_ATTEMPTS

    def live_sync(self, student_id: Optional[str] = None) -> LiveSyncController:
        """Controller that invalidates cached analytics for ``student_id`` (or everyone)."""
        return LiveSyncController(
            self.feed,
            lambda: self.analytics_service.invalidate(student_id),
            scope=SyncScope(student_id=student_id),
            reconnect_attempts=self.reconnect_attempts,
            connector=self.feed.connect,
        )


def _setting(settings: Any, name: str, default: Any) -> Any:
    return getattr(settings, name, default) if settings is not None else default


def build_container(
    *,
    db_config: Optional[dict] = None,
    settings: Any = None,
    store: Optional[AttendanceRepository] = None,
) -> Container:
    """Wire services on top of MySQL (``db_config``) or an explicit ``store``."""

    if store is None:
        if db_config is None:
            store = InMemoryAttendanceRepository()
        else:
            conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
            store = MySQLAttendanceRepository(conn)

    feed = LocalChangeFeed()
    attendance_repo = PublishingAttendanceRepository(store, feed)

    guard = SubmissionGuard(
        attendance_repo,
        daily_limit=int(_setting(settings, "DAILY_ATTEMPT_LIMIT", DEFAULT_DAILY_ATTEMPT_LIMIT)),
    )
    approvals = ApprovalStateMachine(attendance_repo)
    attendance_service = AttendanceService(attendance_repo, guard, approvals)
    analytics_service = AnalyticsService(
        attendance_repo,
        weeks=int(_setting(settings, "ANALYTICS_WEEKS", DEFAULT_ANALYTICS_WEEKS)),
        months=int(_setting(settings, "ANALYTICS_MONTHS", DEFAULT_ANALYTICS_MONTHS)),
        recent_limit=int(_setting(settings, "RECENT_ACTIVITY_LIMIT", DEFAULT_RECENT_ACTIVITY_LIMIT)),
    )

    return Container(
        attendance_repo=attendance_repo,
        feed=feed,
        guard=guard,
        approvals=approvals,
        attendance_service=attendance_service,
        analytics_service=analytics_service,
        reconnect_attempts=int(_setting(settings, "SYNC_RECONNECT_ATTEMPTS", DEFAULT_RECONNECT_ATTEMPTS)),
    )
