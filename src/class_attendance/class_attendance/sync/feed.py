from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Collection, Mapping, Optional, Protocol, Sequence

from ..attendance.model import AttemptFilter, AttendanceAttempt, NewAttendanceAttempt
from ..attendance.repository import AttendanceRepository
from ..core.constants import ATTENDANCE_TABLE
from ..core.enums import AttemptStatus, ChangeType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    event_type: ChangeType
    table: str
    record: AttendanceAttempt


ChangeCallback = Callable[[ChangeEvent], None]
ErrorCallback = Callable[[Exception], None]


class ChangeFeed(Protocol):
    """Push boundary delivering insert/update/delete notifications for a table."""

    def subscribe(
        self,
        table: str,
        event_types: Collection[ChangeType],
        filter: Optional[Mapping[str, Any]],
        callback: ChangeCallback,
        *,
        on_error: Optional[ErrorCallback] = None,
    ) -> Any:
        raise NotImplementedError

    def unsubscribe(self, handle: Any) -> None:
        raise NotImplementedError


@dataclass
class _Subscription:
    handle: int
    table: str
    event_types: frozenset[ChangeType]
    filter: dict[str, Any] = field(default_factory=dict)
    callback: Optional[ChangeCallback] = None
    on_error: Optional[ErrorCallback] = None

    def wants(self, event: ChangeEvent) -> bool:
        if event.table != self.table or event.event_type not in self.event_types:
            return False
        return all(getattr(event.record, k, None) == v for k, v in self.filter.items())


class LocalChangeFeed(ChangeFeed):
    """In-process change feed (Observer Pattern).

    Delivers events synchronously on the publishing thread. ``disconnect``
    simulates a dropped connection: every subscriber's ``on_error`` is told and
    all subscriptions are discarded, as a remote feed would after a drop.
    """

    def __init__(self):
        self._subs: dict[int, _Subscription] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._connected = True

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        self._connected = True

    def subscribe(
        self,
        table: str,
        event_types: Collection[ChangeType],
        filter: Optional[Mapping[str, Any]],
        callback: ChangeCallback,
        *,
        on_error: Optional[ErrorCallback] = None,
    ) -> int:
        if not self._connected:
            raise ConnectionError("Change feed is not connected")

        with self._lock:
            handle = next(self._ids)
            self._subs[handle] = _Subscription(
                handle=handle,
                table=table,
                event_types=frozenset(event_types),
                filter=dict(filter or {}),
                callback=callback,
                on_error=on_error,
            )
        logger.debug("Feed subscription %s on %s (filter=%s)", handle, table, dict(filter or {}))
        return handle

    def unsubscribe(self, handle: int) -> None:
        with self._lock:
            self._subs.pop(handle, None)

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            targets = [s for s in self._subs.values() if s.wants(event)]
        for sub in targets:
            logger.debug("Dispatching %s on %s to subscription %s", event.event_type.value, event.table, sub.handle)
            # A failing subscriber must not fail the committed write or starve the others.
            try:
                sub.callback(event)
            except Exception:
                logger.exception("Subscription %s failed handling %s on %s", sub.handle, event.event_type.value, event.table)

    def disconnect(self, exc: Optional[Exception] = None) -> None:
        exc = exc or ConnectionError("Change feed connection lost")
        with self._lock:
            self._connected = False
            dropped = list(self._subs.values())
            self._subs.clear()
        logger.warning("Change feed disconnected (%s); %d subscription(s) dropped", exc, len(dropped))
        for sub in dropped:
            if sub.on_error is not None:
                sub.on_error(exc)


class PublishingAttendanceRepository(AttendanceRepository):
    """Decorator that publishes a change event after every successful write."""

    def __init__(self, inner: AttendanceRepository, feed: LocalChangeFeed, *, table: str = ATTENDANCE_TABLE):
        self._inner = inner
        self._feed = feed
        self._table = table

    def _publish(self, event_type: ChangeType, record: AttendanceAttempt) -> None:
        self._feed.publish(ChangeEvent(event_type=event_type, table=self._table, record=record))

    def select(self, filter: AttemptFilter) -> Sequence[AttendanceAttempt]:
        return self._inner.select(filter)

    def get_by_id(self, attempt_id: str) -> Optional[AttendanceAttempt]:
        return self._inner.get_by_id(attempt_id)

    def count_for_student_and_date(self, student_id: str, on_date: date) -> int:
        return self._inner.count_for_student_and_date(student_id, on_date)

    def insert(self, attempt: NewAttendanceAttempt, *, daily_limit: Optional[int] = None) -> AttendanceAttempt:
        created = self._inner.insert(attempt, daily_limit=daily_limit)
        self._publish(ChangeType.INSERT, created)
        return created

    def update_status(
        self,
        attempt_id: str,
        status: AttemptStatus,
        *,
        expected: AttemptStatus = AttemptStatus.PENDING,
    ) -> Optional[AttendanceAttempt]:
        updated = self._inner.update_status(attempt_id, status, expected=expected)
        if updated is not None:
            self._publish(ChangeType.UPDATE, updated)
        return updated

    def delete(self, attempt_id: str, *, student_id: Optional[str] = None) -> bool:
        existing = self._inner.get_by_id(attempt_id)
        deleted = self._inner.delete(attempt_id, student_id=student_id)
        if deleted and existing is not None:
            self._publish(ChangeType.DELETE, existing)
        return deleted
