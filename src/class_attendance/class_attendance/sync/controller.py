from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..core.constants import ATTENDANCE_TABLE, DEFAULT_RECONNECT_ATTEMPTS
from ..core.enums import ChangeType
from .feed import ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)

ALL_EVENTS = (ChangeType.INSERT, ChangeType.UPDATE, ChangeType.DELETE)


@dataclass(frozen=True)
class SyncScope:
    """``student_id`` scopes notifications to one student; None means every row (authority view)."""

    student_id: Optional[str] = None

    def as_filter(self) -> dict[str, Any]:
        return {"student_id": self.student_id} if self.student_id is not None else {}


class LiveSyncController:
    """Keeps a consumer's derived data in step with the attendance table.

    Every insert/update/delete inside the scope calls ``on_change`` with no
    diffing; the consumer recomputes from scratch. ``start``/``stop`` are
    idempotent and are called by whatever owns the consumer's lifetime.
    After ``stop`` no callback fires, including notifications already in flight.
    """

    def __init__(
        self,
        feed: ChangeFeed,
        on_change: Callable[[], None],
        *,
        scope: SyncScope = SyncScope(),
        table: str = ATTENDANCE_TABLE,
        reconnect_attempts: int = DEFAULT_RECONNECT_ATTEMPTS,
        connector: Optional[Callable[[], None]] = None,
    ):
        self._feed = feed
        self._on_change = on_change
        self._scope = scope
        self._table = table
        self._reconnect_attempts = int(reconnect_attempts)
        self._connector = connector
        self._handle: Any = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def connected(self) -> bool:
        return self._handle is not None

    @property
    def scope(self) -> SyncScope:
        return self._scope

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        self._subscribe()
        logger.info("Live sync started (student=%s)", self._scope.student_id or "*")

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        handle, self._handle = self._handle, None
        if handle is not None:
            self._feed.unsubscribe(handle)
        logger.info("Live sync stopped (student=%s)", self._scope.student_id or "*")

    def _subscribe(self) -> None:
        self._handle = self._feed.subscribe(
            self._table,
            ALL_EVENTS,
            self._scope.as_filter(),
            self._dispatch,
            on_error=self._on_feed_error,
        )

    def _dispatch(self, event: ChangeEvent) -> None:
        if not self._active:
            return
        logger.debug("Change %s on attempt %s", event.event_type.value, event.record.id)
        self._on_change()

    def _on_feed_error(self, exc: Exception) -> None:
        if not self._active:
            return
        self._handle = None
        logger.warning("Live sync lost its feed connection: %s", exc)
        self.reconnect()

    def reconnect(self) -> bool:
        """Resubscribe after a dropped feed; returns True once subscribed again.

        On success ``on_change`` fires once, since changes made while the feed
        was down were never delivered.
        """

        if not self._active:
            return False
        if self._handle is not None:
            return True

        for attempt in range(1, self._reconnect_attempts + 1):
            try:
                if self._connector is not None:
                    self._connector()
                self._subscribe()
            except Exception as exc:
                logger.warning("Reconnect attempt %d/%d failed: %s", attempt, self._reconnect_attempts, exc)
                continue

            logger.info("Live sync reconnected after %d attempt(s)", attempt)
            self._on_change()
            return True

        logger.error("Live sync could not reconnect; consumers keep the last snapshot")
        return False


def subscribe(feed: ChangeFeed, scope: SyncScope, on_change: Callable[[], None], **kwargs) -> Callable[[], None]:
    """Start a controller and hand back its (idempotent) unsubscribe."""
    controller = LiveSyncController(feed, on_change, scope=scope, **kwargs)
    controller.start()
    return controller.stop
