# src/desk_todo/reminders/notification_center.py

from __future__ import annotations

"""
In-process notification center.

Holds pending one-shot notifications in memory and a small polling loop that:
- pops requests whose fire time has passed,
- hands them to an injected sink (console, desktop bridge, ...),
- logs delivery failures and moves on (one-shot: no redelivery).

Pending requests do not survive a restart; the reminder scheduler resyncs
them from the task store at startup.
"""

import asyncio
import logging
import threading
from datetime import datetime, timedelta

from ..core.ports import NotificationRequest, NotificationSink
from ..tasks.task_models import utc_now

logger = logging.getLogger(__name__)


class LocalNotificationCenter:
    def __init__(self, *, enabled: bool = True, grace_seconds: float = 60.0) -> None:
        self._enabled = bool(enabled)
        self._grace = timedelta(seconds=max(0.0, float(grace_seconds)))
        self._authorized = False
        self._pending: dict[str, NotificationRequest] = {}
        self._lock = threading.Lock()

    @property
    def is_authorized(self) -> bool:
        return self._authorized

    def request_authorization(self) -> bool:
        self._authorized = self._enabled
        logger.info("Notification authorization: %s", "granted" if self._authorized else "denied")
        return self._authorized

    def schedule(self, request: NotificationRequest) -> bool:
        if not self._authorized:
            logger.debug("Notifications not authorized; dropping %s", request.key)
            return False
        if request.fire_at < utc_now() - self._grace:
            # A calendar trigger in the past never fires.
            logger.debug("Notification %s is in the past; dropping", request.key)
            return False
        with self._lock:
            self._pending[request.key] = request
        logger.debug("Notification scheduled key=%s fire_at=%s", request.key, request.fire_at)
        return True

    def cancel(self, key: str) -> None:
        with self._lock:
            removed = self._pending.pop(key, None)
        if removed is not None:
            logger.debug("Notification cancelled key=%s", key)

    def cancel_all(self) -> None:
        with self._lock:
            self._pending.clear()

    def pending_keys(self) -> list[str]:
        with self._lock:
            return sorted(self._pending)

    def get(self, key: str) -> NotificationRequest | None:
        with self._lock:
            return self._pending.get(key)

    def pop_due(self, now: datetime | None = None) -> list[NotificationRequest]:
        """Remove and return every request whose fire time is <= now, oldest first."""
        now = now or utc_now()
        with self._lock:
            due = [r for r in self._pending.values() if r.fire_at <= now]
            for r in due:
                del self._pending[r.key]
        due.sort(key=lambda r: r.fire_at)
        return due


async def run_notification_loop(
        center: LocalNotificationCenter,
        sink: NotificationSink,
        *,
        interval_seconds: float = 15.0,
) -> None:
    """
    Deliver due notifications every interval_seconds.

    To stop the loop, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        try:
            due = center.pop_due()
        except Exception:
            logger.exception("pop_due failed")
            due = []

        for request in due:
            try:
                await sink.show(title=request.title, body=request.body)
                logger.info("Notification delivered key=%s", request.key)
            except Exception:
                logger.exception("Notification delivery failed key=%s", request.key)

        await asyncio.sleep(sleep_s)
