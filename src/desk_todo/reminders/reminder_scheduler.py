# src/desk_todo/reminders/reminder_scheduler.py

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from ..core.ports import NotificationCenter, NotificationRequest
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Task reminder"


@dataclass(slots=True, frozen=True)
class NoReminder:
    pass


@dataclass(slots=True, frozen=True)
class PendingReminder:
    key: str
    fire_at: datetime
    body: str


ReminderState = NoReminder | PendingReminder

NO_REMINDER = NoReminder()


def reminder_key(task_id: uuid.UUID) -> str:
    return f"task-{task_id}"


def fire_time(due_date: datetime) -> datetime:
    """Reminders fire at minute resolution."""
    return due_date.replace(second=0, microsecond=0)


class ReminderScheduler:
    """
    Keeps at most one pending notification per task.

    State per task is explicit (NoReminder / PendingReminder) instead of being
    inferred from is_completed + due_date, because a completed task may keep
    its reminder when the user asks for it.

    Rescheduling is always cancel-then-schedule under the same key.
    Notification backend errors are logged, never raised to the caller.
    """

    def __init__(self, center: NotificationCenter) -> None:
        self._center = center
        self._states: dict[uuid.UUID, PendingReminder] = {}
        self._authorized: bool | None = None

    # ---- authorization ----

    @property
    def is_authorized(self) -> bool:
        return bool(self._authorized)

    def ensure_authorized(self) -> bool:
        """Ask the host once; the answer is cached for the process lifetime."""
        if self._authorized is None:
            try:
                self._authorized = bool(self._center.request_authorization())
            except Exception:
                logger.exception("Notification authorization request failed")
                self._authorized = False
        return self._authorized

    # ---- state ----

    def state_of(self, task_id: uuid.UUID) -> ReminderState:
        return self._states.get(task_id, NO_REMINDER)

    def pending(self) -> dict[uuid.UUID, PendingReminder]:
        return dict(self._states)

    # ---- transitions ----

    def schedule(self, task: Task) -> ReminderState:
        """(Re)schedule the reminder for `task` at its due date; no due date -> cancel."""
        if task.due_date is None:
            self.cancel(task.id)
            return NO_REMINDER

        self.cancel(task.id)

        state = PendingReminder(
            key=reminder_key(task.id),
            fire_at=fire_time(task.due_date),
            body=task.title,
        )
        request = NotificationRequest(
            key=state.key,
            fire_at=state.fire_at,
            title=REMINDER_TITLE,
            body=state.body,
        )
        try:
            accepted = self._center.schedule(request)
        except Exception:
            logger.exception("Failed to schedule reminder task_id=%s", task.id)
            return NO_REMINDER

        if not accepted:
            logger.info("Reminder not scheduled task_id=%s (dropped by notification center)", task.id)
            return NO_REMINDER

        self._states[task.id] = state
        logger.info("Reminder scheduled task_id=%s fire_at=%s", task.id, state.fire_at)
        return state

    def cancel(self, task_id: uuid.UUID) -> None:
        """Cancel by deterministic key. Unknown tasks are a no-op."""
        try:
            self._center.cancel(reminder_key(task_id))
        except Exception:
            logger.exception("Failed to cancel reminder task_id=%s", task_id)
            return
        if self._states.pop(task_id, None) is not None:
            logger.info("Reminder cancelled task_id=%s", task_id)

    def sync(self, task: Task) -> ReminderState:
        """
        Bring the reminder in line with the task:
        - open task with a due date -> pending at that due date
        - anything else -> no reminder
        An unchanged pending reminder is left alone.
        """
        if not task.wants_reminder:
            self.cancel(task.id)
            return NO_REMINDER

        assert task.due_date is not None
        current = self._states.get(task.id)
        if (
            current is not None
            and current.fire_at == fire_time(task.due_date)
            and current.body == task.title
        ):
            return current
        return self.schedule(task)

    def resync(self, tasks: Iterable[Task]) -> None:
        """Re-evaluate every task; reminders of tasks no longer present are cancelled."""
        seen: set[uuid.UUID] = set()
        for task in tasks:
            seen.add(task.id)
            self.sync(task)
        for task_id in [tid for tid in self._states if tid not in seen]:
            self.cancel(task_id)

    def cancel_all(self) -> None:
        for task_id in list(self._states):
            self.cancel(task_id)
