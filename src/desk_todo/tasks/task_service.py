# src/desk_todo/tasks/task_service.py

"""
Task mutation API.

The single writer for the task set. Every accepted mutation:
1. is written to the primary store (errors here propagate: nothing happened),
2. queues a background snapshot export,
3. re-evaluates the task's reminder.

Steps 2 and 3 never fail the mutation; their errors are logged.
Mutations serialize on one asyncio.Lock, so ordering does not depend on the
caller's event model.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.ports import TaskRepo
from ..core.preferences import Preferences
from ..reminders.reminder_scheduler import PendingReminder, ReminderScheduler
from ..snapshot.export_queue import ExportQueue
from ..snapshot.snapshot_store import SnapshotStore
from .attachments import create_task_folder
from .task_models import Priority, Task, TaskNotFoundError, clean_title, utc_now
from .task_view import TaskView, apply_view

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(slots=True, frozen=True)
class CompletionResult:
    """
    Outcome of completing (or toggling) a task.

    reminder_pending=True means the task was completed before its due date and
    its reminder is still scheduled; the caller decides whether to follow up
    with TaskService.cancel_reminder().
    """

    task: Task
    reminder_pending: bool


@dataclass(slots=True, frozen=True)
class FolderSwitchResult:
    storage_dir: Path
    imported: int
    seeded: bool


class TaskService:
    def __init__(
        self,
        store: TaskRepo,
        *,
        snapshot: SnapshotStore,
        exports: ExportQueue,
        reminders: ReminderScheduler,
        preferences: Preferences,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._snapshot = snapshot
        self._exports = exports
        self._reminders = reminders
        self._preferences = preferences
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def storage_dir(self) -> Path | None:
        return self._preferences.storage_dir

    @property
    def reminders(self) -> ReminderScheduler:
        return self._reminders

    # ---- helpers ----

    def _require(self, task_id: uuid.UUID) -> Task:
        task = self._store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def _save(self, task: Task) -> None:
        if not self._store.update_task(task):
            raise TaskNotFoundError(task.id)

    def _request_export(self) -> None:
        try:
            self._exports.request(self.storage_dir)
        except Exception:
            logger.exception("Failed to queue snapshot export")

    def _has_pending_reminder(self, task_id: uuid.UUID) -> bool:
        return isinstance(self._reminders.state_of(task_id), PendingReminder)

    # ---- lifecycle ----

    async def startup(self) -> None:
        """Authorize notifications, rebuild reminders, refresh the snapshot."""
        self._reminders.ensure_authorized()
        tasks = self._store.list_tasks()
        self._reminders.resync(tasks)
        self._request_export()
        logger.info(
            "TaskService started tasks=%d reminders=%d storage_dir=%s",
            len(tasks),
            len(self._reminders.pending()),
            self.storage_dir,
        )

    async def flush(self) -> None:
        """Wait for queued snapshot exports to finish."""
        await self._exports.drain()

    # ---- queries ----

    def get_task(self, task_id: uuid.UUID) -> Task:
        return self._require(task_id)

    def all_tasks(self) -> list[Task]:
        return self._store.list_tasks()

    def list_tasks(self, view: TaskView | None = None) -> list[Task]:
        return apply_view(self._store.list_tasks(), view or TaskView())

    # ---- mutations ----

    async def add_task(
        self,
        title: str,
        *,
        priority: Priority = Priority.NORMAL,
        due_date: datetime | None = None,
        note: str = "",
    ) -> Task:
        task = Task.create(title, priority=priority, due_date=due_date, note=note, created_at=self._clock())
        async with self._lock:
            self._store.add_task(task)
            logger.info("Task created id=%s", task.id)
            self._request_export()
            self._reminders.sync(task)
        return task

    async def update_task(
        self,
        task_id: uuid.UUID,
        *,
        title: Any = UNSET,
        priority: Any = UNSET,
        due_date: Any = UNSET,
        note: Any = UNSET,
    ) -> Task:
        """Edit fields in place. For due_date, None removes it and UNSET leaves it."""
        async with self._lock:
            task = self._require(task_id)

            if title is not UNSET:
                task.title = clean_title(title)
            if priority is not UNSET:
                task.priority = Priority(priority)
            if note is not UNSET:
                task.note = note or ""

            due_changed = due_date is not UNSET and due_date != task.due_date
            if due_date is not UNSET:
                task.due_date = due_date

            self._save(task)
            logger.info("Task updated id=%s due_changed=%s", task.id, due_changed)
            self._request_export()

            if due_changed or task.wants_reminder:
                self._reminders.sync(task)
            return task

    async def set_due_date(self, task_id: uuid.UUID, due_date: datetime) -> Task:
        return await self.update_task(task_id, due_date=due_date)

    async def clear_due_date(self, task_id: uuid.UUID) -> Task:
        return await self.update_task(task_id, due_date=None)

    async def set_priority(self, task_id: uuid.UUID, priority: Priority) -> Task:
        return await self.update_task(task_id, priority=priority)

    async def set_note(self, task_id: uuid.UUID, note: str) -> Task:
        return await self.update_task(task_id, note=note)

    async def complete(self, task_id: uuid.UUID) -> CompletionResult:
        """
        Mark the task done.

        A reminder whose due date is still ahead is kept; the result says so
        and cancel_reminder() is the second step. Otherwise it is cancelled.
        """
        async with self._lock:
            task = self._require(task_id)
            if task.is_completed:
                return CompletionResult(task=task, reminder_pending=self._has_pending_reminder(task.id))

            now = self._clock()
            task.is_completed = True
            task.completed_at = now
            self._save(task)
            logger.info("Task completed id=%s", task.id)
            self._request_export()

            future_due = task.due_date is not None and task.due_date > now
            if future_due and self._has_pending_reminder(task.id):
                return CompletionResult(task=task, reminder_pending=True)

            self._reminders.cancel(task.id)
            return CompletionResult(task=task, reminder_pending=False)

    async def cancel_reminder(self, task_id: uuid.UUID) -> None:
        async with self._lock:
            self._require(task_id)
            self._reminders.cancel(task_id)

    async def reopen(self, task_id: uuid.UUID) -> Task:
        async with self._lock:
            task = self._require(task_id)
            if not task.is_completed:
                return task

            task.is_completed = False
            task.completed_at = None
            self._save(task)
            logger.info("Task reopened id=%s", task.id)
            self._request_export()
            self._reminders.sync(task)
            return task

    async def toggle(self, task_id: uuid.UUID) -> CompletionResult:
        task = self._require(task_id)
        if not task.is_completed:
            return await self.complete(task_id)
        reopened = await self.reopen(task_id)
        return CompletionResult(task=reopened, reminder_pending=self._has_pending_reminder(task_id))

    async def delete_task(self, task_id: uuid.UUID) -> None:
        async with self._lock:
            self._require(task_id)
            self._reminders.cancel(task_id)
            self._store.delete_task(task_id)
            logger.info("Task deleted id=%s", task_id)
            self._request_export()

    async def open_attachment_folder(self, task_id: uuid.UUID) -> Path | None:
        """
        The task's attachment folder, created on first access.

        Returns None before a storage folder is chosen.
        """
        async with self._lock:
            task = self._require(task_id)

            if task.attachment_path:
                existing = Path(task.attachment_path)
                if existing.is_dir():
                    return existing

            folder = create_task_folder(self.storage_dir, task)
            if folder is None:
                return None

            if task.attachment_path != str(folder):
                task.attachment_path = str(folder)
                self._save(task)
                self._request_export()
            return folder

    async def switch_storage_folder(self, path: str | Path) -> FolderSwitchResult:
        """
        Point the app at another storage folder.

        A non-empty snapshot there replaces the whole task set (delete all,
        insert all). Otherwise the current set is exported to seed the folder.
        """
        new_dir = Path(path).expanduser()
        async with self._lock:
            old_dir = self.storage_dir
            if old_dir is not None:
                await self._exports.drain(old_dir)
            await self._exports.drain(new_dir)

            # Read before switching: a failed read leaves the old folder in place.
            loaded = await asyncio.to_thread(self._snapshot.load, new_dir)
            self._preferences.set_storage_dir(new_dir)

            if not loaded:
                logger.info("No tasks in %s; keeping current list and seeding the folder", new_dir)
                self._request_export()
                return FolderSwitchResult(storage_dir=new_dir, imported=0, seeded=True)

            self._reminders.cancel_all()
            count = self._store.replace_all(loaded)
            self._reminders.resync(self._store.list_tasks())
            logger.info("Imported %d tasks from %s", count, new_dir)
            return FolderSwitchResult(storage_dir=new_dir, imported=count, seeded=False)
