# src/desk_todo/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum


class Priority(StrEnum):
    NORMAL = "normal"
    IMPORTANT = "important"

    @classmethod
    def from_raw(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.NORMAL
        try:
            return cls(raw)
        except Exception:
            return cls.NORMAL


class TaskNotFoundError(LookupError):
    """Raised when an operation names a task id that is not in the store."""

    def __init__(self, task_id: uuid.UUID) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch(dt: datetime) -> float:
    return dt.timestamp()


def from_epoch(ts: float) -> datetime:
    return datetime.fromtimestamp(float(ts), tz=timezone.utc)


def clean_title(title: str | None) -> str:
    text = (title or "").strip()
    if not text:
        raise ValueError("title is required")
    return text


@dataclass(slots=True)
class Task:
    id: uuid.UUID
    title: str
    is_completed: bool
    priority: Priority
    created_at: datetime

    completed_at: datetime | None = None
    due_date: datetime | None = None
    note: str = ""
    attachment_path: str | None = None

    @classmethod
    def create(
        cls,
        title: str,
        *,
        priority: Priority = Priority.NORMAL,
        due_date: datetime | None = None,
        note: str = "",
        created_at: datetime | None = None,
    ) -> Task:
        """New open task with a fresh id. Empty titles are rejected."""
        return cls(
            id=uuid.uuid4(),
            title=clean_title(title),
            is_completed=False,
            priority=priority,
            created_at=created_at or utc_now(),
            due_date=due_date,
            note=note or "",
        )

    @property
    def wants_reminder(self) -> bool:
        return not self.is_completed and self.due_date is not None
