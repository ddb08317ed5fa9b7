# src/desk_todo/snapshot/snapshot_store.py

"""
JSON snapshot of the task set, mirrored into the storage folder.

Document layout (UTF-8):

    {
      "exportDate": <epoch seconds>,
      "totalTasks": int, "completedTasks": int, "pendingTasks": int,
      "tasks": [ {"id", "title", "isCompleted", "priority", "createdAt", "note",
                  "dueDate"?, "completedAt"?, "attachmentPath"?}, ... ]
    }

Optional keys are omitted when absent, never written as null.
"""

from __future__ import annotations

import json
import logging
import os
import time
import uuid
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from ..tasks.task_models import Priority, Task, from_epoch, to_epoch

logger = logging.getLogger(__name__)

SNAPSHOT_FILENAME = "_METAINFO.json"


def snapshot_path(base_dir: str | Path) -> Path:
    return Path(base_dir) / SNAPSHOT_FILENAME


def _is_number(value: Any) -> bool:
    # bool is an int subclass; a JSON true/false is not a timestamp.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def task_to_dict(task: Task) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": str(task.id),
        "title": task.title,
        "isCompleted": task.is_completed,
        "priority": task.priority.value,
        "createdAt": to_epoch(task.created_at),
        "note": task.note or "",
    }
    if task.due_date is not None:
        data["dueDate"] = to_epoch(task.due_date)
    if task.completed_at is not None:
        data["completedAt"] = to_epoch(task.completed_at)
    if task.attachment_path is not None:
        data["attachmentPath"] = task.attachment_path
    return data


def _timestamp(value: Any) -> datetime | None:
    """Epoch seconds to an aware datetime; None for non-numbers, NaN or out-of-range values."""
    if not _is_number(value):
        return None
    try:
        return from_epoch(value)
    except (OverflowError, OSError, ValueError):
        return None


def task_from_dict(data: Any) -> Task | None:
    """
    Rebuild a Task from one snapshot entry.

    Returns None when a required key is missing, has the wrong JSON type, or
    (for createdAt) is not a usable timestamp. Unusable optional timestamps
    are dropped.
    An unparseable id gets a fresh UUID (repeated imports can then duplicate
    that task).
    """
    if not isinstance(data, dict):
        return None

    raw_id = data.get("id")
    title = data.get("title")
    is_completed = data.get("isCompleted")
    priority = data.get("priority")
    created_at = data.get("createdAt")

    if not isinstance(raw_id, str) or not isinstance(title, str):
        return None
    if not isinstance(is_completed, bool) or not isinstance(priority, str):
        return None
    created = _timestamp(created_at)
    if created is None:
        return None

    try:
        task_id = uuid.UUID(raw_id)
    except ValueError:
        task_id = uuid.uuid4()
        logger.warning("Snapshot entry has invalid id %r; minted %s", raw_id, task_id)

    note = data.get("note")
    due = data.get("dueDate")
    completed = data.get("completedAt")
    attachment = data.get("attachmentPath")

    return Task(
        id=task_id,
        title=title,
        is_completed=is_completed,
        priority=Priority.from_raw(priority),
        created_at=created,
        completed_at=_timestamp(completed),
        due_date=_timestamp(due),
        note=note if isinstance(note, str) else "",
        attachment_path=attachment if isinstance(attachment, str) else None,
    )


def build_document(tasks: Iterable[Task], *, export_date: float | None = None) -> dict[str, Any]:
    """Snapshot document for `tasks`; entries sorted by creation time, then id."""
    items = sorted(tasks, key=lambda t: (to_epoch(t.created_at), str(t.id)))
    completed = sum(1 for t in items if t.is_completed)
    return {
        "exportDate": time.time() if export_date is None else float(export_date),
        "totalTasks": len(items),
        "completedTasks": completed,
        "pendingTasks": len(items) - completed,
        "tasks": [task_to_dict(t) for t in items],
    }


class SnapshotStore:
    """Reads and writes `_METAINFO.json` in a storage folder."""

    def export(self, tasks: Iterable[Task], base_dir: str | Path | None) -> Path | None:
        """
        Overwrite the snapshot in `base_dir` with `tasks`.

        No storage folder configured -> no-op. I/O errors are logged and
        swallowed; the primary store stays authoritative.
        Returns the written path, or None if nothing was written.
        """
        if base_dir is None:
            return None

        path = snapshot_path(base_dir)
        try:
            doc = build_document(tasks)
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            tmp.write_text(json.dumps(doc, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, path)
        except Exception:
            logger.exception("Failed to export task snapshot to %s", path)
            return None

        logger.info("Exported %d tasks to %s", doc["totalTasks"], path)
        return path

    def load(self, base_dir: str | Path | None) -> list[Task]:
        """
        Tasks from the snapshot in `base_dir`.

        Missing, unreadable or malformed documents yield []: the caller keeps
        its current data and should seed the folder with an export.
        """
        if base_dir is None:
            return []

        path = snapshot_path(base_dir)
        if not path.exists():
            logger.info("No task snapshot at %s", path)
            return []

        try:
            data = json.loads(path.read_text("utf-8"))
        except Exception:
            logger.exception("Failed to read task snapshot %s", path)
            return []

        entries = data.get("tasks") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            logger.warning("Task snapshot %s has no task list; ignoring", path)
            return []

        out: list[Task] = []
        for entry in entries:
            task = task_from_dict(entry)
            if task is not None:
                out.append(task)

        skipped = len(entries) - len(out)
        logger.info("Loaded %d tasks from %s (skipped=%d)", len(out), path, skipped)
        return out
