# tests/test_task_store.py

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone

import pytest

from desk_todo.tasks.task_models import Priority, Task
from desk_todo.tasks.task_store import TaskStore


def _task(title: str, created_ts: float, **kw) -> Task:
    return Task(
        id=kw.pop("id", uuid.uuid4()),
        title=title,
        is_completed=kw.pop("is_completed", False),
        priority=kw.pop("priority", Priority.NORMAL),
        created_at=datetime.fromtimestamp(created_ts, tz=timezone.utc),
        **kw,
    )


def test_add_get_roundtrip(store: TaskStore) -> None:
    due = datetime(2024, 6, 1, 12, 30, tzinfo=timezone.utc)
    task = _task("Write report", 1_700_000_000, due_date=due, note="draft first", priority=Priority.IMPORTANT)
    store.add_task(task)

    got = store.get_task(task.id)
    assert got is not None
    assert got.title == "Write report"
    assert got.priority == Priority.IMPORTANT
    assert got.due_date == due
    assert got.note == "draft first"
    assert got.completed_at is None
    assert got.attachment_path is None
    assert store.count_tasks() == 1


def test_add_rejects_blank_title(store: TaskStore) -> None:
    with pytest.raises(ValueError):
        store.add_task(_task("   ", 1_700_000_000))
    assert store.count_tasks() == 0


def test_list_is_newest_first(store: TaskStore) -> None:
    store.add_task(_task("old", 1_700_000_000))
    store.add_task(_task("new", 1_700_000_100))
    store.add_task(_task("mid", 1_700_000_050))

    assert [t.title for t in store.list_tasks()] == ["new", "mid", "old"]


def test_update_and_delete_report_missing_rows(store: TaskStore) -> None:
    task = _task("a", 1_700_000_000)
    assert store.update_task(task) is False
    assert store.delete_task(task.id) is False

    store.add_task(task)
    task.is_completed = True
    task.completed_at = datetime(2024, 1, 2, tzinfo=timezone.utc)
    assert store.update_task(task) is True

    got = store.get_task(task.id)
    assert got is not None and got.is_completed
    assert got.completed_at == datetime(2024, 1, 2, tzinfo=timezone.utc)

    assert store.delete_task(task.id) is True
    assert store.get_task(task.id) is None


def test_replace_all_swaps_contents_and_dedupes(store: TaskStore) -> None:
    store.add_task(_task("old", 1_700_000_000))

    shared = uuid.uuid4()
    count = store.replace_all(
        [
            _task("first copy", 1_700_000_010, id=shared),
            _task("second copy", 1_700_000_020, id=shared),
            _task("other", 1_700_000_030),
        ]
    )

    assert count == 2
    titles = sorted(t.title for t in store.list_tasks())
    assert titles == ["other", "second copy"]


def test_unknown_priority_in_db_reads_as_normal(store: TaskStore, settings) -> None:
    task = _task("x", 1_700_000_000)
    store.add_task(task)

    conn = sqlite3.connect(str(settings.tasks_db_path))
    try:
        conn.execute("UPDATE tasks SET priority = 'urgent' WHERE id = ?", (str(task.id),))
        conn.commit()
    finally:
        conn.close()

    got = store.get_task(task.id)
    assert got is not None
    assert got.priority == Priority.NORMAL
