# tests/test_export_queue.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from desk_todo.snapshot.export_queue import ExportQueue
from desk_todo.snapshot.snapshot_store import SNAPSHOT_FILENAME, SnapshotStore
from desk_todo.tasks.task_models import Task
from desk_todo.tasks.task_store import TaskStore


def _titles_on_disk(base_dir: Path) -> list[str]:
    doc = json.loads((base_dir / SNAPSHOT_FILENAME).read_text("utf-8"))
    return sorted(e["title"] for e in doc["tasks"])


@pytest.mark.asyncio
async def test_no_folder_means_no_export(store: TaskStore) -> None:
    queue = ExportQueue(SnapshotStore(), store.list_tasks)

    queue.request(None)
    await queue.drain()

    assert queue.exports_run == 0


@pytest.mark.asyncio
async def test_burst_of_requests_coalesces(store: TaskStore, storage_dir: Path) -> None:
    queue = ExportQueue(SnapshotStore(), store.list_tasks)

    for i in range(5):
        store.add_task(Task.create(f"t{i}"))
        queue.request(storage_dir)

    assert queue.in_flight(storage_dir)
    await queue.drain(storage_dir)

    assert not queue.in_flight(storage_dir)
    assert 1 <= queue.exports_run <= 2
    assert _titles_on_disk(storage_dir) == ["t0", "t1", "t2", "t3", "t4"]


@pytest.mark.asyncio
async def test_last_write_reflects_latest_state(store: TaskStore, storage_dir: Path) -> None:
    queue = ExportQueue(SnapshotStore(), store.list_tasks)

    first = Task.create("first")
    store.add_task(first)
    queue.request(storage_dir)
    await queue.drain(storage_dir)
    assert _titles_on_disk(storage_dir) == ["first"]

    store.delete_task(first.id)
    store.add_task(Task.create("second"))
    queue.request(storage_dir)
    await queue.drain()

    assert _titles_on_disk(storage_dir) == ["second"]
    assert queue.exports_run == 2


@pytest.mark.asyncio
async def test_failing_loader_does_not_break_the_queue(storage_dir: Path) -> None:
    calls = {"n": 0}

    def flaky() -> list[Task]:
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("db locked")
        return [Task.create("recovered")]

    queue = ExportQueue(SnapshotStore(), flaky)

    queue.request(storage_dir)
    await queue.drain()
    assert not (storage_dir / SNAPSHOT_FILENAME).exists()

    queue.request(storage_dir)
    await queue.drain()
    assert _titles_on_disk(storage_dir) == ["recovered"]


@pytest.mark.asyncio
async def test_directories_are_independent(store: TaskStore, tmp_path: Path) -> None:
    a = tmp_path / "a"
    b = tmp_path / "b"
    store.add_task(Task.create("x"))
    queue = ExportQueue(SnapshotStore(), store.list_tasks)

    queue.request(a)
    queue.request(b)
    await queue.drain()

    assert _titles_on_disk(a) == ["x"]
    assert _titles_on_disk(b) == ["x"]
