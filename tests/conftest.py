# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from desk_todo.cli.bootstrap import create_initial_state
from desk_todo.connectors.background import start_background_loop
from desk_todo.core.preferences import Preferences
from desk_todo.core.state import AppState
from desk_todo.reminders.notification_center import LocalNotificationCenter
from desk_todo.reminders.reminder_scheduler import ReminderScheduler
from desk_todo.snapshot.export_queue import ExportQueue
from desk_todo.snapshot.snapshot_store import SnapshotStore
from desk_todo.tasks.task_service import TaskService
from desk_todo.tasks.task_store import TaskStore

from .fakes import FakeLLMClient, RecordingSink


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the services.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="desk-todo-test",
        log_level="DEBUG",
        # Paths (tmp per test run)
        data_dir=tmp_path / "data",
        tasks_db_path=tmp_path / "data" / "tasks.sqlite3",
        preferences_path=tmp_path / "data" / "preferences.json",
        storage_dir=None,
        # Reminders
        notifications_enabled=True,
        notification_poll_seconds=0.01,
        # Reports
        first_weekday=0,
        report_language="English",
        llm_models=["fake-model"],
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def storage_dir(tmp_path: Path) -> Path:
    d = tmp_path / "storage"
    d.mkdir()
    return d


@pytest.fixture()
def center() -> LocalNotificationCenter:
    return LocalNotificationCenter(enabled=True)


@pytest.fixture()
def make_service(settings: SimpleNamespace, store: TaskStore, center: LocalNotificationCenter):
    """
    Build a TaskService over the real SQLite store and snapshot code.

    `storage_dir=None` models a first run before a folder was chosen.
    `notifications` replaces the default (authorizing) notification center.
    """

    def _make(storage_dir: Path | None = None, notifications=None) -> TaskService:
        preferences = Preferences(settings.preferences_path, default_storage_dir=storage_dir)
        snapshot = SnapshotStore()
        return TaskService(
            store,
            snapshot=snapshot,
            exports=ExportQueue(snapshot, store.list_tasks),
            reminders=ReminderScheduler(notifications or center),
            preferences=preferences,
        )

    return _make


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def state(settings: SimpleNamespace, sink: RecordingSink) -> Iterator[AppState]:
    """
    Fully wired AppState with the service loop running in its thread.

    The LLM is a deterministic fake; everything else is real.
    """
    app = create_initial_state(settings=settings, llm=FakeLLMClient())
    runner = start_background_loop(app, sink)
    assert runner is not None
    try:
        yield app
    finally:
        runner.stop()
        runner.join(timeout=10.0)
