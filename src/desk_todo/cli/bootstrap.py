# src/desk_todo/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (store/snapshot/reminders/LLM).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import LLMClient
from ..core.preferences import Preferences
from ..core.state import AppState
from ..llm.client import OpenAICompatibleLLMClient
from ..llm.offline import OfflineLLMClient
from ..reminders.notification_center import LocalNotificationCenter
from ..reminders.reminder_scheduler import ReminderScheduler
from ..reports.report_service import ReportService
from ..snapshot.export_queue import ExportQueue
from ..snapshot.snapshot_store import SnapshotStore
from ..tasks.task_service import TaskService
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.preferences_path.parent.mkdir(parents=True, exist_ok=True)


def build_llm_client(settings) -> LLMClient:
    try:
        return OpenAICompatibleLLMClient(settings)
    except Exception as e:
        # Reports still render locally without an external service.
        logger.info("LLM client unavailable (%s); using offline mode.", e)
        return OfflineLLMClient()


def create_initial_state(*, settings=None, llm: LLMClient | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    preferences = Preferences(
        settings.preferences_path,
        default_storage_dir=getattr(settings, "storage_dir", None),
    )
    store = TaskStore(settings.tasks_db_path)
    snapshot = SnapshotStore()
    exports = ExportQueue(snapshot, store.list_tasks)
    notifications = LocalNotificationCenter(enabled=settings.notifications_enabled)
    reminders = ReminderScheduler(notifications)

    tasks = TaskService(
        store,
        snapshot=snapshot,
        exports=exports,
        reminders=reminders,
        preferences=preferences,
    )
    reports = ReportService(
        llm if llm is not None else build_llm_client(settings),
        language=settings.report_language,
        first_weekday=settings.first_weekday,
    )

    return AppState(
        settings=settings,
        preferences=preferences,
        notifications=notifications,
        tasks=tasks,
        reports=reports,
    )
