# src/desk_todo/core/state.py

from __future__ import annotations

import uuid
from collections.abc import Coroutine
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from ..reminders.notification_center import LocalNotificationCenter
from ..reports.report_service import ReportService
from ..tasks.task_service import TaskService
from ..tasks.task_view import TaskView
from .preferences import Preferences

if TYPE_CHECKING:
    from ..connectors.background import BackgroundRunner

T = TypeVar("T")


@dataclass
class AppState:
    """
    Everything the front end needs, wired once by the composition root.

    Services are plain objects passed around through this state; there are no
    module-level singletons.
    """

    settings: Any

    preferences: Preferences
    notifications: LocalNotificationCenter
    tasks: TaskService
    reports: ReportService

    view: TaskView = field(default_factory=TaskView)
    # Ids in the order of the last printed list, so commands can say "/done 2".
    last_listing: list[uuid.UUID] = field(default_factory=list)

    runner: BackgroundRunner | None = None

    def run(self, coro: Coroutine[Any, Any, T], timeout: float | None = None) -> T:
        """Run a service coroutine on the background loop and wait for its result."""
        if self.runner is None:
            coro.close()
            raise RuntimeError("Background loop is not running.")
        return self.runner.submit(coro, timeout=timeout)
