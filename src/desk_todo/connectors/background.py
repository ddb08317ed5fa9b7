# src/desk_todo/connectors/background.py

"""
Background event loop for the services.

Why a thread:
- the console REPL is blocking (input()),
- snapshot exports and notification delivery are async and want a loop that
  keeps running while the user types.

Console commands hand their coroutines over with BackgroundRunner.submit().
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

from ..core.ports import NotificationSink
from ..core.state import AppState
from ..reminders.notification_center import run_notification_loop

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def submit(self, coro: Coroutine[Any, Any, T], timeout: float | None = None) -> T:
        fut = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return fut.result(timeout=timeout)

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal background loop stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


async def _run_services(
    state: AppState,
    sink: NotificationSink,
    stop_event: asyncio.Event,
    ready: threading.Event,
) -> None:
    try:
        await state.tasks.startup()
    finally:
        # Commands submitted after this point see authorized reminders.
        ready.set()

    interval = float(getattr(state.settings, "notification_poll_seconds", 15.0))
    notifier = asyncio.create_task(
        run_notification_loop(state.notifications, sink, interval_seconds=interval),
        name="notification-loop",
    )
    try:
        await stop_event.wait()
    finally:
        notifier.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await notifier
        # Let the last snapshot export land before the loop goes away.
        await state.tasks.flush()


def start_background_loop(state: AppState, sink: NotificationSink) -> BackgroundRunner | None:
    """Start the service loop in a daemon thread and attach it to `state`."""
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event

        try:
            loop.run_until_complete(_run_services(state, sink, stop_event, ready))
        except Exception:
            logger.exception("Background loop crashed.")
            ready.set()
        finally:
            with contextlib.suppress(Exception):
                loop.stop()
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="desk-todo-services", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Background thread did not initialize properly.")
        return None

    bg = BackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
    state.runner = bg
    logger.info("Background service loop started.")
    return bg
