# src/desk_todo/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the service loop (snapshot exports, reminders) in a background thread,
- the console REPL in the main thread.
"""

from __future__ import annotations

import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.background import start_background_loop
from ..connectors.console_connector import ConsoleNotificationSink, run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/desk_todo")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "desk-todo"))

    # Reuse the same settings object.
    state = create_initial_state(settings=settings)

    runner = start_background_loop(state, ConsoleNotificationSink())
    if runner is None:
        logger.error("Could not start the service loop; exiting.")
        return

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        raise KeyboardInterrupt

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError):
        # Not available on every platform.
        pass

    if not state.preferences.is_initialized:
        print("No storage folder chosen yet. Use /folder <path> to keep _METAINFO.json and attachments there.")

    try:
        run_console_loop(state)
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        runner.stop()
        runner.join(timeout=10.0)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
