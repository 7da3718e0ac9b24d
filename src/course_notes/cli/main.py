# src/course_notes/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the rollover scheduler in a background thread (sweep at startup, then every N seconds),
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleRolloverListener, run_console_loop
from ..logging_setup import level_from_name, setup_logging
from ..recurrence.rollover import RolloverBackgroundRunner, start_rollover_in_background

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    # NoteStore uses short-lived sqlite connections per call; close() is a no-op hook.
    try:
        store = getattr(state, "store", None)
        if store is not None and hasattr(store, "close"):
            store.close()
    except Exception:
        logger.debug("Store close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    console_level = level_from_name(getattr(settings, "log_level", "INFO"))
    log_dir = getattr(settings, "data_dir", ".local/course_notes")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "course-notes"))

    state = create_initial_state(settings=settings, listener=ConsoleRolloverListener())

    rollover_runner: RolloverBackgroundRunner | None = start_rollover_in_background(state)

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        # With the console running, Ctrl+C stays a KeyboardInterrupt inside input().
        if not settings.console_enabled:
            signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError):
        # Not in the main thread, or the platform lacks SIGTERM.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running rollover only. Press Ctrl+C to stop.")
            stop_main.wait()

    finally:
        if rollover_runner is not None:
            rollover_runner.stop()
            rollover_runner.join(timeout=10.0)

        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
