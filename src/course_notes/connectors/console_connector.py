# src/course_notes/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..notes.note_models import Note, SectionKind, Session, Task
from ..recurrence.due_dates import format_due_label

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleRolloverListener:
    """Live presentation for the console: announces what the background sweep changed."""

    def task_rolled_over(self, note: Note, task: Task) -> None:
        label = format_due_label(task.day, task.month, year=task.year)
        _print_ts(f"[ROLLOVER] {note.course_name}: task '{task.text or task.id[:6]}' reset, {label}.")

    def session_reset(self, note: Note, section: SectionKind, session: Session) -> None:
        when = " ".join(p for p in (session.day, session.time) if p) or session.id[:6]
        _print_ts(f"[ROLLOVER] {note.course_name}: {section.title} {when} unchecked.")


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands, /notes to list cards, /exit to quit.\n")

    def emit(text: str) -> None:
        _print_ts(text)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            _print_ts("Commands start with '/'. Use /help to list them.")
            continue

        # Handlers take state.lock themselves; edits and rollover ticks never interleave.
        try:
            cmd_response = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is not None:
            print(f"[{_ts_local()}] {cmd_response}")

    logger.info("Console connector finished.")
