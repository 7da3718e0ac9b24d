# src/course_notes/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..notes import note_api
from ..notes.note_models import Note, NoteStatus, Repeat, Session, Task
from ..notes.note_store import StoreWriteError
from ..recurrence.clock import from_ms, now_local
from ..recurrence.due_dates import format_due_label, get_urgency_class
from .bootstrap import export_notes, import_notes

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /notes, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Input errors (bad date, unknown id) and failed saves become replies; anything
        else propagates to the connector.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except (ValueError, LookupError) as e:
            return f"Error: {e}"
        except StoreWriteError as e:
            logger.error("Save failed during /%s: %s", name, e)
            return f"Could not save: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def _short(item_id: str) -> str:
    return item_id[:6]


def _session_line(session: Session) -> str:
    mark = "x" if session.completed else " "
    parts = [p for p in (session.day, session.time) if p]
    when = " · ".join(parts) if parts else "Set day / time"
    line = f"    [{mark}] {_short(session.id)} {when}"
    if session.repeat is not Repeat.NONE:
        line += f" ({session.repeat.value}"
        if session.next_reset_at is not None:
            line += f", resets {from_ms(session.next_reset_at):%Y-%m-%d %H:%M}"
        line += ")"
    if session.text:
        line += f"  {session.text}"
    return line


def _task_line(task: Task, now: datetime) -> str:
    mark = "x" if task.completed else " "
    label = format_due_label(task.day, task.month, now, task.year)
    urgency = get_urgency_class(task.day, task.month, now, task.year)
    line = f"    [{mark}] {_short(task.id)} {label} [{urgency.value}]"
    if task.day is not None and task.month is not None:
        line += f" {task.day:02d}/{task.month + 1:02d}"
    if task.repeat is not Repeat.NONE:
        line += f" ({task.repeat.value})"
    if task.text:
        line += f"  {task.text}"
    return line


def render_note(note: Note, now: datetime | None = None) -> str:
    if now is None:
        now = now_local()
    header = f"{_short(note.id)} {note.course_name}"
    if note.status is not NoteStatus.ACTIVE:
        header += f" [{note.status.value}]"
    lines = [header]
    for kind in note.sections:
        lines.append(f"  {kind.title}:")
        for session in note.session_times.get(kind, []):
            lines.append(_session_line(session))
    if note.tasks:
        lines.append("  Tasks:")
        for task in note.tasks:
            lines.append(_task_line(task, now))
    return "\n".join(lines)


# ---- argument helpers ----


def _parse_day_month(raw: str) -> tuple[int | None, int | None]:
    """'15/06' -> (15, 5); '-' -> no deadline."""
    if raw in ("-", "none"):
        return None, None
    day, sep, month = raw.partition("/")
    if not sep:
        raise ValueError(f"Expected DD/MM, got {raw!r}")
    try:
        return int(day), int(month) - 1
    except ValueError:
        raise ValueError(f"Expected DD/MM, got {raw!r}") from None


def _is_repeat(raw: str) -> bool:
    return raw.lower() in {r.value for r in Repeat}


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_notes(state: AppState, args: list[str]) -> str:
    """
    /notes           -> active cards
    /notes archived  -> archived cards (also: trashed, all)
    """
    which = args[0].lower() if args else "active"
    if which == "all":
        notes = note_api.list_notes(state, status=None)
    else:
        notes = note_api.list_notes(state, status=NoteStatus(which))
    if not notes:
        return f"No {which} notes."
    now = now_local()
    return "\n\n".join(render_note(n, now) for n in notes)


def cmd_new(state: AppState, args: list[str]) -> str:
    """
    /new Algorithms                      -> lectures + tutorials
    /new Algorithms | lectures seminars  -> explicit sections
    """
    raw = " ".join(args)
    name, sep, sections = raw.partition("|")
    kinds = sections.split() if sep else None
    note = note_api.create_note(state, name, kinds)
    return f"Created {_short(note.id)} {note.course_name}."


def cmd_session(state: AppState, args: list[str]) -> str:
    """/session <note> <section> [Mon] [14:00] [weekly]"""
    if len(args) < 2:
        return "Usage: /session <note> <section> [day] [HH:MM] [repeat]"
    note_id, section, rest = args[0], args[1], args[2:]

    day = time = None
    repeat = Repeat.NONE.value
    for token in rest:
        if ":" in token:
            time = token
        elif _is_repeat(token):
            repeat = token
        else:
            day = token

    session = note_api.add_session(state, note_id, section, day=day, time=time, repeat=repeat)
    return f"Added session {_short(session.id)}."


def cmd_task(state: AppState, args: list[str]) -> str:
    """/task <note> <DD/MM|-> [repeat] <text...>"""
    if len(args) < 2:
        return "Usage: /task <note> <DD/MM|-> [repeat] <text>"
    note_id, when, rest = args[0], args[1], args[2:]
    day, month = _parse_day_month(when)

    repeat = Repeat.NONE.value
    if rest and _is_repeat(rest[0]):
        repeat, rest = rest[0], rest[1:]

    task = note_api.add_task(state, note_id, " ".join(rest), day=day, month=month, repeat=repeat)
    return f"Added task {_short(task.id)} ({format_due_label(task.day, task.month, year=task.year)})."


def _set_completed(state: AppState, args: list[str], completed: bool) -> str:
    if len(args) != 2:
        return "Usage: /done <note> <item>  (item = session or task id)"
    note_id, item_id = args
    try:
        note_api.set_session_completed(state, note_id, item_id, completed)
    except note_api.NoteNotFoundError:
        note_api.set_task_completed(state, note_id, item_id, completed)
    return "Checked." if completed else "Unchecked."


def cmd_done(state: AppState, args: list[str]) -> str:
    return _set_completed(state, args, True)


def cmd_undone(state: AppState, args: list[str]) -> str:
    return _set_completed(state, args, False)


def cmd_repeat(state: AppState, args: list[str]) -> str:
    """/repeat <note> <item> <none|daily|weekly|monthly|yearly>"""
    if len(args) != 3:
        return "Usage: /repeat <note> <item> <none|daily|weekly|monthly|yearly>"
    note_id, item_id, repeat = args
    try:
        note_api.update_session(state, note_id, item_id, repeat=repeat)
    except note_api.NoteNotFoundError:
        note_api.update_task(state, note_id, item_id, repeat=repeat)
    return f"Repeat set to {repeat.lower()}."


def cmd_trash(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /trash <note>"
    note = note_api.trash_note(state, args[0])
    return f"Moved {note.course_name} to trash."


def cmd_restore(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /restore <note>"
    note = note_api.restore_note(state, args[0])
    return f"Restored {note.course_name}."


def cmd_archive(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /archive <note>"
    note = note_api.archive_note(state, args[0])
    return f"Archived {note.course_name}."


def cmd_delete(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /delete <note>"
    removed = note_api.delete_note(state, args[0])
    return "Deleted permanently." if removed else "Moved to trash (delete again to remove for good)."


def cmd_sweep(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if state.ticker is None:
        return "Rollover is not configured."
    if emit:
        emit("[ROLLOVER] Sweeping...")
    result = state.ticker.tick()
    if result is None:
        return "A sweep is already running."
    if not result.changed:
        return "Nothing to roll over."
    return (
        f"Rolled over {result.tasks_rolled} task(s), reset {result.sessions_reset} session(s), "
        f"scheduled {result.sessions_scheduled} reset(s)."
    )


def cmd_export(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /export <path.json>"
    try:
        n = export_notes(state, args[0])
    except OSError as e:
        return f"Export failed: {e}"
    return f"Exported {n} note(s)."


def cmd_import(state: AppState, args: list[str]) -> str:
    """
    /import backup.json          -> add notes with unknown ids
    /import backup.json replace  -> replace the whole collection
    """
    if not args:
        return "Usage: /import <path.json> [replace]"
    replace = len(args) > 1 and args[1].lower() == "replace"
    try:
        n = import_notes(state, args[0], replace=replace)
    except OSError as e:
        return f"Import failed: {e}"
    return f"Imported {n} note(s)."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("notes", cmd_notes, help_text="List cards: /notes [active|archived|trashed|all].", aliases=["ls"])
registry.register("new", cmd_new, help_text="Create a card: /new <course> [| lectures tutorials seminars].")
registry.register("session", cmd_session, help_text="Add a session: /session <note> <section> [day] [HH:MM] [repeat].")
registry.register("task", cmd_task, help_text="Add a task: /task <note> <DD/MM|-> [repeat] <text>.")
registry.register("done", cmd_done, help_text="Check a session or task: /done <note> <item>.")
registry.register("undone", cmd_undone, help_text="Uncheck a session or task: /undone <note> <item>.")
registry.register("repeat", cmd_repeat, help_text="Change repeat: /repeat <note> <item> <none|daily|...>.")
registry.register("trash", cmd_trash, help_text="Move a card to trash: /trash <note>.")
registry.register("restore", cmd_restore, help_text="Restore a card from trash/archive: /restore <note>.")
registry.register("archive", cmd_archive, help_text="Archive a card: /archive <note>.")
registry.register("delete", cmd_delete, help_text="Trash a card, or remove a trashed one: /delete <note>.")
registry.register("sweep", cmd_sweep, help_text="Run a rollover sweep now.")
registry.register("export", cmd_export, help_text="Export all cards to JSON: /export <path>.")
registry.register("import", cmd_import, help_text="Import cards from JSON: /import <path> [replace].")
