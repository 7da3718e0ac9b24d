# src/course_notes/notes/note_api.py

"""
User-initiated edits.

Every function is one synchronous read-modify-write of the whole collection under
state.lock: reload from the store, mutate, save. Nothing is cached between calls, so
an edit is never overwritten by a stale copy held elsewhere (e.g. by the rollover).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from ..recurrence.clock import now_local
from ..recurrence.due_dates import pin_task_year
from ..recurrence.session_reset import compute_next_session_reset_at
from .migration import new_id, parse_day_of_month, parse_month_index, parse_section, parse_time_of_day, parse_weekday
from .note_models import DEFAULT_SECTIONS, Note, NoteStatus, Repeat, SectionKind, Session, Task

if TYPE_CHECKING:
    from ..core.state import AppState

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class NoteNotFoundError(LookupError):
    """No note (or session/task inside it) matches the given id."""


# ---- validation ----


def _section(raw: SectionKind | str) -> SectionKind:
    kind = parse_section(raw)
    if kind is None:
        raise ValueError(f"Unknown section: {raw!r} (expected lectures, tutorials or seminars)")
    return kind


def _repeat(raw: Repeat | str) -> Repeat:
    try:
        return Repeat(str(raw).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown repeat: {raw!r}") from None


def _weekday(raw: str | None) -> str | None:
    if raw is None or raw == "":
        return None
    day = parse_weekday(raw)
    if day is None:
        raise ValueError(f"Invalid day of week: {raw!r}")
    return day


def _time(raw: str | None) -> str | None:
    if raw is None or raw == "":
        return None
    t = parse_time_of_day(raw)
    if t is None:
        raise ValueError(f"Invalid time (expected HH:MM): {raw!r}")
    return t


def _day_of_month(raw: int | str | None) -> int | None:
    if raw is None or raw == "":
        return None
    day = parse_day_of_month(raw)
    if day is None:
        raise ValueError(f"Invalid day of month (1-31): {raw!r}")
    return day


def _month_index(raw: int | str | None) -> int | None:
    if raw is None or raw == "":
        return None
    month = parse_month_index(raw)
    if month is None:
        raise ValueError(f"Invalid month index (0-11): {raw!r}")
    return month


# ---- lookup ----


def _find_note(notes: list[Note], note_id: str) -> Note:
    """Exact id, or a unique id prefix (handy for the console)."""
    for note in notes:
        if note.id == note_id:
            return note
    matches = [n for n in notes if note_id and n.id.startswith(note_id)]
    if len(matches) == 1:
        return matches[0]
    raise NoteNotFoundError(f"No note with id {note_id!r}")


def _find_session(note: Note, session_id: str) -> Session:
    session = note.find_session(session_id)
    if session is None:
        matches = [s for _, s in note.iter_sessions() if session_id and s.id.startswith(session_id)]
        if len(matches) != 1:
            raise NoteNotFoundError(f"No session {session_id!r} in note {note.id}")
        session = matches[0]
    return session


def _find_task(note: Note, task_id: str) -> Task:
    task = note.find_task(task_id)
    if task is None:
        matches = [t for t in note.tasks if task_id and t.id.startswith(task_id)]
        if len(matches) != 1:
            raise NoteNotFoundError(f"No task {task_id!r} in note {note.id}")
        task = matches[0]
    return task


def _repin_task(task: Task, now: datetime) -> None:
    # Repeating tasks start from the upcoming deadline; one-shot tasks stay unpinned.
    task.year = None
    pin_task_year(task, now)


def _reschedule_session(session: Session, now: datetime) -> None:
    session.next_reset_at = None
    session.next_reset_at = compute_next_session_reset_at(session, now)


# ---- queries ----


def list_notes(state: AppState, status: NoteStatus | None = NoteStatus.ACTIVE) -> list[Note]:
    with state.lock:
        notes = state.store.load()
    if status is None:
        return notes
    return [n for n in notes if n.status is status]


def get_note(state: AppState, note_id: str) -> Note:
    with state.lock:
        return _find_note(state.store.load(), note_id)


# ---- notes ----


def create_note(
    state: AppState,
    course_name: str,
    sections: Iterable[SectionKind | str] | None = None,
    schedule_by_section: Mapping[str, Mapping[str, str | None]] | None = None,
) -> Note:
    """
    Create an active card. Each section starts with one session seeded from
    schedule_by_section[section] = {"day": ..., "time": ...} when given.
    """
    name = (course_name or "").strip()
    if not name:
        raise ValueError("Please enter a course name.")

    kinds: list[SectionKind] = []
    for raw in DEFAULT_SECTIONS if sections is None else sections:
        kind = _section(raw)
        if kind not in kinds:
            kinds.append(kind)
    if not kinds:
        raise ValueError("Select at least one section.")

    schedule = schedule_by_section or {}
    session_times: dict[SectionKind, list[Session]] = {}
    for kind in kinds:
        sched = schedule.get(kind.value) or {}
        session_times[kind] = [
            Session(id=new_id(), day=_weekday(sched.get("day")), time=_time(sched.get("time")))
        ]

    note = Note(id=new_id(), course_name=name, sections=kinds, session_times=session_times)

    with state.lock:
        notes = state.store.load()
        notes.append(note)
        state.store.save(notes)

    logger.info("Note created id=%s course=%s sections=%s", note.id, name, [k.value for k in kinds])
    return note


def _set_status(state: AppState, note_id: str, status: NoteStatus) -> Note:
    with state.lock:
        notes = state.store.load()
        note = _find_note(notes, note_id)
        note.status = status
        state.store.save(notes)
    logger.info("Note %s -> %s", note.id, status.value)
    return note


def trash_note(state: AppState, note_id: str) -> Note:
    return _set_status(state, note_id, NoteStatus.TRASHED)


def restore_note(state: AppState, note_id: str) -> Note:
    return _set_status(state, note_id, NoteStatus.ACTIVE)


def archive_note(state: AppState, note_id: str) -> Note:
    return _set_status(state, note_id, NoteStatus.ARCHIVED)


def delete_note(state: AppState, note_id: str) -> bool:
    """
    Delete semantics of the board:
    - active/archived -> moved to trash (returns False)
    - already trashed -> removed from the store for good (returns True)
    """
    with state.lock:
        notes = state.store.load()
        note = _find_note(notes, note_id)
        if note.status is not NoteStatus.TRASHED:
            note.status = NoteStatus.TRASHED
            state.store.save(notes)
            logger.info("Note %s -> trashed", note.id)
            return False

        state.store.save([n for n in notes if n.id != note.id])
    logger.info("Note %s deleted permanently", note.id)
    return True


# ---- sessions ----


def add_session(
    state: AppState,
    note_id: str,
    section: SectionKind | str,
    *,
    day: str | None = None,
    time: str | None = None,
    repeat: Repeat | str = Repeat.NONE,
    text: str = "",
    now: datetime | None = None,
) -> Session:
    kind = _section(section)
    session = Session(id=new_id(), day=_weekday(day), time=_time(time), repeat=_repeat(repeat), text=text)
    _reschedule_session(session, now or now_local())

    with state.lock:
        notes = state.store.load()
        note = _find_note(notes, note_id)
        if kind not in note.sections:
            note.sections.append(kind)
        note.session_times.setdefault(kind, []).append(session)
        state.store.save(notes)

    logger.debug("Session added note=%s section=%s id=%s", note.id, kind.value, session.id)
    return session


def update_session(
    state: AppState,
    note_id: str,
    session_id: str,
    *,
    day: str | None = _UNSET,
    time: str | None = _UNSET,
    repeat: Repeat | str | None = None,
    text: str | None = None,
    now: datetime | None = None,
) -> Session:
    """Edit a session. Any schedule change (day/time/repeat) drops the old reset anchor."""
    new_day = _UNSET if day is _UNSET else _weekday(day)
    new_time = _UNSET if time is _UNSET else _time(time)
    new_repeat = None if repeat is None else _repeat(repeat)

    with state.lock:
        notes = state.store.load()
        note = _find_note(notes, note_id)
        session = _find_session(note, session_id)

        rescheduled = False
        if new_day is not _UNSET and new_day != session.day:
            session.day = new_day
            rescheduled = True
        if new_time is not _UNSET and new_time != session.time:
            session.time = new_time
            rescheduled = True
        if new_repeat is not None and new_repeat is not session.repeat:
            session.repeat = new_repeat
            rescheduled = True
        if text is not None:
            session.text = text

        if rescheduled:
            _reschedule_session(session, now or now_local())

        state.store.save(notes)
    return session


def set_session_completed(state: AppState, note_id: str, session_id: str, completed: bool = True) -> Session:
    with state.lock:
        notes = state.store.load()
        session = _find_session(_find_note(notes, note_id), session_id)
        session.completed = bool(completed)
        state.store.save(notes)
    return session


# ---- tasks ----


def add_task(
    state: AppState,
    note_id: str,
    text: str = "",
    *,
    day: int | str | None = None,
    month: int | str | None = None,
    repeat: Repeat | str = Repeat.NONE,
    now: datetime | None = None,
) -> Task:
    task = Task(id=new_id(), text=text, day=_day_of_month(day), month=_month_index(month), repeat=_repeat(repeat))
    _repin_task(task, now or now_local())

    with state.lock:
        notes = state.store.load()
        note = _find_note(notes, note_id)
        note.tasks.append(task)
        state.store.save(notes)

    logger.debug("Task added note=%s id=%s repeat=%s", note.id, task.id, task.repeat.value)
    return task


def update_task(
    state: AppState,
    note_id: str,
    task_id: str,
    *,
    text: str | None = None,
    day: int | str | None = _UNSET,
    month: int | str | None = _UNSET,
    repeat: Repeat | str | None = None,
    now: datetime | None = None,
) -> Task:
    """Edit a task. A changed date or repeat re-derives the cycle year from the upcoming deadline."""
    new_day = _UNSET if day is _UNSET else _day_of_month(day)
    new_month = _UNSET if month is _UNSET else _month_index(month)
    new_repeat = None if repeat is None else _repeat(repeat)

    with state.lock:
        notes = state.store.load()
        task = _find_task(_find_note(notes, note_id), task_id)

        rescheduled = False
        if new_day is not _UNSET and new_day != task.day:
            task.day = new_day
            rescheduled = True
        if new_month is not _UNSET and new_month != task.month:
            task.month = new_month
            rescheduled = True
        if new_repeat is not None and new_repeat is not task.repeat:
            task.repeat = new_repeat
            rescheduled = True
        if text is not None:
            task.text = text

        if rescheduled:
            _repin_task(task, now or now_local())

        state.store.save(notes)
    return task


def set_task_completed(state: AppState, note_id: str, task_id: str, completed: bool = True) -> Task:
    with state.lock:
        notes = state.store.load()
        task = _find_task(_find_note(notes, note_id), task_id)
        task.completed = bool(completed)
        state.store.save(notes)
    return task
