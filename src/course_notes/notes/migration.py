# notes/migration.py

"""
One-shot normalization of persisted note records.

Everything that tolerates older or hand-edited data lives here, so the
recurrence engines can rely on fully populated dataclasses:
- missing repeat -> none, missing completed -> false, missing status -> active,
- "" for day/time/month -> None,
- sessionTimes synthesized from the legacy single `schedule` field,
- missing ids generated.
"""

from __future__ import annotations

import logging
import re
import uuid
from typing import Any

from .note_models import WEEKDAYS, Note, NoteStatus, Repeat, SectionKind, Session, Task

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def new_id() -> str:
    return uuid.uuid4().hex


def parse_weekday(raw: Any) -> str | None:
    if not isinstance(raw, str):
        return None
    s = raw.strip()[:3].capitalize()
    return s if s in WEEKDAYS else None


def parse_time_of_day(raw: Any) -> str | None:
    """Return canonical "HH:MM" or None."""
    if not isinstance(raw, str):
        return None
    m = _TIME_RE.match(raw.strip())
    if not m:
        return None
    hh, mm = int(m.group(1)), int(m.group(2))
    if hh > 23 or mm > 59:
        return None
    return f"{hh:02d}:{mm:02d}"


def _parse_int(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str) and raw.strip():
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


def parse_day_of_month(raw: Any) -> int | None:
    n = _parse_int(raw)
    return n if n is not None and 1 <= n <= 31 else None


def parse_month_index(raw: Any) -> int | None:
    n = _parse_int(raw)
    return n if n is not None and 0 <= n <= 11 else None


def parse_section(raw: Any) -> SectionKind | None:
    if not isinstance(raw, str):
        return None
    try:
        return SectionKind(raw.strip().lower())
    except ValueError:
        return None


def session_from_dict(raw: dict[str, Any]) -> Session:
    return Session(
        id=str(raw.get("id") or new_id()),
        day=parse_weekday(raw.get("day")),
        time=parse_time_of_day(raw.get("time")),
        repeat=Repeat.from_raw(raw.get("repeat")),
        completed=bool(raw.get("completed", False)),
        text=str(raw.get("text") or ""),
        next_reset_at=_parse_int(raw.get("nextResetAt")),
    )


def task_from_dict(raw: dict[str, Any]) -> Task:
    return Task(
        id=str(raw.get("id") or new_id()),
        text=str(raw.get("text") or ""),
        day=parse_day_of_month(raw.get("day")),
        month=parse_month_index(raw.get("month")),
        repeat=Repeat.from_raw(raw.get("repeat")),
        completed=bool(raw.get("completed", False)),
        year=_parse_int(raw.get("year")),
    )


def _legacy_schedule_for(raw_schedule: Any, kind: SectionKind) -> dict[str, Any]:
    # Old cards stored {section: {day, time}}; the oldest stored a flat {day, time}.
    if not isinstance(raw_schedule, dict):
        return {}
    per_section = raw_schedule.get(kind.value)
    if isinstance(per_section, dict):
        return per_section
    if "day" in raw_schedule or "time" in raw_schedule:
        return raw_schedule
    return {}


def note_from_dict(raw: dict[str, Any]) -> Note:
    note_id = str(raw.get("id") or new_id())

    sections: list[SectionKind] = []
    for item in raw.get("sections") or []:
        kind = parse_section(item)
        if kind is not None and kind not in sections:
            sections.append(kind)

    raw_times = raw.get("sessionTimes")
    if not isinstance(raw_times, dict):
        raw_times = {}

    session_times: dict[SectionKind, list[Session]] = {}
    for key, items in raw_times.items():
        kind = parse_section(key)
        if kind is None or not isinstance(items, list):
            continue
        session_times[kind] = [session_from_dict(s) for s in items if isinstance(s, dict)]

    for kind in sections:
        if kind in session_times:
            continue
        legacy = _legacy_schedule_for(raw.get("schedule"), kind)
        session_times[kind] = [
            Session(
                # Derived from the note id so every load of the same record agrees.
                id=f"{note_id}-{kind.value}-0",
                day=parse_weekday(legacy.get("day")),
                time=parse_time_of_day(legacy.get("time")),
                repeat=Repeat.NONE,
            )
        ]
        logger.debug("Synthesized %s session from legacy schedule note=%s", kind.value, note_id)

    raw_tasks = raw.get("tasks")
    tasks = [task_from_dict(t) for t in raw_tasks if isinstance(t, dict)] if isinstance(raw_tasks, list) else []

    return Note(
        id=note_id,
        course_name=str(raw.get("courseName") or "").strip(),
        sections=sections,
        session_times=session_times,
        tasks=tasks,
        status=NoteStatus.from_raw(raw.get("status")),
    )


def normalize_notes(data: Any) -> list[Note]:
    """Turn decoded store content into notes; anything that is not a list is an empty collection."""
    if not isinstance(data, list):
        if data is not None:
            logger.warning("Stored notes are not a list (got %s); treating as empty.", type(data).__name__)
        return []

    out: list[Note] = []
    for item in data:
        if not isinstance(item, dict):
            logger.warning("Skipping malformed note record: %r", item)
            continue
        out.append(note_from_dict(item))
    return out
