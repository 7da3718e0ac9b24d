# notes/note_models.py

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

WEEKDAYS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class Repeat(StrEnum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def from_raw(cls, raw: Any) -> Repeat:
        if not raw:
            return cls.NONE
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.NONE


class NoteStatus(StrEnum):
    """
    Card lifecycle status.

    Notes:
    - "trashed" is a soft delete; a second delete removes the card from the store.
    """

    ACTIVE = "active"
    ARCHIVED = "archived"
    TRASHED = "trashed"

    @classmethod
    def from_raw(cls, raw: Any) -> NoteStatus:
        if not raw:
            return cls.ACTIVE
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.ACTIVE


class SectionKind(StrEnum):
    LECTURES = "lectures"
    TUTORIALS = "tutorials"
    SEMINARS = "seminars"

    @property
    def title(self) -> str:
        return self.value.capitalize()


# New cards include lectures and tutorials unless told otherwise.
DEFAULT_SECTIONS: tuple[SectionKind, ...] = (SectionKind.LECTURES, SectionKind.TUTORIALS)


@dataclass(slots=True)
class Session:
    id: str
    day: str | None = None  # "Mon".."Sun"
    time: str | None = None  # "HH:MM"
    repeat: Repeat = Repeat.NONE
    completed: bool = False
    text: str = ""
    next_reset_at: int | None = None  # ms since epoch

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "day": self.day,
            "time": self.time,
            "repeat": self.repeat.value,
            "completed": self.completed,
            "nextResetAt": self.next_reset_at,
            "text": self.text,
        }


@dataclass(slots=True)
class Task:
    id: str
    text: str = ""
    day: int | None = None  # 1..31
    month: int | None = None  # 0..11
    repeat: Repeat = Repeat.NONE
    completed: bool = False
    # Year of the current cycle. Pinned for repeating tasks only.
    year: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "day": self.day,
            "month": self.month,
            "repeat": self.repeat.value,
            "completed": self.completed,
            "year": self.year,
        }


@dataclass(slots=True)
class Note:
    id: str
    course_name: str
    sections: list[SectionKind] = field(default_factory=list)
    session_times: dict[SectionKind, list[Session]] = field(default_factory=dict)
    tasks: list[Task] = field(default_factory=list)
    status: NoteStatus = NoteStatus.ACTIVE

    def iter_sessions(self) -> Iterator[tuple[SectionKind, Session]]:
        for kind, sessions in self.session_times.items():
            for session in sessions:
                yield kind, session

    def find_session(self, session_id: str) -> Session | None:
        for _, session in self.iter_sessions():
            if session.id == session_id:
                return session
        return None

    def find_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "courseName": self.course_name,
            "sections": [kind.value for kind in self.sections],
            "sessionTimes": {
                kind.value: [s.to_dict() for s in sessions]
                for kind, sessions in self.session_times.items()
            },
            "tasks": [t.to_dict() for t in self.tasks],
            "status": self.status.value,
        }
