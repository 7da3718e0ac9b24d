# src/course_notes/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The rollover engine and the note API depend on Protocols instead of concrete
implementations. This keeps storage/presentation swappable and makes testing easier.
"""

from collections.abc import Iterable
from typing import Protocol

from ..notes.note_models import Note, SectionKind, Session, Task


class NoteRepo(Protocol):
    """
    Whole-collection store.

    - load() never raises on bad content: missing/unparsable/non-list data is [].
    - save() replaces everything and raises on failure.
    """

    def load(self) -> list[Note]: ...
    def save(self, notes: Iterable[Note]) -> None: ...


class RolloverListener(Protocol):
    """
    Presentation-side port: told about items the sweep changed, so a live view
    can refresh them. Called before the batch is persisted.
    """

    def task_rolled_over(self, note: Note, task: Task) -> None: ...
    def session_reset(self, note: Note, section: SectionKind, session: Session) -> None: ...
