# src/course_notes/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .ports import NoteRepo

if TYPE_CHECKING:
    from ..recurrence.rollover import RolloverTicker


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    store: NoteRepo

    # Serializes every read-modify-write of the collection (edits and rollover ticks).
    lock: threading.RLock = field(default_factory=threading.RLock)

    # Set by bootstrap once the presentation listener exists.
    ticker: RolloverTicker | None = None
