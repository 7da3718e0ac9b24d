# src/course_notes/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the note store, the shared lock and the rollover ticker into AppState,
- exports/imports the whole collection as JSON (backups, moving machines).
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

from ..config import get_settings
from ..core.ports import RolloverListener
from ..core.state import AppState
from ..notes.migration import normalize_notes
from ..notes.note_store import NoteStore
from ..recurrence.rollover import RolloverTicker

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.notes_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, listener: RolloverListener | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    state = AppState(
        settings=settings,
        store=NoteStore(settings.notes_db_path, storage_key=settings.storage_key),
    )
    state.ticker = RolloverTicker(state.store, lock=state.lock, listener=listener)
    return state


def export_notes(state: AppState, path: str | Path) -> int:
    """Write every note (any status) to a JSON file. Returns the number of notes written."""
    path = Path(path).expanduser()
    with state.lock:
        notes = state.store.load()

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps([n.to_dict() for n in notes], ensure_ascii=False, indent=2), "utf-8")
    os.replace(tmp, path)
    with contextlib.suppress(OSError):
        os.chmod(path, 0o600)
    logger.info("Exported %d notes to %s", len(notes), path)
    return len(notes)


def import_notes(state: AppState, path: str | Path, *, replace: bool = False) -> int:
    """
    Read notes from a JSON file and add them to the store.

    Notes whose id already exists are skipped unless replace=True, in which case the
    whole collection is replaced by the file content.
    """
    path = Path(path).expanduser()
    data = json.loads(path.read_text("utf-8"))
    incoming = normalize_notes(data)

    with state.lock:
        if replace:
            state.store.save(incoming)
            added = len(incoming)
        else:
            notes = state.store.load()
            known = {n.id for n in notes}
            fresh = [n for n in incoming if n.id not in known]
            notes.extend(fresh)
            state.store.save(notes)
            added = len(fresh)

    logger.info("Imported %d notes from %s (replace=%s)", added, path, replace)
    return added
