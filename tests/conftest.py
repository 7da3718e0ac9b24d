# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from course_notes.cli.bootstrap import create_initial_state
from course_notes.core.state import AppState

from .fakes import RecordingListener


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="course-notes-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        notes_db_path=tmp_path / "notes.sqlite3",
        storage_key="course-notes",
        rollover_enabled=True,
        rollover_interval_seconds=30.0,
    )


@pytest.fixture()
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture()
def state(settings: SimpleNamespace, listener: RecordingListener) -> AppState:
    """
    AppState wired by the real bootstrap.

    NOTE: We keep the real SQLite NoteStore here because its (de)serialization is
    part of what we want to test.
    """
    return create_initial_state(settings=settings, listener=listener)
