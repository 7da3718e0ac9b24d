# tests/test_logging_setup.py

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from course_notes.logging_setup import _ConsoleNoiseFilter, level_from_name, setup_logging


@pytest.fixture()
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_keeps_rollover_quiet() -> None:
    f = _ConsoleNoiseFilter()

    assert f.filter(_record("course_notes.notes.note_api", logging.DEBUG))
    assert not f.filter(_record("course_notes.recurrence.rollover", logging.INFO))
    assert f.filter(_record("course_notes.recurrence.rollover", logging.WARNING))
    assert not f.filter(_record("py.warnings", logging.WARNING))
    assert not f.filter(_record("asyncio", logging.WARNING))
    assert f.filter(_record("asyncio", logging.ERROR))


def test_level_from_name() -> None:
    assert level_from_name("debug") == logging.DEBUG
    assert level_from_name(" WARNING ") == logging.WARNING
    assert level_from_name("loud") == logging.INFO
    assert level_from_name(None, logging.ERROR) == logging.ERROR


@pytest.mark.usefixtures("restore_root_logging")
def test_setup_logging_writes_everything_to_file(tmp_path: Path) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs", console_level=logging.WARNING)

    logging.getLogger("course_notes.recurrence.rollover").debug("tick details")
    for h in logging.getLogger().handlers:
        h.flush()

    assert log_file == tmp_path / "logs" / "course_notes.log"
    assert "tick details" in log_file.read_text("utf-8")
