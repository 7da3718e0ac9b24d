# tests/test_note_store.py

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import pytest

from course_notes.notes.note_models import Note, NoteStatus, Repeat, SectionKind, Session, Task
from course_notes.notes.note_store import NoteStore, StoreWriteError

from .fakes import write_raw_notes


def test_empty_store_loads_nothing(tmp_path: Path) -> None:
    assert NoteStore(tmp_path / "notes.sqlite3").load() == []


def test_save_replaces_whole_collection(tmp_path: Path) -> None:
    store = NoteStore(tmp_path / "notes.sqlite3")
    session = Session(id="s1", day="Tue", time="10:00", repeat=Repeat.WEEKLY, next_reset_at=1718100000000, text="room 4")
    note = Note(
        id="n1",
        course_name="Compilers",
        sections=[SectionKind.LECTURES],
        session_times={SectionKind.LECTURES: [session]},
        tasks=[Task(id="t1", text="PS1", day=15, month=5, repeat=Repeat.MONTHLY, year=2024)],
        status=NoteStatus.ARCHIVED,
    )

    store.save([note, Note(id="n2", course_name="Other")])
    store.save([note])

    loaded = store.load()
    assert loaded == [note]


def test_malformed_content_is_an_empty_collection(tmp_path: Path) -> None:
    db = tmp_path / "notes.sqlite3"
    store = NoteStore(db)

    write_raw_notes(db, "{not json")
    assert store.load() == []

    write_raw_notes(db, json.dumps({"id": "n1"}))
    assert store.load() == []

    write_raw_notes(db, json.dumps([42, "x", {"id": "n1", "courseName": "Algo"}]))
    loaded = store.load()
    assert [n.id for n in loaded] == ["n1"]


def test_storage_keys_are_isolated(tmp_path: Path) -> None:
    db = tmp_path / "notes.sqlite3"
    NoteStore(db, storage_key="a").save([Note(id="n1", course_name="A")])
    assert NoteStore(db, storage_key="b").load() == []


def test_legacy_records_are_normalized_on_load(tmp_path: Path) -> None:
    db = tmp_path / "notes.sqlite3"
    store = NoteStore(db)
    legacy = {
        "id": "n1",
        "courseName": "Algorithms",
        "sections": ["lectures", "tutorials"],
        "schedule": {"lectures": {"day": "Mon", "time": "09:00"}},
        "tasks": [{"id": "t1", "text": "read ch.1", "day": "15", "month": ""}],
    }
    write_raw_notes(db, json.dumps([legacy]))

    (note,) = store.load()

    assert note.status is NoteStatus.ACTIVE
    (lecture,) = note.session_times[SectionKind.LECTURES]
    assert (lecture.day, lecture.time, lecture.repeat) == ("Mon", "09:00", Repeat.NONE)
    (tutorial,) = note.session_times[SectionKind.TUTORIALS]
    assert (tutorial.day, tutorial.time) == (None, None)

    (task,) = note.tasks
    assert (task.day, task.month, task.repeat, task.completed) == (15, None, Repeat.NONE, False)


def test_flat_legacy_schedule_applies_to_every_section(tmp_path: Path) -> None:
    db = tmp_path / "notes.sqlite3"
    store = NoteStore(db)
    write_raw_notes(db, json.dumps([{"id": "n1", "courseName": "X", "sections": ["seminars"], "schedule": {"day": "Fri", "time": "9:05"}}]))

    (note,) = store.load()
    (seminar,) = note.session_times[SectionKind.SEMINARS]
    assert (seminar.day, seminar.time) == ("Fri", "09:05")


def test_write_failure_raises_store_write_error(tmp_path: Path) -> None:
    db = tmp_path / "notes.sqlite3"
    store = NoteStore(db)
    conn = sqlite3.connect(str(db))
    conn.execute("DROP TABLE kv")
    conn.commit()
    conn.close()

    with pytest.raises(StoreWriteError):
        store.save([Note(id="n1", course_name="A")])


def _raw_value(db: Path, key: str = "course-notes") -> str:
    conn = sqlite3.connect(str(db))
    try:
        return conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()[0]
    finally:
        conn.close()


def test_migrated_records_keep_their_ids_across_loads(tmp_path: Path) -> None:
    db = tmp_path / "notes.sqlite3"
    store = NoteStore(db)
    write_raw_notes(db, json.dumps([{"courseName": "Algorithms", "sections": ["lectures"], "schedule": {"day": "Mon"}}]))

    (first,) = store.load()
    (second,) = store.load()

    assert second.id == first.id
    assert second.session_times == first.session_times
    assert json.loads(_raw_value(db)) == [first.to_dict()]


def test_legacy_session_id_is_derived_from_the_note(tmp_path: Path) -> None:
    db = tmp_path / "notes.sqlite3"
    store = NoteStore(db)
    write_raw_notes(db, json.dumps([{"id": "n1", "courseName": "X", "sections": ["lectures"]}]))

    (note,) = store.load()
    (lecture,) = note.session_times[SectionKind.LECTURES]
    assert lecture.id == "n1-lectures-0"


def test_non_list_content_is_not_overwritten_on_load(tmp_path: Path) -> None:
    db = tmp_path / "notes.sqlite3"
    store = NoteStore(db)
    write_raw_notes(db, json.dumps({"id": "n1"}))

    assert store.load() == []
    assert json.loads(_raw_value(db)) == {"id": "n1"}
