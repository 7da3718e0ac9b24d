# tests/test_due_dates.py

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from course_notes.notes.note_models import Repeat, Task
from course_notes.recurrence.clock import from_ms, to_ms
from course_notes.recurrence.due_dates import (
    DAY_MS,
    Urgency,
    advance_task_due_date,
    compute_due_timestamp,
    format_due_label,
    get_urgency_class,
    pin_task_year,
    rollover_repeating_task_if_due_passed,
)


def test_due_timestamp_rolls_to_next_year_once_passed() -> None:
    now = datetime(2024, 7, 1)
    assert compute_due_timestamp(15, 5, now) == to_ms(datetime(2025, 6, 15, 23, 59))


def test_due_timestamp_stays_this_year_until_2359() -> None:
    assert compute_due_timestamp(15, 5, datetime(2024, 6, 1)) == to_ms(datetime(2024, 6, 15, 23, 59))
    assert compute_due_timestamp(15, 5, datetime(2024, 6, 15, 23, 58)) == to_ms(datetime(2024, 6, 15, 23, 59))
    # exactly at the deadline counts as passed
    assert compute_due_timestamp(15, 5, datetime(2024, 6, 15, 23, 59)) == to_ms(datetime(2025, 6, 15, 23, 59))


def test_due_timestamp_with_explicit_year_never_rolls() -> None:
    now = datetime(2024, 7, 1)
    assert compute_due_timestamp(15, 5, now, year=2024) == to_ms(datetime(2024, 6, 15, 23, 59))


def test_due_timestamp_missing_or_invalid_fields() -> None:
    now = datetime(2024, 7, 1)
    assert compute_due_timestamp(None, 5, now) is None
    assert compute_due_timestamp(15, None, now) is None
    assert compute_due_timestamp(15, 12, now) is None
    assert compute_due_timestamp(0, 3, now) is None


def test_due_timestamp_clamps_day_past_month_end() -> None:
    assert compute_due_timestamp(31, 1, datetime(2023, 1, 1)) == to_ms(datetime(2023, 2, 28, 23, 59))


def test_urgency_thresholds() -> None:
    due = compute_due_timestamp(15, 5, year=2024)
    assert due is not None

    assert get_urgency_class(15, 5, from_ms(due - DAY_MS), year=2024) is Urgency.CRITICAL
    assert get_urgency_class(15, 5, from_ms(due - DAY_MS - 1), year=2024) is Urgency.WARNING
    assert get_urgency_class(15, 5, from_ms(due - 3 * DAY_MS), year=2024) is Urgency.WARNING
    assert get_urgency_class(15, 5, from_ms(due - 3 * DAY_MS - 1), year=2024) is Urgency.OK
    assert get_urgency_class(15, 5, from_ms(due), year=2024) is Urgency.OVERDUE
    assert get_urgency_class(None, 5, datetime(2024, 6, 1)) is Urgency.NONE


def test_unpinned_deadline_is_never_overdue() -> None:
    assert get_urgency_class(15, 5, datetime(2024, 7, 1)) is Urgency.OK


def test_format_due_label() -> None:
    due = from_ms(compute_due_timestamp(15, 5, year=2024) or 0)

    assert format_due_label(None, None, datetime(2024, 6, 1)) == "No deadline"
    assert format_due_label(15, 5, due - timedelta(days=2, hours=3, minutes=30), year=2024) == "Due in 2d3h"
    assert format_due_label(15, 5, due + timedelta(days=1, minutes=10), year=2024) == "Overdue by 1d0h"
    assert format_due_label(15, 5, due - timedelta(minutes=30), year=2024) == "<1h"
    assert format_due_label(15, 5, due + timedelta(minutes=30), year=2024) == "<1h"


def test_advance_one_cycle_per_repeat() -> None:
    daily = Task(id="d", day=31, month=11, year=2024, repeat=Repeat.DAILY)
    assert advance_task_due_date(daily)
    assert (daily.day, daily.month, daily.year) == (1, 0, 2025)

    weekly = Task(id="w", day=28, month=1, year=2024, repeat=Repeat.WEEKLY)
    assert advance_task_due_date(weekly)
    assert (weekly.day, weekly.month, weekly.year) == (6, 2, 2024)

    monthly = Task(id="m", day=31, month=0, year=2024, repeat=Repeat.MONTHLY)
    assert advance_task_due_date(monthly)
    assert (monthly.day, monthly.month, monthly.year) == (29, 1, 2024)

    yearly = Task(id="y", day=29, month=1, year=2024, repeat=Repeat.YEARLY)
    assert advance_task_due_date(yearly)
    assert (yearly.day, yearly.month, yearly.year) == (28, 1, 2025)


def test_advance_is_noop_without_repeat_or_date() -> None:
    once = Task(id="o", day=15, month=5, year=2024)
    assert not advance_task_due_date(once)
    assert (once.day, once.month) == (15, 5)

    undated = Task(id="u", repeat=Repeat.WEEKLY)
    assert not advance_task_due_date(undated)


def test_rollover_catches_up_missed_weeks_and_clears_completed() -> None:
    task = Task(id="t", day=1, month=0, year=2024, repeat=Repeat.WEEKLY, completed=True)
    now = datetime(2024, 1, 20, 12, 0)

    assert rollover_repeating_task_if_due_passed(task, now)
    assert (task.day, task.month, task.year) == (22, 0, 2024)
    assert task.completed is False


def test_rollover_is_idempotent() -> None:
    task = Task(id="t", day=15, month=5, year=2024, repeat=Repeat.YEARLY, completed=True)
    now = datetime(2024, 7, 1)

    assert rollover_repeating_task_if_due_passed(task, now)
    assert (task.day, task.month, task.year) == (15, 5, 2025)

    task.completed = True
    assert not rollover_repeating_task_if_due_passed(task, now)
    assert (task.day, task.month, task.year) == (15, 5, 2025)
    assert task.completed is True


@pytest.mark.parametrize("repeat", [Repeat.DAILY, Repeat.WEEKLY, Repeat.MONTHLY, Repeat.YEARLY])
def test_rollover_leaves_due_strictly_in_future(repeat: Repeat) -> None:
    now = datetime(2024, 3, 10, 8, 0)
    task = Task(id="t", day=31, month=0, year=2023, repeat=repeat, completed=True)

    assert rollover_repeating_task_if_due_passed(task, now)
    due = compute_due_timestamp(task.day, task.month, now, year=task.year)
    assert due is not None and due > to_ms(now)
    assert task.completed is False


def test_daily_rollover_lands_on_today() -> None:
    task = Task(id="t", day=1, month=2, year=2024, repeat=Repeat.DAILY)
    assert rollover_repeating_task_if_due_passed(task, datetime(2024, 3, 10, 8, 0))
    assert (task.day, task.month) == (10, 2)


def test_rollover_ignores_one_shot_and_unpinned_tasks() -> None:
    now = datetime(2024, 7, 1)
    once = Task(id="o", day=15, month=5, year=2024, completed=True)
    assert not rollover_repeating_task_if_due_passed(once, now)
    assert once.completed is True

    unpinned = Task(id="u", day=15, month=5, repeat=Repeat.WEEKLY)
    assert not rollover_repeating_task_if_due_passed(unpinned, now)


def test_pin_task_year_uses_upcoming_deadline() -> None:
    now = datetime(2024, 7, 1)
    task = Task(id="t", day=15, month=5, repeat=Repeat.WEEKLY)
    assert pin_task_year(task, now)
    assert task.year == 2025
    assert not pin_task_year(task, now)

    later = Task(id="l", day=20, month=7, repeat=Repeat.MONTHLY)
    assert pin_task_year(later, now)
    assert later.year == 2024

    assert not pin_task_year(Task(id="o", day=15, month=5), now)
    assert not pin_task_year(Task(id="n", repeat=Repeat.DAILY), now)
