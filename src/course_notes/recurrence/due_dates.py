# recurrence/due_dates.py

"""
Due-date engine for course tasks.

A task has a day-of-month and a zero-based month index. Its deadline is 23:59 local
time on that day. Without a pinned year the deadline is always the upcoming one
(this year, or next year once this year's moment has passed). Repeating tasks carry
the year of their current cycle so that a passed deadline can be detected and
advanced by the rollover.
"""

from __future__ import annotations

import logging
from calendar import monthrange
from datetime import datetime
from enum import StrEnum

from ..notes.note_models import Repeat, Task
from .calendar_math import add_days, add_months, add_years
from .clock import now_local, to_ms

logger = logging.getLogger(__name__)

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS

CRITICAL_WITHIN_MS = DAY_MS
WARNING_WITHIN_MS = 3 * DAY_MS

DUE_HOUR = 23
DUE_MINUTE = 59


class Urgency(StrEnum):
    NONE = "none"
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"
    OVERDUE = "overdue"


def _valid(day: int | None, month_index: int | None) -> bool:
    return day is not None and month_index is not None and 1 <= day <= 31 and 0 <= month_index <= 11


def _due_at(year: int, month_index: int, day: int) -> datetime:
    # Days past the end of the month (e.g. Feb 30) clamp to the last day.
    last = monthrange(year, month_index + 1)[1]
    return datetime(year, month_index + 1, min(day, last), DUE_HOUR, DUE_MINUTE)


def due_datetime(
    day: int | None,
    month_index: int | None,
    now: datetime | None = None,
    year: int | None = None,
) -> datetime | None:
    if day is None or month_index is None or not _valid(day, month_index):
        return None

    if year is not None:
        return _due_at(year, month_index, day)

    if now is None:
        now = now_local()
    due = _due_at(now.year, month_index, day)
    if to_ms(due) <= to_ms(now):
        due = _due_at(now.year + 1, month_index, day)
    return due


def compute_due_timestamp(
    day: int | None,
    month_index: int | None,
    now: datetime | None = None,
    year: int | None = None,
) -> int | None:
    """
    Deadline of a task as ms since epoch, or None when the task has no deadline.

    `year=None` means "the upcoming occurrence"; an explicit year is used as-is.
    """
    due = due_datetime(day, month_index, now, year)
    return None if due is None else to_ms(due)


def get_urgency_class(
    day: int | None,
    month_index: int | None,
    now: datetime | None = None,
    year: int | None = None,
) -> Urgency:
    if now is None:
        now = now_local()
    due = compute_due_timestamp(day, month_index, now, year)
    if due is None:
        return Urgency.NONE

    gap = due - to_ms(now)
    if gap <= 0:
        return Urgency.OVERDUE
    if gap <= CRITICAL_WITHIN_MS:
        return Urgency.CRITICAL
    if gap <= WARNING_WITHIN_MS:
        return Urgency.WARNING
    return Urgency.OK


def format_due_label(
    day: int | None,
    month_index: int | None,
    now: datetime | None = None,
    year: int | None = None,
) -> str:
    if now is None:
        now = now_local()
    due = compute_due_timestamp(day, month_index, now, year)
    if due is None:
        return "No deadline"

    gap = due - to_ms(now)
    span = abs(gap)
    if span < HOUR_MS:
        return "<1h"

    days, rest = divmod(span, DAY_MS)
    hours = rest // HOUR_MS
    if gap > 0:
        return f"Due in {days}d{hours}h"
    return f"Overdue by {days}d{hours}h"


def task_due_datetime(task: Task, now: datetime | None = None) -> datetime | None:
    return due_datetime(task.day, task.month, now, task.year)


def pin_task_year(task: Task, now: datetime | None = None) -> bool:
    """
    Give a repeating task the year of its upcoming deadline as its cycle year.

    Used for records stored without a cycle year. Their deadline reads as the upcoming
    one, so pinning keeps both the shown due date and `completed` unchanged.
    """
    if task.repeat is Repeat.NONE or task.year is not None:
        return False
    due = due_datetime(task.day, task.month, now)
    if due is None:
        return False
    task.year = due.year
    return True


def advance_task_due_date(task: Task, now: datetime | None = None) -> bool:
    """Move the deadline forward by exactly one repeat cycle. False when there is nothing to advance."""
    if task.repeat is Repeat.NONE:
        return False

    current = task_due_datetime(task, now)
    if current is None:
        return False

    if task.repeat is Repeat.DAILY:
        nxt = add_days(current, 1)
    elif task.repeat is Repeat.WEEKLY:
        nxt = add_days(current, 7)
    elif task.repeat is Repeat.MONTHLY:
        nxt = add_months(current, 1)
    elif task.repeat is Repeat.YEARLY:
        nxt = add_years(current, 1)
    else:
        logger.warning("Unknown repeat=%s task=%s", task.repeat, task.id)
        return False

    task.day = nxt.day
    task.month = nxt.month - 1
    task.year = nxt.year
    return True


def rollover_repeating_task_if_due_passed(task: Task, now: datetime | None = None) -> bool:
    """
    Advance a repeating task past `now`, clearing `completed` on every cycle crossed.

    Catches up any number of missed cycles in one call; a second call with the same
    `now` is a no-op. Returns True if the due date moved.
    """
    if task.repeat is Repeat.NONE:
        return False
    if now is None:
        now = now_local()
    now_ms = to_ms(now)

    changed = False
    while True:
        due = compute_due_timestamp(task.day, task.month, now, task.year)
        if due is None or due > now_ms:
            break
        if not advance_task_due_date(task, now):
            break
        task.completed = False
        changed = True

    if changed:
        logger.debug(
            "Task rolled over id=%s repeat=%s next=%s-%02d-%02d",
            task.id,
            task.repeat.value,
            task.year,
            (task.month or 0) + 1,
            task.day or 0,
        )
    return changed
