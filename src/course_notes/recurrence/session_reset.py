# recurrence/session_reset.py

"""
Session reset engine.

A completed repeating session is un-checked automatically at its `next_reset_at`.

- daily:   next occurrence of the session time (needs time)
- weekly:  next occurrence of day + time (needs both)
- monthly/yearly: stepped in whole months/years from an anchor. The anchor is the
  previously scheduled reset; without one it falls back to the weekly (day + time)
  or daily (time only) next occurrence. A day-of-week alone cannot express
  "every 15th", hence the anchor.
"""

from __future__ import annotations

import logging
from datetime import datetime

from ..notes.note_models import WEEKDAYS, Repeat, Session
from .calendar_math import add_days, add_months, add_years
from .clock import from_ms, now_local, to_ms

logger = logging.getLogger(__name__)

# Safety bound for stepping an anchor forward (~100 years of monthly steps).
_MAX_STEPS = 1200


def _parse_hhmm(raw: str | None) -> tuple[int, int] | None:
    if not raw:
        return None
    hh, sep, mm = raw.partition(":")
    if not sep:
        return None
    try:
        h, m = int(hh), int(mm)
    except ValueError:
        return None
    if not (0 <= h <= 23 and 0 <= m <= 59):
        return None
    return h, m


def _weekday_index(raw: str | None) -> int | None:
    # Mon=0 .. Sun=6, same as datetime.weekday().
    if raw in WEEKDAYS:
        return WEEKDAYS.index(raw)
    return None


def next_daily_occurrence(time_of_day: str | None, now: datetime) -> datetime | None:
    hm = _parse_hhmm(time_of_day)
    if hm is None:
        return None
    candidate = now.replace(hour=hm[0], minute=hm[1], second=0, microsecond=0)
    if candidate <= now:
        candidate = add_days(candidate, 1)
    return candidate


def next_weekly_occurrence(day: str | None, time_of_day: str | None, now: datetime) -> datetime | None:
    target = _weekday_index(day)
    hm = _parse_hhmm(time_of_day)
    if target is None or hm is None:
        return None
    delta = (target - now.weekday()) % 7
    candidate = add_days(now, delta).replace(hour=hm[0], minute=hm[1], second=0, microsecond=0)
    if candidate <= now:
        candidate = add_days(candidate, 7)
    return candidate


def _fallback_anchor(session: Session, now: datetime) -> datetime | None:
    if _weekday_index(session.day) is not None and _parse_hhmm(session.time) is not None:
        return next_weekly_occurrence(session.day, session.time, now)
    return next_daily_occurrence(session.time, now)


def _step_until_after(anchor: datetime, now: datetime, repeat: Repeat) -> datetime | None:
    # anchor + k*step rather than repeated single steps, so a clamped month end
    # (Jan 31 -> Feb 29) does not drag every later step to the 29th.
    shift = add_months if repeat is Repeat.MONTHLY else add_years
    k = 0
    candidate = anchor
    while candidate <= now:
        k += 1
        if k > _MAX_STEPS:
            logger.warning("Gave up stepping anchor=%s repeat=%s", anchor, repeat.value)
            return None
        candidate = shift(anchor, k)
    return candidate


def compute_next_session_reset_at(session: Session, now: datetime | None = None) -> int | None:
    """
    Next moment (ms since epoch) at which a completed session should be un-checked.

    None means "no reset scheduled": repeat is none, or the fields the repeat needs
    are missing.
    """
    if now is None:
        now = now_local()

    repeat = session.repeat
    if repeat is Repeat.NONE:
        return None

    nxt: datetime | None
    if repeat is Repeat.DAILY:
        nxt = next_daily_occurrence(session.time, now)
    elif repeat is Repeat.WEEKLY:
        nxt = next_weekly_occurrence(session.day, session.time, now)
    elif repeat in (Repeat.MONTHLY, Repeat.YEARLY):
        if session.next_reset_at is not None:
            anchor: datetime | None = from_ms(session.next_reset_at)
        else:
            anchor = _fallback_anchor(session, now)
        nxt = None if anchor is None else _step_until_after(anchor, now, repeat)
    else:
        logger.warning("Unknown repeat=%s session=%s", repeat, session.id)
        return None

    return None if nxt is None else to_ms(nxt)
