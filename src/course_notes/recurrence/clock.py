# recurrence/clock.py

"""Local wall-clock helpers. Timestamps are integer milliseconds since the epoch."""

from __future__ import annotations

from datetime import datetime


def now_local() -> datetime:
    return datetime.now()


def to_ms(dt: datetime) -> int:
    return int(round(dt.timestamp() * 1000))


def from_ms(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000)
