# src/course_notes/recurrence/rollover.py

from __future__ import annotations

"""
Rollover sweep.

One sweep:
- reloads the whole collection from the store (never a cached copy),
- advances repeating tasks whose deadline passed (clearing `completed`),
- schedules / fires session resets,
- persists once at the end, and only if something changed.

The scheduler runs a sweep at startup and then every `interval_seconds`. Ticks are
serialized with user edits through a shared lock; a tick requested while another
one is running is skipped.
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from ..core.ports import NoteRepo, RolloverListener
from ..notes.note_models import Repeat
from .clock import now_local, to_ms
from .due_dates import pin_task_year, rollover_repeating_task_if_due_passed
from .session_reset import compute_next_session_reset_at

if TYPE_CHECKING:
    from ..core.state import AppState

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SweepResult:
    tasks_rolled: int = 0
    tasks_pinned: int = 0
    sessions_reset: int = 0
    sessions_scheduled: int = 0
    saved: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.tasks_rolled or self.tasks_pinned or self.sessions_reset or self.sessions_scheduled)


def sweep_notes(
    store: NoteRepo,
    *,
    now: datetime | None = None,
    listener: RolloverListener | None = None,
) -> SweepResult:
    """
    Run one rollover pass over every persisted note.

    Raises whatever store.save() raises; mutations already made are not rolled back
    (the next sweep recomputes from the wall clock anyway).
    """
    if now is None:
        now = now_local()
    now_ms = to_ms(now)

    notes = store.load()
    result = SweepResult()

    for note in notes:
        for task in note.tasks:
            if pin_task_year(task, now):
                result.tasks_pinned += 1
            if rollover_repeating_task_if_due_passed(task, now):
                result.tasks_rolled += 1
                if listener is not None:
                    try:
                        listener.task_rolled_over(note, task)
                    except Exception:
                        logger.exception("listener.task_rolled_over failed task=%s", task.id)

        for section, session in note.iter_sessions():
            if session.repeat is Repeat.NONE:
                continue

            if session.next_reset_at is None:
                nxt = compute_next_session_reset_at(session, now)
                if nxt is not None:
                    session.next_reset_at = nxt
                    result.sessions_scheduled += 1
                continue

            if now_ms >= session.next_reset_at:
                session.completed = False
                session.next_reset_at = compute_next_session_reset_at(session, now)
                result.sessions_reset += 1
                if listener is not None:
                    try:
                        listener.session_reset(note, section, session)
                    except Exception:
                        logger.exception("listener.session_reset failed session=%s", session.id)

    if result.changed:
        store.save(notes)
        result.saved = True
        logger.info(
            "Rollover saved: tasks_rolled=%d tasks_pinned=%d sessions_reset=%d sessions_scheduled=%d",
            result.tasks_rolled,
            result.tasks_pinned,
            result.sessions_reset,
            result.sessions_scheduled,
        )
    else:
        logger.debug("Rollover: nothing to do (%d notes)", len(notes))

    return result


class RolloverTicker:
    """
    Reentrancy-safe wrapper around sweep_notes().

    - busy flag: a tick requested while another is running returns None immediately
    - lock: shared with user edits so a sweep never interleaves with a read-modify-write
    """

    def __init__(
        self,
        store: NoteRepo,
        *,
        lock: threading.RLock | None = None,
        listener: RolloverListener | None = None,
        clock: Callable[[], datetime] = now_local,
    ) -> None:
        self._store = store
        self._lock = lock
        self._listener = listener
        self._clock = clock
        self._busy = False
        self._busy_guard = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._busy

    def tick(self) -> SweepResult | None:
        with self._busy_guard:
            if self._busy:
                logger.debug("Rollover tick skipped: previous tick still running")
                return None
            self._busy = True

        try:
            with self._lock if self._lock is not None else contextlib.nullcontext():
                return sweep_notes(self._store, now=self._clock(), listener=self._listener)
        finally:
            self._busy = False


async def run_rollover_scheduler(
    ticker: RolloverTicker,
    *,
    interval_seconds: float = 30.0,
    stop_event: asyncio.Event | None = None,
) -> None:
    """
    Simple polling scheduler.

    Runs one tick immediately, then one every interval_seconds. A failing tick
    (e.g. StoreWriteError) is logged and the loop keeps going.

    To stop the scheduler, set stop_event or cancel the coroutine/task.
    """
    sleep_s = max(0.5, float(interval_seconds))

    while True:
        try:
            ticker.tick()
        except Exception:
            logger.exception("Rollover tick failed")

        if stop_event is None:
            await asyncio.sleep(sleep_s)
            continue

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)
        except TimeoutError:
            continue
        logger.info("Rollover scheduler stopped.")
        return


@dataclass(slots=True)
class RolloverBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal rollover stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_rollover_in_background(state: AppState) -> RolloverBackgroundRunner | None:
    """
    Start the rollover scheduler on its own event loop in a background thread.

    Why a thread:
    - console REPL is blocking (input()).
    - every tick still runs under state.lock, so ticks and edits never interleave.
    """
    settings = state.settings
    if not getattr(settings, "rollover_enabled", True):
        logger.info("Rollover scheduler disabled, not starting.")
        return None

    interval = float(getattr(settings, "rollover_interval_seconds", 30.0))
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                run_rollover_scheduler(state.ticker, interval_seconds=interval, stop_event=stop_event)
            )
        finally:
            with contextlib.suppress(Exception):
                loop.stop()
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="rollover", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Rollover thread did not initialize properly.")
        return None

    logger.info("Rollover background thread started (interval=%.1fs).", interval)
    return RolloverBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
