# src/focus_tracker/tasks/task_api.py

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable

from ..core.state import AppState
from .day_utils import is_same_day, local_date_key
from .task_models import DailyStats, HistorySummary, Task

logger = logging.getLogger(__name__)


def create_task(state: AppState, *, name: str, category: str | None = None) -> int:
    """
    Convenience helper: add a task to the store.
    Uses state.task_store (already constructed in bootstrap).
    """
    task_id = state.task_store.add_task(name=name, category=category)
    logger.info("Task created id=%s", task_id)
    return task_id


class SessionTally:
    """
    Session-complete listener that counts finished sessions per local day.

    The counter rolls over on the first event (or read) of a new day.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._day = local_date_key(clock())
        self._count = 0
        self._by_task: dict[int, int] = {}

    def _roll(self) -> None:
        today = local_date_key(self._clock())
        if today != self._day:
            self._day = today
            self._count = 0
            self._by_task.clear()

    def __call__(self, task_id: int) -> None:
        with self._lock:
            self._roll()
            self._count += 1
            self._by_task[task_id] = self._by_task.get(task_id, 0) + 1

    @property
    def today(self) -> int:
        with self._lock:
            self._roll()
            return self._count

    def for_task(self, task_id: int) -> int:
        with self._lock:
            self._roll()
            return self._by_task.get(task_id, 0)


def daily_stats(
    tasks: Iterable[Task],
    tally: SessionTally,
    *,
    now_ts: float | None = None,
    time_spent: Callable[[Task], int] | None = None,
) -> DailyStats:
    """
    Today's numbers: sessions finished, focus time on tasks touched today, tasks done.

    time_spent lets callers pass the engine's live figure for the running task.
    """
    now = time.time() if now_ts is None else now_ts
    spent = time_spent or (lambda t: t.time_spent)

    focus = 0
    done = 0
    for t in tasks:
        touched = is_same_day(t.created_at, now) or (
            t.completed_at is not None and is_same_day(t.completed_at, now)
        )
        if touched:
            focus += spent(t)
        if t.completed and t.completed_at is not None and is_same_day(t.completed_at, now):
            done += 1

    return DailyStats(sessions_completed=tally.today, focus_seconds=focus, tasks_completed=done)


def history_summary(tasks: Iterable[Task]) -> HistorySummary:
    """Completed tasks, most recently completed first, with their total focus time."""
    completed = [t for t in tasks if t.completed and t.completed_at is not None]
    completed.sort(key=lambda t: t.completed_at or 0.0, reverse=True)
    return HistorySummary(tasks=completed, total_seconds=sum(t.time_spent for t in completed))
