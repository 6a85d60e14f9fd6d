# src/focus_tracker/tasks/timer_engine.py

"""
Single active session timer engine.

The engine owns one running pointer (which task is accruing time, and how many
seconds it accrued since the last checkpoint). Every state transition goes through
the methods below under one lock, so intents from the console thread and ticks from
the ticker thread are applied strictly one after another.

Storage is reached only through the TaskRepo port:
- a checkpoint writes the absolute time_spent of the running task,
- a failed checkpoint raises CheckpointError after the requested transition is applied,
  and the un-persisted seconds stay in memory until the next checkpoint succeeds.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ..core.ports import SessionListener, TaskRepo
from . import session_clock
from .session_clock import TimerConfigError
from .task_models import MAX_PROGRESS, Task, TaskView, clamp_progress

logger = logging.getLogger(__name__)

__all__ = ["CheckpointError", "RunningPointer", "TimerConfigError", "TimerEngine"]


class CheckpointError(RuntimeError):
    """Accumulated focus time could not be written to the task store."""

    def __init__(self, task_id: int, seconds: int, reason: str = "") -> None:
        msg = f"could not save time_spent={seconds} for task {task_id}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.task_id = task_id
        self.seconds = seconds


@dataclass(slots=True)
class RunningPointer:
    task_id: int
    base_time_spent: int
    elapsed_since_checkpoint: int = 0
    # base_time_spent came from a failed write and was never stored
    unsaved_base: bool = False
    # elapsed_since_checkpoint when the last periodic write failed
    failed_at_elapsed: int = 0

    @property
    def total(self) -> int:
        return self.base_time_spent + self.elapsed_since_checkpoint

    @property
    def dirty(self) -> bool:
        return self.elapsed_since_checkpoint > 0 or self.unsaved_base


class TimerEngine:
    """
    Idle / Running(task_id) state machine driven by an external tick source.

    Unknown task ids, completed tasks and intents aimed at a task that is not
    running are ignored (methods return False). Only persistence failures raise.
    """

    def __init__(
        self,
        task_repo: TaskRepo,
        session_duration_seconds: int,
        *,
        checkpoint_every_seconds: int = 0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._duration = session_clock.validate_session_duration(session_duration_seconds)
        self._repo = task_repo
        self._checkpoint_every = max(0, int(checkpoint_every_seconds))
        self._clock = clock

        self._lock = threading.RLock()
        self._running: RunningPointer | None = None
        # task_id -> absolute time_spent that still has to be written
        self._pending: dict[int, int] = {}
        self._listeners: list[SessionListener] = []

        logger.info(
            "TimerEngine ready session=%ss checkpoint_every=%ss",
            self._duration,
            self._checkpoint_every,
        )

    # ---- read-only state ----

    @property
    def session_duration_seconds(self) -> int:
        return self._duration

    @property
    def active_task_id(self) -> int | None:
        with self._lock:
            return self._running.task_id if self._running is not None else None

    @property
    def pending_task_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._pending)

    def is_running(self, task_id: int) -> bool:
        with self._lock:
            return self._running is not None and self._running.task_id == task_id

    # ---- listeners ----

    def add_listener(self, listener: SessionListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit_session_complete(self, task_id: int) -> None:
        for listener in list(self._listeners):
            try:
                listener(task_id)
            except Exception:
                logger.exception("Session listener failed task_id=%s listener=%r", task_id, listener)

    # ---- persistence helpers ----

    def _save(self, task_id: int, seconds: int) -> None:
        try:
            ok = self._repo.save_time_spent(task_id, seconds)
        except Exception as exc:
            raise CheckpointError(task_id, seconds, str(exc)) from exc
        if not ok:
            raise CheckpointError(task_id, seconds, "store rejected the write")

    def _checkpoint_pointer(self, ptr: RunningPointer) -> None:
        if not ptr.dirty:
            return
        total = ptr.total
        self._save(ptr.task_id, total)
        ptr.base_time_spent = total
        ptr.elapsed_since_checkpoint = 0
        ptr.unsaved_base = False
        ptr.failed_at_elapsed = 0
        logger.debug("Checkpoint task_id=%s time_spent=%s", ptr.task_id, total)
        self._retry_pending()

    def _write_pending(self) -> list[CheckpointError]:
        """Write every retained total; entries that fail again stay retained."""
        failures: list[CheckpointError] = []
        for task_id, seconds in list(self._pending.items()):
            try:
                self._save(task_id, seconds)
            except CheckpointError as exc:
                failures.append(exc)
                continue
            del self._pending[task_id]
            logger.info("Saved retained time task_id=%s time_spent=%s", task_id, seconds)
        return failures

    def _retry_pending(self) -> None:
        """The store just accepted a write, so retained totals get another try. Never raises."""
        for exc in self._write_pending():
            logger.warning("Retry still failing: %s", exc)

    def _stop_running(self) -> None:
        """Clear the pointer, then checkpoint it. On failure the time moves to _pending."""
        ptr = self._running
        if ptr is None:
            return
        self._running = None
        try:
            self._checkpoint_pointer(ptr)
        except CheckpointError:
            self._pending[ptr.task_id] = ptr.total
            logger.warning("Keeping %ss unsaved for task_id=%s", ptr.total, ptr.task_id)
            raise
        logger.info("Timer stopped task_id=%s time_spent=%s", ptr.task_id, ptr.total)

    # ---- intents ----

    def start(self, task_id: int) -> bool:
        """
        Make task_id the running task.

        A different running task is stopped (checkpointed) first. If that checkpoint
        fails, the switch still happens and CheckpointError is raised afterwards.
        """
        with self._lock:
            if self._running is not None and self._running.task_id == task_id:
                logger.debug("start ignored: task_id=%s already running", task_id)
                return False

            task = self._repo.get_task(task_id)
            if task is None:
                logger.debug("start ignored: unknown task_id=%s", task_id)
                return False
            if task.completed:
                logger.debug("start ignored: task_id=%s is completed", task_id)
                return False

            # Taken before stopping the old pointer, whose checkpoint may retry pending writes.
            pending = self._pending.pop(task_id, None)

            failure: CheckpointError | None = None
            try:
                self._stop_running()
            except CheckpointError as exc:
                failure = exc

            base = int(task.time_spent)
            unsaved = pending is not None and pending > base
            if unsaved and pending is not None:
                base = pending

            self._running = RunningPointer(task_id=task_id, base_time_spent=base, unsaved_base=unsaved)
            logger.info("Timer started task_id=%s time_spent=%s", task_id, base)

            if failure is not None:
                raise failure
            return True

    def pause(self, task_id: int) -> bool:
        with self._lock:
            if self._running is None or self._running.task_id != task_id:
                logger.debug("pause ignored: task_id=%s is not running", task_id)
                return False
            self._stop_running()
            return True

    def set_progress(self, task_id: int, progress: int) -> bool:
        """
        Record a manual progress update.

        Reaching 100 completes the task; a running task is paused (checkpointed)
        before it is marked completed so it cannot keep accruing time.
        """
        with self._lock:
            task = self._repo.get_task(task_id)
            if task is None or task.completed:
                logger.debug("set_progress ignored: task_id=%s missing or completed", task_id)
                return False

            value = clamp_progress(progress)
            if value < MAX_PROGRESS:
                return bool(self._repo.save_progress(task_id, value))

            failure: CheckpointError | None = None
            if self._running is not None and self._running.task_id == task_id:
                try:
                    self._stop_running()
                except CheckpointError as exc:
                    failure = exc

            completed = bool(self._repo.mark_completed(task_id, self._clock()))
            if completed:
                logger.info("Task completed task_id=%s", task_id)
            else:
                logger.warning("mark_completed rejected task_id=%s", task_id)

            if failure is not None:
                raise failure
            return completed

    def delete_task(self, task_id: int) -> bool:
        with self._lock:
            if self._running is not None and self._running.task_id == task_id:
                try:
                    self._stop_running()
                except CheckpointError:
                    logger.warning("Dropping unsaved time of deleted task_id=%s", task_id)
            self._pending.pop(task_id, None)
            return bool(self._repo.delete_task(task_id))

    # ---- tick path ----

    def tick(self) -> int:
        return self.advance(1)

    def advance(self, seconds: int = 1) -> int:
        """
        Accrue `seconds` on the running task.

        Returns the number of session boundaries crossed; one session-complete event is
        emitted for each. The task keeps running into the next session.
        """
        seconds = int(seconds)
        if seconds <= 0:
            return 0

        with self._lock:
            ptr = self._running
            if ptr is None:
                return 0

            before = ptr.total
            ptr.elapsed_since_checkpoint += seconds
            crossed = session_clock.boundaries_crossed(self._duration, before, ptr.total)

            # After a failed periodic write, wait a full period before trying again.
            due = (
                self._checkpoint_every > 0
                and ptr.elapsed_since_checkpoint - ptr.failed_at_elapsed >= self._checkpoint_every
            )
            failure: CheckpointError | None = None
            if crossed or due:
                try:
                    self._checkpoint_pointer(ptr)
                except CheckpointError as exc:
                    ptr.failed_at_elapsed = ptr.elapsed_since_checkpoint
                    failure = exc

            for _ in range(crossed):
                logger.info("Session complete task_id=%s time_spent=%s", ptr.task_id, ptr.total)
                self._emit_session_complete(ptr.task_id)

            if failure is not None:
                raise failure
            return crossed

    def checkpoint(self) -> bool:
        """Persist the running task without pausing it."""
        with self._lock:
            if self._running is None:
                return False
            self._checkpoint_pointer(self._running)
            return True

    def flush(self) -> None:
        """Retry every write that failed earlier."""
        with self._lock:
            failures = self._write_pending()
            if failures:
                for exc in failures[1:]:
                    logger.error("Retry failed: %s", exc)
                raise failures[0]

    def shutdown(self) -> None:
        """Final checkpoint: stop the running task and write everything retained."""
        with self._lock:
            ptr = self._running
            self._running = None
            if ptr is not None and ptr.dirty:
                self._pending[ptr.task_id] = ptr.total
            self.flush()
            logger.info("TimerEngine shut down.")

    # ---- derived view ----

    def effective_time_spent(self, task: Task) -> int:
        """time_spent including seconds not yet written to the store."""
        with self._lock:
            ptr = self._running
            if ptr is not None and ptr.task_id == task.id:
                return ptr.total
            return max(int(task.time_spent), self._pending.get(task.id, 0))

    def _view(self, task: Task) -> TaskView:
        return TaskView(
            task_id=task.id,
            remaining_seconds=session_clock.remaining_seconds(self._duration, self.effective_time_spent(task)),
            is_active=self.is_running(task.id),
        )

    def get_view(self, task_id: int) -> TaskView | None:
        with self._lock:
            task = self._repo.get_task(task_id)
            if task is None:
                return None
            return self._view(task)

    def list_views(self, tasks: Iterable[Task]) -> list[TaskView]:
        with self._lock:
            return [self._view(t) for t in tasks]
