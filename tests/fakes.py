# tests/fakes.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from focus_tracker.tasks.task_models import Task


def make_task(
    task_id: int,
    *,
    name: str | None = None,
    time_spent: int = 0,
    completed: bool = False,
    progress: int = 0,
    category: str = "life",
    created_at: float = 1_700_000_000.0,
) -> Task:
    return Task(
        id=task_id,
        name=name or f"task {task_id}",
        category=category,
        progress=100 if completed else progress,
        completed=completed,
        time_spent=time_spent,
        created_at=created_at,
        completed_at=created_at if completed else None,
    )


class FakeTaskRepo:
    """
    In-memory TaskRepo used for engine unit tests.

    - get_task returns copies, so the engine only changes data through the port
    - fail_saves / raise_on_save simulate a broken disk
    - every successful save is recorded for assertions
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self.tasks: dict[int, Task] = {t.id: t for t in tasks}
        self.fail_saves = False
        self.raise_on_save = False
        self.saves: list[tuple[int, int]] = []

    def add(self, task: Task) -> Task:
        self.tasks[task.id] = task
        return task

    def get_task(self, task_id: int) -> Task | None:
        t = self.tasks.get(task_id)
        return replace(t) if t is not None else None

    def save_time_spent(self, task_id: int, seconds: int) -> bool:
        if self.raise_on_save:
            raise OSError("disk full")
        if self.fail_saves:
            return False
        t = self.tasks.get(task_id)
        if t is None:
            return False
        self.saves.append((task_id, seconds))
        t.time_spent = max(t.time_spent, seconds)
        return True

    def save_progress(self, task_id: int, progress: int) -> bool:
        t = self.tasks.get(task_id)
        if t is None or t.completed:
            return False
        t.progress = progress
        return True

    def mark_completed(self, task_id: int, completed_at: float) -> bool:
        t = self.tasks.get(task_id)
        if t is None:
            return False
        t.completed = True
        t.progress = 100
        if t.completed_at is None:
            t.completed_at = completed_at
        return True

    def delete_task(self, task_id: int) -> bool:
        return self.tasks.pop(task_id, None) is not None


@dataclass(slots=True)
class RecordingListener:
    """Session listener that remembers every task id it was called with."""

    events: list[int] = field(default_factory=list)

    def __call__(self, task_id: int) -> None:
        self.events.append(task_id)


class FakeMonotonic:
    """Returns the given readings in order, then repeats the last one."""

    def __init__(self, readings: list[float]) -> None:
        self._readings = list(readings)

    def __call__(self) -> float:
        if len(self._readings) > 1:
            return self._readings.pop(0)
        return self._readings[0]
