# src/focus_tracker/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_CATEGORIES: tuple[str, ...] = ("life", "work")
# Tasks whose category is deleted are moved here.
FALLBACK_CATEGORY = "life"

MAX_PROGRESS = 100


def clamp_progress(value: int | float) -> int:
    """Clamp a progress value into [0, 100]."""
    return int(max(0, min(MAX_PROGRESS, int(value))))


@dataclass(slots=True)
class Task:
    """
    A unit of work being timed.

    Notes:
    - time_spent only grows; the store refuses lower values.
    - completed_at is written once, on the first completion.
    """

    id: int
    name: str
    category: str
    progress: int
    completed: bool
    time_spent: int
    created_at: float
    completed_at: float | None = None
    updated_at: float = 0.0


@dataclass(slots=True, frozen=True)
class TaskView:
    """Read-only projection for rendering; always recomputed, never stored."""

    task_id: int
    remaining_seconds: int
    is_active: bool


@dataclass(slots=True, frozen=True)
class Category:
    id: int
    name: str
    created_at: float


@dataclass(slots=True, frozen=True)
class DailyStats:
    sessions_completed: int
    focus_seconds: int
    tasks_completed: int


@dataclass(slots=True, frozen=True)
class HistorySummary:
    tasks: list[Task] = field(default_factory=list)
    total_seconds: int = 0

    @property
    def count(self) -> int:
        return len(self.tasks)
