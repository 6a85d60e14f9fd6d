# src/focus_tracker/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The timer engine depends on Protocols instead of concrete implementations.
This keeps the storage backend and the notification side swappable and lets
tests run the engine against in-memory fakes.
"""

from typing import Any, Protocol


class TaskRepo(Protocol):
    """
    Storage port consumed by the timer engine.

    Write methods return False (or raise) on failure; the engine treats both the
    same way and keeps the un-persisted seconds for a later retry.
    """

    def get_task(self, task_id: int) -> Any | None: ...

    # time_spent is an absolute value, not a delta.
    def save_time_spent(self, task_id: int, seconds: int) -> bool: ...

    def mark_completed(self, task_id: int, completed_at: float) -> bool: ...

    def save_progress(self, task_id: int, progress: int) -> bool: ...

    def delete_task(self, task_id: int) -> bool: ...


class SessionListener(Protocol):
    """
    Notification-side port: called once per completed focus session.

    The listener decides what to do with it (sound, popup, daily counter, ...).
    """

    def __call__(self, task_id: int) -> None: ...
