# src/focus_tracker/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..tasks.task_api import SessionTally
    from ..tasks.task_store import TaskStore
    from ..tasks.timer_engine import TimerEngine


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    task_store: TaskStore
    engine: TimerEngine
    tally: SessionTally
