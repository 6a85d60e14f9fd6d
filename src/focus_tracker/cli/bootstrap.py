# src/focus_tracker/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite store, the timer engine and the session tally into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..tasks.task_api import SessionTally
from ..tasks.task_store import TaskStore
from ..tasks.timer_engine import TimerEngine

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().

    Raises TimerConfigError when the configured session duration is not positive.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(settings.tasks_db_path)
    engine = TimerEngine(
        store,
        settings.session_duration_seconds,
        checkpoint_every_seconds=getattr(settings, "checkpoint_every_seconds", 0),
    )

    tally = SessionTally()
    engine.add_listener(tally)

    return AppState(settings=settings, task_store=store, engine=engine, tally=tally)
