# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from focus_tracker.cli.bootstrap import create_initial_state
from focus_tracker.core.state import AppState
from focus_tracker.tasks.timer_engine import TimerEngine

from .fakes import FakeTaskRepo, RecordingListener, make_task


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="focus-test",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "focus.sqlite3",
        session_duration_seconds=1500,
        break_minutes=5,
        long_break_minutes=15,
        checkpoint_every_seconds=0,
    )


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired through the real composition root.

    NOTE: We keep the real SQLite store here because its correctness is part of
    what we want to test.
    """
    return create_initial_state(settings=settings)


@pytest.fixture()
def repo() -> FakeTaskRepo:
    return FakeTaskRepo([make_task(1), make_task(2), make_task(3)])


@pytest.fixture()
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture()
def engine(repo: FakeTaskRepo, listener: RecordingListener) -> TimerEngine:
    eng = TimerEngine(repo, 1500, clock=lambda: 1_700_000_500.0)
    eng.add_listener(listener)
    return eng
