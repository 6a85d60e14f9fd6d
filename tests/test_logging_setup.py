# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from focus_tracker.logging_setup import _PromptFriendlyFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@pytest.mark.parametrize(
    ("name", "level", "shown"),
    [
        ("focus_tracker.cli.main", logging.INFO, True),
        ("focus_tracker.tasks.timer_engine", logging.INFO, False),
        ("focus_tracker.tasks.timer_engine", logging.WARNING, True),
        ("focus_tracker.tasks.timer_scheduler", logging.DEBUG, False),
        ("focus_tracker.tasks.task_store", logging.ERROR, True),
        ("py.warnings", logging.WARNING, False),
        ("asyncio", logging.ERROR, True),
    ],
)
def test_console_filter(name: str, level: int, shown: bool) -> None:
    assert _PromptFriendlyFilter().filter(_record(name, level)) is shown


def test_setup_logging_writes_file_and_replaces_handlers(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved = list(root.handlers)
    saved_level = root.level
    try:
        setup_logging(log_dir=tmp_path)
        log_file = setup_logging(log_dir=tmp_path)
        assert len(root.handlers) == 2

        logging.getLogger("focus_tracker.tasks.timer_engine").debug("checkpoint task_id=1")
        for h in root.handlers:
            h.flush()

        assert log_file == tmp_path / "focus.log"
        assert "checkpoint task_id=1" in log_file.read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved:
            root.addHandler(h)
        root.setLevel(saved_level)
        logging.captureWarnings(False)
