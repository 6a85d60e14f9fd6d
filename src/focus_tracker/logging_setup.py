# src/focus_tracker/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Loggers that write once per tick or per checkpoint. On the console they would
# interleave with the ">>> " prompt, so only WARNING+ gets through; focus.log keeps all.
TICK_PATH_LOGGERS: tuple[str, ...] = (
    "focus_tracker.tasks.timer_scheduler",
    "focus_tracker.tasks.timer_engine",
    "focus_tracker.tasks.task_store",
)


class _PromptFriendlyFilter(logging.Filter):
    """Console filter: app transitions yes, tick chatter and third-party noise no."""

    def __init__(self, quiet: tuple[str, ...] = TICK_PATH_LOGGERS) -> None:
        super().__init__()
        self._quiet = quiet

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if not name.startswith("focus_tracker."):
            # py.warnings and libraries
            return record.levelno >= logging.ERROR

        if name.startswith(self._quiet):
            return record.levelno >= logging.WARNING
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/focus",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    log_name: str = "focus.log",
) -> Path:
    """
    Install a filtered stderr handler and a full file handler on the root logger.

    Session starts, pauses and checkpoints are all in the file, so a lost-time
    report can be checked against it. Returns the log file path.
    Calling it again replaces the root handlers instead of stacking them.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / log_name

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    # The console REPL prints its own timestamps; the file needs full ones plus the thread,
    # since the ticker and the prompt write from different threads.
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    console.addFilter(_PromptFriendlyFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
