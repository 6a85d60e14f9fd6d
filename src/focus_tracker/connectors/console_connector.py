# src/focus_tracker/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.commands import save_failure_message
from ..core.state import AppState
from ..tasks.timer_engine import CheckpointError

logger = logging.getLogger(__name__)

# The session tally is registered before the notifier, so it already counts the current session.
LONG_BREAK_EVERY = 4


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except OSError:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleNotifier:
    """
    Notification collaborator for the console.

    Prints a line when a session completes or when saving focus time fails.
    Sound and desktop popups are out of scope here.
    """

    def __init__(self, state: AppState) -> None:
        self._state = state

    def break_minutes(self) -> int:
        """Every LONG_BREAK_EVERY-th session of the day earns the long break."""
        settings = self._state.settings
        done_today = self._state.tally.today
        if done_today and done_today % LONG_BREAK_EVERY == 0:
            return getattr(settings, "long_break_minutes", 15)
        return getattr(settings, "break_minutes", 5)

    def __call__(self, task_id: int) -> None:
        task = self._state.task_store.get_task(task_id)
        name = task.name if task is not None else f"task {task_id}"
        break_minutes = self.break_minutes()
        logger.info("Session complete notification task_id=%s", task_id)
        _print_ts(f"[FOCUS] Session complete: {name}. Take a {break_minutes} minute break!")

    def checkpoint_failed(self, exc: CheckpointError) -> None:
        _print_ts(f"[FOCUS] {save_failure_message(exc)}")


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        _print_ts(text)

    while True:
        try:
            user_input = input(">>> ").strip()
            _rewrite_prev_line(f"[{_ts_local()}] >>> {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            response = command_registry.handle(state, user_input, emit=emit)
        except ValueError as e:
            response = f"Invalid input: {e}"
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is None:
            response = "Commands start with '/'. Use /help to list them."
        _print_ts(response)

    logger.info("Console connector finished.")
