# src/focus_tracker/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the timer ticker in a background thread,
- the console REPL in the main thread (optional).

On exit the ticker is stopped, which forces the final checkpoint of the running task.
"""

from __future__ import annotations

import logging
import signal
import sys
import threading

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleNotifier, run_console_loop
from ..logging_setup import setup_logging
from ..tasks.session_clock import TimerConfigError
from ..tasks.timer_scheduler import start_ticker_in_background

logger = logging.getLogger(__name__)


def install_signal_handlers(stop_main: threading.Event, *, console: bool) -> None:
    """
    Headless: SIGINT/SIGTERM set stop_main, which main() is waiting on.
    Console: main() is blocked in input(), so both signals raise KeyboardInterrupt there;
    the console loop exits and main()'s finally block runs the final checkpoint.
    """

    def _stop(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    def _interrupt(signum, _frame) -> None:
        logger.info("Signal %s received, leaving the console...", signum)
        stop_main.set()
        raise KeyboardInterrupt

    handler = _interrupt if console else _stop
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            signal.signal(signum, handler)
        except (ValueError, OSError):
            # Some platforms may not support SIGTERM, etc.
            logger.debug("Signal handler for %s not installed.", signum, exc_info=True)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    try:
        state = create_initial_state(settings=settings)
    except TimerConfigError as e:
        logger.error("Invalid timer configuration: %s", e)
        sys.exit(2)

    notifier = ConsoleNotifier(state)
    state.engine.add_listener(notifier)

    runner = start_ticker_in_background(
        state.engine,
        interval_seconds=settings.tick_interval_seconds,
        max_catch_up_ticks=settings.max_catch_up_ticks,
        on_error=notifier.checkpoint_failed,
    )
    if runner is None:
        logger.error("Timer ticker did not start; exiting.")
        sys.exit(1)

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    install_signal_handlers(stop_main, console=settings.console_enabled)

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Timer running headless. Press Ctrl+C to stop.")
            stop_main.wait()
    except KeyboardInterrupt:
        # Signal arrived while a command was running, outside input().
        logger.info("Interrupted, shutting down...")
    finally:
        runner.stop()
        runner.join(timeout=10.0)
        state.task_store.close()
        logger.info("Bye.")


if __name__ == "__main__":
    main()
