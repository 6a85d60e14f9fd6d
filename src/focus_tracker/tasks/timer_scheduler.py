# src/focus_tracker/tasks/timer_scheduler.py

from __future__ import annotations

"""
Tick source for the timer engine.

A small asyncio loop that:
- wakes every interval_seconds,
- measures how many whole intervals really passed (monotonic clock),
- feeds them to engine.advance(), capped so a suspended machine does not book hours,
- reports checkpoint failures without ever stopping.

Stopping the ticker forces the engine's final checkpoint.
"""

import asyncio
import contextlib
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from .timer_engine import CheckpointError, TimerEngine

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[CheckpointError], None]


class TimerTicker:
    """Owns one cancellable repeating asyncio task that calls into the engine."""

    def __init__(
        self,
        engine: TimerEngine,
        *,
        interval_seconds: float = 1.0,
        max_catch_up_ticks: int = 5,
        on_error: ErrorHandler | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._engine = engine
        self._interval = max(0.005, float(interval_seconds))
        self._max_catch_up = max(1, int(max_catch_up_ticks))
        self._on_error = on_error
        self._monotonic = monotonic
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        """Schedule the loop on the running event loop (idempotent)."""
        if self._task is not None and not self._task.done():
            return self._task
        self._task = asyncio.get_running_loop().create_task(self._run(), name="timer-ticker")
        logger.info("Timer ticker started interval=%ss", self._interval)
        return self._task

    async def stop(self) -> None:
        """Cancel the loop, then run the engine's final checkpoint."""
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._engine.shutdown()
        logger.info("Timer ticker stopped.")

    def report(self, exc: CheckpointError) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(exc)
        except Exception:
            logger.exception("Ticker error handler failed.")

    def _apply(self, ticks: int) -> None:
        try:
            self._engine.advance(ticks)
        except CheckpointError as exc:
            logger.error("Checkpoint failed during tick: %s", exc)
            self.report(exc)
        except Exception:
            logger.exception("Timer tick failed ticks=%s", ticks)

    async def _run(self) -> None:
        last = self._monotonic()
        carry = 0.0

        while True:
            await asyncio.sleep(self._interval)

            now = self._monotonic()
            carry += max(0.0, now - last)
            last = now

            ticks = int(carry // self._interval)
            if ticks <= 0:
                continue
            carry -= ticks * self._interval

            if ticks > self._max_catch_up:
                logger.warning("Ticker fell behind by %s ticks; applying %s", ticks, self._max_catch_up)
                ticks = self._max_catch_up
                carry = 0.0

            self._apply(ticks)


@dataclass(slots=True)
class TickerBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal ticker stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


async def _run_ticker(ticker: TimerTicker, stop_event: asyncio.Event) -> None:
    ticker.start()
    try:
        await stop_event.wait()
    finally:
        try:
            await ticker.stop()
        except CheckpointError as exc:
            logger.error("Final checkpoint failed: %s", exc)
            ticker.report(exc)


def start_ticker_in_background(
    engine: TimerEngine,
    *,
    interval_seconds: float = 1.0,
    max_catch_up_ticks: int = 5,
    on_error: ErrorHandler | None = None,
) -> TickerBackgroundRunner | None:
    """
    Run the ticker in a background thread with its own event loop.

    The console REPL blocks the main thread on input(); the engine lock keeps
    both threads' calls in one sequence.
    """
    ticker = TimerTicker(
        engine,
        interval_seconds=interval_seconds,
        max_catch_up_ticks=max_catch_up_ticks,
        on_error=on_error,
    )

    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_ticker(ticker, stop_event))
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="timer-ticker", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Ticker thread did not initialize properly.")
        return None

    logger.info("Ticker background thread started.")
    return TickerBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
