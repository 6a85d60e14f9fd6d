# src/focus_tracker/tasks/session_clock.py

"""
Session clock.

Pure integer-second arithmetic shared by the engine and the presentation layer:
- remaining time in the current session, derived from accumulated time,
- how many session boundaries a span of accumulated time crosses,
- display helpers (countdown, durations, session ratio).

Nothing here keeps state; callers pass the persisted time_spent and the
un-checkpointed elapsed seconds explicitly.
"""

from __future__ import annotations


class TimerConfigError(ValueError):
    """Raised when the session duration is not a positive number of seconds."""


def validate_session_duration(seconds: object) -> int:
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise TimerConfigError(f"session duration must be an integer number of seconds, got {seconds!r}")
    if seconds <= 0:
        raise TimerConfigError(f"session duration must be > 0 seconds, got {seconds}")
    return seconds


def remaining_seconds(duration: int, time_spent: int, elapsed: int = 0) -> int:
    """
    Seconds left in the current session.

    A task sitting exactly on a boundary reports a full session (duration), never 0.
    """
    total = max(0, int(time_spent)) + max(0, int(elapsed))
    return max(0, duration - (total % duration))


def boundaries_crossed(duration: int, before_total: int, after_total: int) -> int:
    """
    Count the multiples of `duration` in (before_total, after_total].

    One-second ticks cross at most one boundary; a batch catch-up may cross several
    and each of them counts.
    """
    if after_total <= before_total:
        return 0
    return after_total // duration - before_total // duration


def session_ratio(time_spent: int, duration: int) -> int:
    """Rounded number of sessions worth of time. Display only."""
    if duration <= 0:
        return 0
    return round(max(0, time_spent) / duration)


def format_countdown(seconds: int) -> str:
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def format_duration(seconds: int) -> str:
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
