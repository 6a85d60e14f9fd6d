# src/focus_tracker/tasks/day_utils.py

"""Local-day boundaries for epoch timestamps (used by "today" and history queries)."""

from __future__ import annotations

from datetime import datetime


def day_start(ts: float) -> float:
    dt = datetime.fromtimestamp(ts)
    return dt.replace(hour=0, minute=0, second=0, microsecond=0).timestamp()


def is_same_day(a: float, b: float) -> bool:
    return datetime.fromtimestamp(a).date() == datetime.fromtimestamp(b).date()


def local_date_key(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d")
