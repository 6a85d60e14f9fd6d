# src/focus_tracker/cli/commands.py

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Callable

from ..core.state import AppState
from ..tasks.day_utils import day_start
from ..tasks.session_clock import format_countdown, format_duration, session_ratio
from ..tasks.task_api import create_task, daily_stats, history_summary
from ..tasks.task_models import Task
from ..tasks.timer_engine import CheckpointError

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /start, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def save_failure_message(exc: CheckpointError) -> str:
    return f"Could not save progress for task {exc.task_id}; will retry."


def _parse_id(args: list[str], pos: int = 0) -> int | None:
    if len(args) <= pos:
        return None
    try:
        return int(args[pos].lstrip("#"))
    except ValueError:
        return None


def _split_category(args: list[str]) -> tuple[str, str | None]:
    """Separate a trailing "#category" word from the rest of the text."""
    category = None
    words: list[str] = []
    for a in args:
        if a.startswith("#") and len(a) > 1:
            category = a[1:]
        else:
            words.append(a)
    return " ".join(words).strip(), category


def _task_line(state: AppState, task: Task) -> str:
    engine = state.engine
    view = engine.list_views([task])[0]
    spent = engine.effective_time_spent(task)
    sessions = session_ratio(spent, engine.session_duration_seconds)
    if task.completed:
        marker = "done"
    elif view.is_active:
        marker = "RUNNING"
    else:
        marker = "paused"
    return (
        f"  [{task.id}] {task.name}  {task.progress}%  "
        f"{format_countdown(view.remaining_seconds)}  "
        f"spent {format_duration(spent)} (~{sessions} sessions)  {marker}"
    )


def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add Write report         -> task in the fallback category
    /add Write report #work   -> task in category "work"
    """
    name, category = _split_category(args)
    if not name:
        return "Usage: /add <name> [#category]"

    task_id = create_task(state, name=name, category=category)
    return f"Added task [{task_id}] {name}"


def cmd_edit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /edit 3 New name          -> rename
    /edit 3 #work             -> move to category "work"
    """
    task_id = _parse_id(args)
    name, category = _split_category(args[1:])
    if task_id is None or (not name and category is None):
        return "Usage: /edit <task id> [new name] [#category]"

    changed = state.task_store.update_task_fields(task_id, name=name or None, category=category)
    return f"Task {task_id} updated." if changed else f"No task {task_id}."


def cmd_list(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    tasks = state.task_store.list_active_tasks()
    if not tasks:
        return "No tasks yet. Use /add <name> to create one."

    lines = ["Tasks:"]
    for category in state.task_store.list_category_names():
        group = [t for t in tasks if t.category == category]
        if not group:
            continue
        lines.append(f"{category}:")
        lines.extend(_task_line(state, t) for t in group)
    return "\n".join(lines)


def cmd_start(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /start <task id>"

    try:
        started = state.engine.start(task_id)
    except CheckpointError as exc:
        logger.error("start(%s): %s", task_id, exc)
        return save_failure_message(exc)

    if started:
        return f"Focus started on task {task_id}."
    if state.engine.is_running(task_id):
        return f"Task {task_id} is already running."
    return f"Task {task_id} cannot be started."


def cmd_pause(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /pause        -> pause whatever is running
    /pause <id>   -> pause only if that task is running
    """
    task_id = _parse_id(args)
    if task_id is None:
        task_id = state.engine.active_task_id
    if task_id is None:
        return "Nothing is running."

    try:
        paused = state.engine.pause(task_id)
    except CheckpointError as exc:
        logger.error("pause(%s): %s", task_id, exc)
        return save_failure_message(exc)

    return f"Paused task {task_id}." if paused else f"Task {task_id} is not running."


def cmd_progress(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _parse_id(args, 0)
    value = _parse_id(args, 1)
    if task_id is None or value is None:
        return "Usage: /progress <task id> <0-100>"

    try:
        changed = state.engine.set_progress(task_id, value)
    except CheckpointError as exc:
        logger.error("set_progress(%s): %s", task_id, exc)
        return save_failure_message(exc)

    if not changed:
        return f"Task {task_id} was not updated."
    if value >= 100:
        return f"Task {task_id} completed. Nice work!"
    return f"Task {task_id} progress set to {max(0, value)}%."


def cmd_delete(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    task_id = _parse_id(args)
    if task_id is None:
        return "Usage: /delete <task id>"
    deleted = state.engine.delete_task(task_id)
    return f"Deleted task {task_id}." if deleted else f"No task {task_id}."


def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    engine = state.engine
    lines = ["Status:", f"  Session length: {format_countdown(engine.session_duration_seconds)}"]

    active = engine.active_task_id
    task = state.task_store.get_task(active) if active is not None else None
    if task is None:
        lines.append("  Running: nothing")
    else:
        view = engine.list_views([task])[0]
        lines.append(f"  Running: [{task.id}] {task.name}  {format_countdown(view.remaining_seconds)} left")

    pending = engine.pending_task_ids
    if pending:
        lines.append(f"  Unsaved time for tasks: {', '.join(str(p) for p in pending)}")
    return "\n".join(lines)


def cmd_stats(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    now = time.time()
    stats = daily_stats(
        state.task_store.list_tasks_in_range(day_start(now), now),
        state.tally,
        now_ts=now,
        time_spent=state.engine.effective_time_spent,
    )
    return (
        "Today:\n"
        f"  Sessions completed: {stats.sessions_completed}\n"
        f"  Focus time: {stats.focus_seconds // 60} min\n"
        f"  Tasks completed: {stats.tasks_completed}"
    )


def cmd_history(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    summary = history_summary(state.task_store.list_history_tasks())
    if not summary.count:
        return "No completed tasks before today."

    lines = [f"History: {summary.count} tasks, {summary.total_seconds // 3600} h total"]
    for t in summary.tasks:
        lines.append(f"  [{t.id}] {t.name} ({t.category})  spent {format_duration(t.time_spent)}")
    return "\n".join(lines)


def cmd_cat(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /cat             -> list categories
    /cat add <name>  -> add a category
    /cat del <name>  -> delete a category (its tasks move to the fallback)
    """
    store = state.task_store
    if not args:
        return "Categories: " + ", ".join(store.list_category_names())

    sub = args[0].lower()
    name = " ".join(args[1:]).strip()
    if sub == "add" and name:
        store.add_category(name)
        return f"Category {name} added."
    if sub in ("del", "rm") and name:
        if store.delete_category(name):
            return f"Category {name} deleted."
        return f"Category {name} cannot be deleted."

    if emit:
        with contextlib.suppress(Exception):
            emit("Usage: /cat | /cat add <name> | /cat del <name>")
    return "Unknown /cat subcommand."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text="Add a task: /add <name> [#category].")
registry.register("edit", cmd_edit, help_text="Rename or move a task: /edit <id> [name] [#category].")
registry.register("list", cmd_list, help_text="List today's and open tasks.", aliases=["ls"])
registry.register("start", cmd_start, help_text="Start focusing on a task: /start <id>.")
registry.register("pause", cmd_pause, help_text="Pause the running task: /pause [id].")
registry.register("progress", cmd_progress, help_text="Set progress: /progress <id> <0-100>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("status", cmd_status, help_text="Show the running task and countdown.")
registry.register("stats", cmd_stats, help_text="Show today's sessions and focus time.")
registry.register("history", cmd_history, help_text="Show tasks completed before today.")
registry.register("cat", cmd_cat, help_text="Categories: /cat | /cat add <name> | /cat del <name>.")
