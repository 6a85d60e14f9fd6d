# tests/test_commands.py

from __future__ import annotations

from focus_tracker.cli.commands import CommandRegistry, registry


def test_command_registry_routes_and_passes_emit(state) -> None:
    reg = CommandRegistry()
    notes: list[str] = []

    def h(state, args, emit):
        if emit is not None:
            emit("note")
        return "h:" + ",".join(args)

    reg.register("a", h, "a", aliases=["x"])

    assert reg.handle(state, "/a 1 2", emit=notes.append) == "h:1,2"
    assert reg.handle(state, "/X") == "h:"
    assert notes == ["note"]
    assert "/a - a" in reg.build_help()


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Empty command" in (reg.handle(state, "/") or "")
    assert "Unknown command" in (reg.handle(state, "/nope") or "")


def test_focus_flow_through_commands(state) -> None:
    assert registry.handle(state, "/add Write report #work") == "Added task [1] Write report"
    assert registry.handle(state, "/add Laundry") == "Added task [2] Laundry"

    assert registry.handle(state, "/start 1") == "Focus started on task 1."
    assert registry.handle(state, "/start 1") == "Task 1 is already running."
    state.engine.advance(90)

    listing = registry.handle(state, "/list") or ""
    assert "work:" in listing
    assert "life:" in listing
    assert "RUNNING" in listing
    assert "23:30" in listing

    assert registry.handle(state, "/start 2") == "Focus started on task 2."
    assert state.task_store.get_task(1).time_spent == 90

    assert registry.handle(state, "/pause") == "Paused task 2."
    assert registry.handle(state, "/pause") == "Nothing is running."
    assert registry.handle(state, "/pause 2") == "Task 2 is not running."


def test_progress_and_completion(state) -> None:
    registry.handle(state, "/add Essay")
    registry.handle(state, "/start 1")
    state.engine.advance(30)

    assert registry.handle(state, "/progress 1 40") == "Task 1 progress set to 40%."
    assert state.engine.is_running(1)

    assert registry.handle(state, "/progress 1 100") == "Task 1 completed. Nice work!"
    task = state.task_store.get_task(1)
    assert task.completed is True
    assert task.time_spent == 30
    assert state.engine.active_task_id is None

    assert registry.handle(state, "/start 1") == "Task 1 cannot be started."
    assert registry.handle(state, "/progress 1 20") == "Task 1 was not updated."


def test_usage_messages_for_bad_arguments(state) -> None:
    assert registry.handle(state, "/add") == "Usage: /add <name> [#category]"
    assert registry.handle(state, "/start abc") == "Usage: /start <task id>"
    assert registry.handle(state, "/progress 1") == "Usage: /progress <task id> <0-100>"
    assert registry.handle(state, "/delete") == "Usage: /delete <task id>"


def test_delete_and_categories(state) -> None:
    registry.handle(state, "/add Repot plants #garden")
    registry.handle(state, "/start 1")

    assert registry.handle(state, "/delete 1") == "Deleted task 1."
    assert registry.handle(state, "/rm 1") == "No task 1."
    assert state.engine.active_task_id is None

    assert "garden" in (registry.handle(state, "/cat") or "")
    assert registry.handle(state, "/cat del work") == "Category work cannot be deleted."
    assert registry.handle(state, "/cat del garden") == "Category garden deleted."
    assert registry.handle(state, "/cat add music") == "Category music added."


def test_status_and_stats(state) -> None:
    registry.handle(state, "/add Read paper")
    assert "Running: nothing" in (registry.handle(state, "/status") or "")

    registry.handle(state, "/start 1")
    state.engine.advance(1500)

    status = registry.handle(state, "/status") or ""
    assert "[1] Read paper" in status
    assert "25:00 left" in status

    stats = registry.handle(state, "/stats") or ""
    assert "Sessions completed: 1" in stats
    assert "Focus time: 25 min" in stats


def test_history_is_empty_for_today(state) -> None:
    registry.handle(state, "/add Done today")
    registry.handle(state, "/progress 1 100")
    assert registry.handle(state, "/history") == "No completed tasks before today."


def test_edit_renames_and_moves(state) -> None:
    registry.handle(state, "/add Draft")

    assert registry.handle(state, "/edit 1 Final draft #work") == "Task 1 updated."
    task = state.task_store.get_task(1)
    assert task.name == "Final draft"
    assert task.category == "work"

    assert registry.handle(state, "/edit 1 #life") == "Task 1 updated."
    assert state.task_store.get_task(1).name == "Final draft"

    assert registry.handle(state, "/edit 7 Nope") == "No task 7."
    assert registry.handle(state, "/edit 1") == "Usage: /edit <task id> [new name] [#category]"
