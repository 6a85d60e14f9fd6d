"""
Task and timer subsystem.

Components:
- task_models.py: data structures (Task, TaskView, Category, stats)
- session_clock.py: pure session arithmetic and display formatting
- timer_engine.py: single running pointer, checkpoints, session-complete events
- timer_scheduler.py: asyncio tick source (+ background thread runner)
- task_store.py: SQLite-backed storage for tasks and categories
- task_api.py: small high-level helpers (create, stats, history, daily tally)
- day_utils.py: local-day boundaries
"""
