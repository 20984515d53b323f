"""
Task subsystem.

Components:
- task_models.py: data structures (Task, NewTask, Priority, TaskStatus, ...)
- normalizer.py: candidate draft / caller fields -> validated values
- lifecycle.py: derived overdue state, status toggling, filtering and ordering
- task_store.py: SQLite-backed owner-scoped storage
- memory_store.py: in-memory owner-scoped storage (tests, ephemeral runs)
- task_api.py: TaskService, the operations used by the presentation layer
"""
