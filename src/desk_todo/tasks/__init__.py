"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Priority)
- task_store.py: SQLite-backed primary store
- task_view.py: pure filter/search/sort over a task list
- attachments.py: per-task attachment folders
- task_service.py: the single writer (store, snapshot export, reminders)
"""
