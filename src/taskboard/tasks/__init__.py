"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Subtask, TaskDraft, enums) + reconcile()
- errors.py: error taxonomy
- task_repo.py: in-memory repository (create/update/toggle/delete/subtasks)
- task_views.py: partitions, filters and orderings for display
- normalize.py: stored JSON records <-> Task (legacy migration lives here)
- tabular.py: spreadsheet/CSV rows <-> Task
- task_store.py: SQLite named-slot store
- task_api.py: small high-level helpers used by the rest of the app
"""
