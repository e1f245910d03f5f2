"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskType)
- task_store.py: key-value backed storage (whole collection or one record per task)
- task_orchestrator.py: lifecycle state machine and background execution
- task_monitor.py: read-only polling loop that reports status transitions
- task_api.py: small high-level helpers (rating, listing, formatting)
"""
