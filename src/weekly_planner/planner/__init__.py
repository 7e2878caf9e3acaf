"""
Planner subsystem.

Components:
- models.py: data shapes (Task, RoutineEntry, UserDocument, Weekday, DocumentKey)
- store.py: in-memory state + optimistic mutations persisted as full snapshots
- sync.py: live subscription to the user document (hydration + first-use bootstrap)
- confirm.py: confirm/cancel gate for destructive actions
"""
