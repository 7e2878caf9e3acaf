"""Weekly planner: global tasks, per-weekday tasks and routines kept in sync with a per-user document."""

__version__ = "0.1.0"
