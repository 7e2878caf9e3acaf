# src/weekly_planner/core/errors.py

"""
Error taxonomy.

All three planner errors end the operation that raised them but never the process:
- AuthError / SyncError replace the normal view with an error screen,
- SaveError is a transient notice (the optimistic local change is kept).

Nothing here is retried automatically.
"""

from __future__ import annotations


class PlannerError(Exception):
    """Base class for errors the user gets to see."""

    default_message = "Something went wrong."

    def __init__(self, user_message: str | None = None) -> None:
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)


class AuthError(PlannerError):
    default_message = "Failed to authenticate. Please try again."


class SyncError(PlannerError):
    default_message = "Failed to load data. Please check your connection."


class SaveError(PlannerError):
    default_message = "Failed to save data. Please try again."


class IdentityProviderError(Exception):
    """A single sign-in attempt failed (the bootstrap may still fall back)."""
