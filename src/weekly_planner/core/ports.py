# src/weekly_planner/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the document store and the identity provider swappable and makes testing easier.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from ..storage.subscription import DocumentSubscription

DocumentData = dict[str, Any]
# JSON-safe wire form of a UserDocument: {"globalTasks": [...], "dailyTasks": {...}, "routines": [...]}.

AuthStateCallback = Callable[[str | None], None]


@dataclass(frozen=True, slots=True)
class Identity:
    """Result of a successful sign-in."""

    user_id: str
    method: str


class PersistenceGateway(Protocol):
    """
    Last-write-wins key/document store with change notification.

    Each successful write eventually notifies every active subscriber of that key,
    including the writer itself. Nothing stronger (transactions, field merges,
    write ordering) is assumed by the core.
    """

    async def read(self, key: str) -> DocumentData | None: ...

    async def write(self, key: str, data: DocumentData) -> None:
        """Replace the whole document. Raises SaveError on failure."""
        ...

    def subscribe(self, key: str) -> DocumentSubscription: ...


class IdentityProvider(Protocol):
    async def restore(self) -> str | None:
        """Return the user id of a resumable session, if any."""
        ...

    async def sign_in_with_token(self, token: str) -> Identity: ...
    async def sign_in_anonymously(self) -> Identity: ...

    def on_auth_state_changed(self, callback: AuthStateCallback) -> Callable[[], None]:
        """Register an observer; returns an unsubscribe callable."""
        ...

    async def sign_out(self) -> None: ...
