# tests/fakes.py

from __future__ import annotations

import asyncio
import copy
import itertools
from collections.abc import Callable
from typing import Any

from weekly_planner.core.errors import IdentityProviderError, SaveError, SyncError
from weekly_planner.core.ports import Identity
from weekly_planner.storage.subscription import DocumentSubscription


class FakeGateway:
    """
    In-memory PersistenceGateway.

    - Records every write (for "exactly one write" assertions)
    - Echoes each successful write to subscribers of the same key
    - Failures can be switched on per operation
    """

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None) -> None:
        self.documents: dict[str, dict[str, Any]] = dict(documents or {})
        self.writes: list[tuple[str, dict[str, Any]]] = []
        self.subscriptions: list[DocumentSubscription] = []
        self.fail_writes = False
        self.fail_subscribe = False
        # Set to an asyncio.Event to hold writes "in flight" until it is set.
        self.write_gate: asyncio.Event | None = None

    async def read(self, key: str) -> dict[str, Any] | None:
        data = self.documents.get(key)
        return copy.deepcopy(data) if data is not None else None

    async def write(self, key: str, data: dict[str, Any]) -> None:
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.fail_writes:
            raise SaveError()
        self.writes.append((key, copy.deepcopy(data)))
        self.documents[key] = copy.deepcopy(data)
        self.push(key, data)

    def subscribe(self, key: str) -> DocumentSubscription:
        sub = DocumentSubscription(key, on_close=self.subscriptions.remove)
        self.subscriptions.append(sub)
        if self.fail_subscribe:
            sub.fail(SyncError())
        else:
            sub.push(copy.deepcopy(self.documents.get(key)))
        return sub

    def push(self, key: str, data: dict[str, Any] | None) -> None:
        """Simulate a remote change notification."""
        for sub in list(self.subscriptions):
            if sub.key == key:
                sub.push(copy.deepcopy(data))


class FakeIdentityProvider:
    """
    Scripted IdentityProvider.

    Each behaviour is either a user id (success) or None (raise IdentityProviderError).
    `calls` records which sign-in paths were attempted, in order.
    """

    def __init__(
        self,
        *,
        restored: str | None = None,
        token_user: str | None = None,
        anonymous_user: str | None = "anon-1",
    ) -> None:
        self.restored = restored
        self.token_user = token_user
        self.anonymous_user = anonymous_user
        self.calls: list[str] = []
        self.observers: list[Callable[[str | None], None]] = []

    async def restore(self) -> str | None:
        self.calls.append("restore")
        return self.restored

    async def sign_in_with_token(self, token: str) -> Identity:
        self.calls.append(f"token:{token}")
        if self.token_user is None:
            raise IdentityProviderError("bad token")
        return Identity(user_id=self.token_user, method="token")

    async def sign_in_anonymously(self) -> Identity:
        self.calls.append("anonymous")
        if self.anonymous_user is None:
            raise IdentityProviderError("anonymous sign-in disabled")
        return Identity(user_id=self.anonymous_user, method="anonymous")

    def on_auth_state_changed(self, callback):
        self.observers.append(callback)
        return lambda: self.observers.remove(callback)

    async def sign_out(self) -> None:
        self.calls.append("sign_out")


def counter_ids(prefix: str = "id") -> Callable[[], str]:
    """Deterministic id factory for StateStore."""
    seq = itertools.count(1)
    return lambda: f"{prefix}{next(seq)}"


async def settle(rounds: int = 5) -> None:
    """Let queued callbacks, consumer tasks and fire-and-forget writes run."""
    for _ in range(rounds):
        await asyncio.sleep(0.01)
