# src/weekly_planner/planner/sync.py

from __future__ import annotations

"""
Document synchronizer.

Keeps the StateStore in step with the user's single remote document:
- subscribes to DocumentKey(app_namespace, user_id) once the session is auth-ready,
- replaces the whole local state on every push (absent fields default to empty),
- writes an all-empty document the first time the key does not exist,
- reports subscription failures as SyncError without crashing.

Pushes are applied as they arrive; they are not ordered against local writes
that are still in flight (see StateStore).
"""

import asyncio
import logging
from collections.abc import Callable

from ..auth.identity import Session
from ..core.errors import PlannerError, SaveError, SyncError
from ..core.ports import PersistenceGateway
from ..storage.subscription import DocumentSnapshot, DocumentSubscription
from .models import DocumentKey, UserDocument
from .store import StateStore

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[PlannerError], None]


class DocumentSynchronizer:
    def __init__(
        self,
        gateway: PersistenceGateway,
        store: StateStore,
        *,
        app_namespace: str,
        on_error: ErrorHandler | None = None,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._namespace = app_namespace
        self.on_error = on_error
        self._subscription: DocumentSubscription | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._loaded = asyncio.Event()
        self._bootstrap_writes: set[asyncio.Task[None]] = set()
        self.key: DocumentKey | None = None

    @property
    def is_open(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    @property
    def loaded(self) -> bool:
        return self._loaded.is_set()

    def open(self, session: Session) -> DocumentSubscription:
        if not session.auth_ready:
            raise RuntimeError("identity is not ready; cannot open document subscription")
        if self._subscription is not None:
            raise RuntimeError("document subscription is already open")

        key = DocumentKey(self._namespace, session.user_id)
        self.key = key
        self._store.bind(self._gateway, key)

        subscription = self._gateway.subscribe(key.path)
        self._subscription = subscription
        self._consumer = asyncio.get_running_loop().create_task(
            self._consume(subscription), name=f"sync:{key.path}"
        )
        logger.info("Document subscription opened key=%s", key)
        return subscription

    async def wait_loaded(self) -> None:
        """Return after the first push has been applied (or the subscription failed)."""
        await self._loaded.wait()

    async def flush(self) -> None:
        """Wait for a first-use default document write that is still in flight."""
        while self._bootstrap_writes:
            await asyncio.gather(*list(self._bootstrap_writes), return_exceptions=True)

    def close(self) -> None:
        """Release the subscription. After this returns no push reaches the store."""
        sub, self._subscription = self._subscription, None
        if sub is None:
            return
        sub.close()
        if self._consumer is not None and not self._consumer.done():
            self._consumer.cancel()
        self._consumer = None
        self._store.unbind()
        logger.info("Document subscription closed key=%s", self.key)

    # ---- internals ----

    async def _consume(self, subscription: DocumentSubscription) -> None:
        try:
            async for snapshot in subscription:
                if subscription.closed:
                    break
                self._apply(snapshot)
        except Exception as e:
            logger.exception("Error receiving document updates key=%s", subscription.key)
            self._report(e if isinstance(e, SyncError) else SyncError())
        finally:
            # Never leave a caller stuck behind a loading screen.
            self._loaded.set()

    def _apply(self, snapshot: DocumentSnapshot) -> None:
        if snapshot.exists:
            self._store.replace_all(UserDocument.from_dict(snapshot.data))
            logger.debug("Applied remote snapshot key=%s", snapshot.key)
        else:
            logger.info("No document yet; creating default key=%s", snapshot.key)
            task = asyncio.get_running_loop().create_task(self._write_default(snapshot.key))
            self._bootstrap_writes.add(task)
            task.add_done_callback(self._bootstrap_writes.discard)
        self._loaded.set()

    async def _write_default(self, key: str) -> None:
        try:
            await self._gateway.write(key, UserDocument.empty().to_dict())
        except Exception as e:
            logger.exception("Error creating default document key=%s", key)
            self._report(e if isinstance(e, SaveError) else SaveError())

    def _report(self, err: PlannerError) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(err)
        except Exception:
            logger.exception("Error handler failed.")
