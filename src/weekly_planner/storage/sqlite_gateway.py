# src/weekly_planner/storage/sqlite_gateway.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..core.errors import SaveError, SyncError
from .subscription import DocumentSubscription

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Watch:
    subscription: DocumentSubscription
    last_revision: int = -1
    poller: asyncio.Task[None] | None = field(default=None)


class SqliteDocumentGateway:
    """
    SQLite key/document store with change notification.

    Storage:
    - one row per document key, body stored as JSON text,
    - `revision` is bumped on every write (used to detect changes).

    Notification:
    - writes made through this instance notify its subscribers immediately,
    - while poll_interval > 0, each subscription also polls the revision so that
      writes from other processes reach live sessions too.

    Thread-safety:
    - each call opens its own SQLite connection; blocking work runs in asyncio.to_thread.
    """

    def __init__(self, db_path: str | Path = "documents.sqlite3", *, poll_interval: float = 1.0) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._poll_interval = float(poll_interval)
        self._watches: dict[int, _Watch] = {}
        self._ensure_schema()
        try:
            total = self.count_documents()
        except Exception:
            total = -1
        logger.info("SqliteDocumentGateway ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        for watch in list(self._watches.values()):
            watch.subscription.close()

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    key TEXT PRIMARY KEY,
                    body TEXT NOT NULL,
                    revision INTEGER NOT NULL DEFAULT 0,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _read_row(self, key: str) -> tuple[int, str] | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT body, revision FROM documents WHERE key = ?", (key,)
            ).fetchone()
            return (int(row["revision"]), str(row["body"])) if row else None
        finally:
            conn.close()

    def _write_row(self, key: str, body: str) -> int:
        now = time.time()
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO documents(key, body, revision, updated_at)
                VALUES (?, ?, 1, ?)
                ON CONFLICT(key) DO UPDATE SET
                    body = excluded.body,
                    revision = documents.revision + 1,
                    updated_at = excluded.updated_at
                """,
                (key, body, now),
            )
            (revision,) = conn.execute(
                "SELECT revision FROM documents WHERE key = ?", (key,)
            ).fetchone()
            conn.commit()
            return int(revision)
        finally:
            conn.close()

    @staticmethod
    def _decode(key: str, body: str) -> dict[str, Any]:
        # A damaged body still counts as an existing document; readers default-fill it.
        try:
            val = json.loads(body)
        except ValueError:
            logger.warning("Stored document is not valid JSON key=%s", key)
            return {}
        if not isinstance(val, dict):
            logger.warning("Stored document is not an object key=%s", key)
            return {}
        return val

    # ---- public API ----

    def count_documents(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM documents").fetchone()
            return int(n)
        finally:
            conn.close()

    async def read(self, key: str) -> dict[str, Any] | None:
        row = await asyncio.to_thread(self._read_row, key)
        if row is None:
            return None
        return self._decode(key, row[1])

    async def write(self, key: str, data: dict[str, Any]) -> None:
        try:
            body = json.dumps(data, ensure_ascii=False)
            revision = await asyncio.to_thread(self._write_row, key, body)
        except (TypeError, ValueError, sqlite3.Error) as e:
            raise SaveError() from e

        logger.debug("Document written key=%s revision=%s", key, revision)
        self._notify(key, revision, data)

    def subscribe(self, key: str) -> DocumentSubscription:
        subscription = DocumentSubscription(key, on_close=self._forget)
        watch = _Watch(subscription=subscription)
        self._watches[id(subscription)] = watch
        watch.poller = asyncio.get_running_loop().create_task(
            self._watch(watch), name=f"watch:{key}"
        )
        return watch.subscription

    # ---- notification ----

    def _notify(self, key: str, revision: int, data: dict[str, Any]) -> None:
        for watch in list(self._watches.values()):
            if watch.subscription.key != key or revision <= watch.last_revision:
                continue
            watch.last_revision = revision
            watch.subscription.push(data)

    def _forget(self, subscription: DocumentSubscription) -> None:
        watch = self._watches.pop(id(subscription), None)
        if watch is not None and watch.poller is not None:
            watch.poller.cancel()

    async def _watch(self, watch: _Watch) -> None:
        """Deliver the current snapshot, then poll for revisions written elsewhere."""
        sub = watch.subscription
        first = True
        while not sub.closed:
            try:
                row = await asyncio.to_thread(self._read_row, sub.key)
            except sqlite3.Error:
                logger.exception("Document watch failed key=%s", sub.key)
                sub.fail(SyncError())
                self._watches.pop(id(sub), None)
                return

            if row is None:
                # Skip if a local write already delivered a revision meanwhile.
                if first and watch.last_revision < 0:
                    sub.push(None)
            elif row[0] > watch.last_revision:
                watch.last_revision = row[0]
                sub.push(self._decode(sub.key, row[1]))
            first = False

            if self._poll_interval <= 0:
                return
            await asyncio.sleep(self._poll_interval)
