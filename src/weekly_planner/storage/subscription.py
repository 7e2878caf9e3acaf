# src/weekly_planner/storage/subscription.py

"""
Push-notification channel for a single document key.

A DocumentSubscription is the channel form of an onChange/onError callback pair:
- the gateway (producer) calls push(data) / fail(exc),
- the consumer iterates it with `async for snapshot in subscription`.

The stream is lazy, unbounded and non-restartable:
- after fail(), the error is raised once and the stream ends,
- after close(), iteration stops and further pushes are ignored.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

_CLOSED: Any = object()


@dataclass(frozen=True, slots=True)
class DocumentSnapshot:
    key: str
    data: dict[str, Any] | None

    @property
    def exists(self) -> bool:
        return self.data is not None


class DocumentSubscription:
    def __init__(
        self,
        key: str,
        *,
        on_close: Callable[[DocumentSubscription], None] | None = None,
    ) -> None:
        self.key = key
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._on_close = on_close
        self._closed = False
        self._finished = False

    @property
    def closed(self) -> bool:
        return self._closed

    # ---- producer side ----

    def push(self, data: dict[str, Any] | None) -> None:
        if self._closed:
            return
        self._queue.put_nowait(DocumentSnapshot(key=self.key, data=data))

    def fail(self, exc: BaseException) -> None:
        if self._closed:
            return
        self._queue.put_nowait(exc)

    def close(self) -> None:
        """Stop delivery. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        # Wake a consumer blocked in __anext__.
        self._queue.put_nowait(_CLOSED)
        if self._on_close is not None:
            try:
                self._on_close(self)
            except Exception:
                logger.exception("Subscription on_close hook failed key=%s", self.key)

    # ---- consumer side ----

    def __aiter__(self) -> DocumentSubscription:
        return self

    async def __anext__(self) -> DocumentSnapshot:
        if self._closed or self._finished:
            raise StopAsyncIteration

        item = await self._queue.get()

        if self._closed or item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            self._finished = True
            raise item
        return item
